"""Shared utilities: logging setup and other cross-cutting concerns.

Rules
-----
* No business logic.
* No I/O beyond configuring log handlers.
* Importable by any layer.
"""
