"""Allow ``python -m symcrypt`` invocation.

This module simply delegates to the CLI error-boundary entry point so
that ``python -m symcrypt`` behaves identically to the ``symcrypt``
console script.
"""

from __future__ import annotations

from symcrypt.cli.app import cli

if __name__ == "__main__":
    cli()
