"""Logging setup for the ``symcrypt`` logger hierarchy.

Modules log through ``logging.getLogger(__name__)``; the CLI calls
:func:`setup_logging` once.  Records are rendered on stderr by Rich when
it is installed, and by a plain stream handler otherwise, so stdout
stays reserved for command payloads.
"""

from __future__ import annotations

import logging
import sys

LOGGER_NAME: str = "symcrypt"

_PLAIN_FORMAT = "%(levelname)s: %(message)s"


def level_for(*, verbose: bool, debug: bool) -> int:
    """Map the ``--verbose``/``--debug`` flags to a logging level."""
    if debug:
        return logging.DEBUG
    if verbose:
        return logging.INFO
    return logging.WARNING


def _build_handler(*, color: bool) -> logging.Handler:
    try:
        from rich.console import Console
        from rich.logging import RichHandler
    except ModuleNotFoundError:
        handler: logging.Handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(_PLAIN_FORMAT))
        return handler
    return RichHandler(
        console=Console(stderr=True, no_color=not color),
        show_time=False,
        show_path=False,
        markup=False,
    )


def setup_logging(*, verbose: bool = False, debug: bool = False, color: bool = True) -> logging.Logger:
    """Configure the package logger.  Safe to call more than once."""
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level_for(verbose=verbose, debug=debug))
    for existing in list(logger.handlers):
        logger.removeHandler(existing)
    logger.addHandler(_build_handler(color=color))
    return logger
