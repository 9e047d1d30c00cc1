"""
tmplforge.logs - Diagnostic Logging
===================================

Internal trace logging for tmplforge. User-facing output goes through
Rich consoles in the CLI; this module only covers the debug channel that
explains what a run is doing (templates found, jobs started, workers
killed).

Loggers are named ``tmplforge.<module>`` and stay silent until
``configure_logging`` attaches a ``RichHandler`` writing to stderr, so
the generated module on stdout is never mixed with log lines.
"""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler


LOGGER_NAME = "tmplforge"


def get_logger(name: str) -> logging.Logger:
    """Return a logger under the ``tmplforge`` namespace."""
    if name == LOGGER_NAME or name.startswith(f"{LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{LOGGER_NAME}.{name}")


def configure_logging(verbose: bool = False) -> logging.Logger:
    """
    Attach a Rich handler to the package logger.

    Calling this more than once replaces the previous handler instead of
    stacking duplicates.

    Parameters
    ----------
    verbose : bool
        DEBUG level when True, WARNING otherwise.

    Returns
    -------
    logging.Logger
        The configured ``tmplforge`` logger.
    """
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)

    handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    logger.propagate = False
    return logger
