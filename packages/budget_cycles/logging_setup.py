"""Logging for the ``budget_cycles`` package.

Library modules ask for ``get_logger("budget_cycles.<module>")`` and emit
records; they never attach handlers. Until an entrypoint (the CLI callback)
calls :func:`configure_logging`, the package logger carries a ``NullHandler``
so importing the library prints nothing.

The level comes from the explicit argument, else ``BUDGET_CYCLES_LOG_LEVEL``
(read after ``.env`` has been loaded), else ``INFO``.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

PACKAGE_LOGGER = "budget_cycles"
LEVEL_ENV_VAR = "BUDGET_CYCLES_LOG_LEVEL"
CONSOLE_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"

# Name given to the handler installed by configure_logging.
_CONSOLE_HANDLER = "budget_cycles.console"


def resolve_level(level: int | str | None = None) -> int:
    """Map ``level`` (number, digit string or level name) to a logging level.

    Unknown names resolve to ``INFO`` rather than raising; a typo in an env
    var should not stop the CLI.
    """

    if level is None:
        level = os.getenv(LEVEL_ENV_VAR) or logging.INFO
    if isinstance(level, int):
        return level
    name = level.strip().upper()
    if name.isdigit():
        return int(name)
    return logging.getLevelNamesMapping().get(name, logging.INFO)


def _package_logger() -> logging.Logger:
    return logging.getLogger(PACKAGE_LOGGER)


def _console_handler(logger: logging.Logger) -> logging.Handler | None:
    return next((h for h in logger.handlers if h.get_name() == _CONSOLE_HANDLER), None)


def is_configured() -> bool:
    return _console_handler(_package_logger()) is not None


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] = sys.stderr,
) -> None:
    """Send package records to ``stream``; later calls leave the first setup alone."""

    logger = _package_logger()
    if _console_handler(logger) is not None:
        return

    resolved = resolve_level(level)
    console = logging.StreamHandler(stream)
    console.set_name(_CONSOLE_HANDLER)
    console.setFormatter(logging.Formatter(fmt or CONSOLE_FORMAT))
    console.setLevel(resolved)

    logger.handlers = [console]
    logger.setLevel(resolved)
    # Records stop here; the host's root handlers would print them twice.
    logger.propagate = False


def reset_logging() -> None:
    """Return the package logger to its import-time state."""

    logger = _package_logger()
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


def get_logger(name: str) -> logging.Logger:
    pkg = _package_logger()
    if not pkg.handlers:
        pkg.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = [
    "CONSOLE_FORMAT",
    "LEVEL_ENV_VAR",
    "configure_logging",
    "get_logger",
    "is_configured",
    "reset_logging",
    "resolve_level",
]
