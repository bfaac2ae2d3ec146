"""Logging configuration for the ``finance_tracker`` package.

Entry points (the Typer CLI and the HTTP app factory) call
``configure_logging()`` once at startup. Library modules only ever do::

    logger = get_logger("finance_tracker.<module>")

and never attach handlers of their own. Until an entry point configures
logging, the package logger carries a ``NullHandler`` so importing the
library from another application stays silent.

When the target stream is an interactive terminal, records are rendered with
``rich.logging.RichHandler``; otherwise a plain ``StreamHandler`` with the
``"%(asctime)s %(name)s %(levelname)s %(message)s"`` format is used so logs
stay grep-friendly in files and CI output.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

_PKG_LOGGER_NAME = "finance_tracker"
_LEVEL_ENV = "FINANCE_TRACKER_LOG_LEVEL"
_DEFAULT_FMT = "%(asctime)s %(name)s %(levelname)s %(message)s"
_handler: logging.Handler | None = None


def _resolve_level(level: int | str | None) -> int:
    if level is None:
        level = os.getenv(_LEVEL_ENV) or logging.INFO
    if isinstance(level, int):
        return level
    name = level.strip().upper()
    if name.isdigit():
        return int(name)
    value = logging.getLevelName(name)
    # getLevelName returns "Level X" for unknown names
    return value if isinstance(value, int) else logging.INFO


def _is_tty(stream: IO[str]) -> bool:
    try:
        return stream.isatty()
    except (AttributeError, ValueError):
        return False


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] | None = None,
    force: bool = False,
) -> None:
    """Attach the package handler; later calls are no-ops unless ``force``.

    Parameters
    ----------
    level:
        Level as ``int`` or name. Defaults to ``$FINANCE_TRACKER_LOG_LEVEL``,
        then ``INFO``.
    fmt:
        Format string for the plain handler.
    stream:
        Output stream, ``sys.stderr`` by default.
    force:
        Replace a previously installed handler (tests use this to capture
        output into a buffer).
    """

    global _handler
    logger = logging.getLogger(_PKG_LOGGER_NAME)
    if _handler is not None:
        if not force:
            return
        logger.removeHandler(_handler)
        _handler = None

    for h in list(logger.handlers):
        if isinstance(h, logging.NullHandler):
            logger.removeHandler(h)

    target = stream if stream is not None else sys.stderr
    resolved = _resolve_level(level)
    handler: logging.Handler
    if fmt is None and _is_tty(target):
        from rich.console import Console
        from rich.logging import RichHandler

        handler = RichHandler(console=Console(file=target), show_path=False)
    else:
        handler = logging.StreamHandler(target)
        handler.setFormatter(logging.Formatter(fmt or _DEFAULT_FMT))
    handler.setLevel(resolved)

    logger.setLevel(resolved)
    logger.addHandler(handler)
    logger.propagate = False
    _handler = handler


def get_logger(name: str) -> logging.Logger:
    """Return ``logging.getLogger(name)``, keeping the package quiet by default."""

    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    if _handler is None and not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = ["configure_logging", "get_logger"]
