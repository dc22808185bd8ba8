"""Logging utilities for gltfopt.

Records on the ``gltfopt`` logger are forwarded to the active reporter so
that library code can use plain ``logging`` calls and still honour the
reporter selected on the command line.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from .reporting import get_reporter, get_verbosity

_LOGGER_NAME = "gltfopt"
_STEP_PREFIX = "  ->"

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}

__all__ = [
    "get_logger",
    "configure_logging",
    "section",
    "step",
]


def get_logger(name: Optional[str] = None) -> logging.Logger:
    if name:
        return logging.getLogger(f"{_LOGGER_NAME}.{name}")
    return logging.getLogger(_LOGGER_NAME)


class _ReporterHandler(logging.Handler):
    def emit(self, record: logging.LogRecord) -> None:  # noqa: D401
        try:
            rep = get_reporter()
            msg = self.format(record)
            if record.levelno >= logging.ERROR:
                rep.error(msg)
            elif record.levelno >= logging.WARNING:
                rep.warning(msg)
            elif record.levelno >= logging.INFO:
                rep.status(msg)
            else:
                rep.verbose(msg)
        except Exception:  # pragma: no cover
            self.handleError(record)


def configure_logging(verbosity: int = 0, *, level: Optional[str] = None) -> None:
    """Install the reporter bridge on the package logger.

    ``level`` is a config-file level name; any ``-v`` on the command line
    wins over it and switches to DEBUG.
    """
    logger = get_logger()
    resolved = _LEVELS.get((level or "info").lower(), logging.INFO)
    if verbosity >= 1:
        resolved = logging.DEBUG
    logger.setLevel(resolved)

    for h in list(logger.handlers):
        logger.removeHandler(h)

    handler = _ReporterHandler()
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.propagate = False


def step(message: str) -> None:
    get_reporter().status(f"{_STEP_PREFIX} {message}")


@contextmanager
def section(title: str) -> Iterator[logging.Logger]:
    logger = get_logger()
    get_reporter().section(title)
    try:
        yield logger
    finally:
        if get_verbosity() >= 2:
            logger.debug("end section: %s", title)
