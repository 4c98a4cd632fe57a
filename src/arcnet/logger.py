"""Verbosity-based logging for arcnet.

The core never prints. Conversion, validation and scheduling report what they
did through one shared logger, and the CLI's ``-v`` option decides how much
of it reaches stderr:

    0  errors only
    1  changes: conversion and schedule summaries
    2  checks: dropped input, clamped overrides, validation findings
    3  debug: event-by-event times and event allocation

Only the handler installed by :func:`setup_logger` is ever replaced or
removed; handlers attached by an embedding application are left alone.
"""

from __future__ import annotations

import logging
import sys
from enum import IntEnum
from typing import Any, TextIO

LOGGER_NAME = "arcnet"

CHANGES_LEVEL = 25  # Between INFO and WARNING
CHECKS_LEVEL = 15  # Between DEBUG and INFO

logging.addLevelName(CHANGES_LEVEL, "CHANGES")
logging.addLevelName(CHECKS_LEVEL, "CHECKS")


class Verbosity(IntEnum):
    """The -v levels, each mapped onto a logging level."""

    SILENT = 0
    CHANGES = 1
    CHECKS = 2
    DEBUG = 3

    @property
    def level(self) -> int:
        return _LOG_LEVELS[self]

    @classmethod
    def clamp(cls, value: int) -> Verbosity:
        return cls(min(max(value, cls.SILENT), cls.DEBUG))


_LOG_LEVELS = {
    Verbosity.SILENT: logging.ERROR,
    Verbosity.CHANGES: CHANGES_LEVEL,
    Verbosity.CHECKS: CHECKS_LEVEL,
    Verbosity.DEBUG: logging.DEBUG,
}


class ArcnetLogger(logging.Logger):
    """Logger with one method per verbosity step above errors."""

    def changes(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """What a computation produced."""
        if self.isEnabledFor(CHANGES_LEVEL):
            self._log(CHANGES_LEVEL, msg, args, **kwargs)

    def checks(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Input that was dropped, clamped or rejected."""
        if self.isEnabledFor(CHECKS_LEVEL):
            self._log(CHECKS_LEVEL, msg, args, **kwargs)


class _StderrHandler(logging.StreamHandler):  # type: ignore[type-arg]
    """Marks the handler owned by setup_logger."""


class _PlainFormatter(logging.Formatter):
    """Bare messages, with a lowercase level prefix on warnings and errors."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        if record.levelno >= logging.WARNING:
            return f"{record.levelname.lower()}: {message}"
        return message


def get_logger() -> ArcnetLogger:
    """Return the shared arcnet logger."""
    logging.setLoggerClass(ArcnetLogger)
    logger = logging.getLogger(LOGGER_NAME)
    assert isinstance(logger, ArcnetLogger)
    return logger


def _remove_own_handlers(logger: logging.Logger) -> None:
    for handler in [h for h in logger.handlers if isinstance(h, _StderrHandler)]:
        logger.removeHandler(handler)


def setup_logger(verbosity: int, stream: TextIO | None = None) -> None:
    """Send arcnet log messages up to the given verbosity to a stream.

    Replaces the handler installed by an earlier call. Verbosity outside 0..3
    is clamped.

    Args:
        verbosity: 0=errors only, 1=changes, 2=checks, 3=debug
        stream: Where to write (defaults to sys.stderr)
    """
    logger = get_logger()
    _remove_own_handlers(logger)
    logger.setLevel(Verbosity.clamp(verbosity).level)

    handler = _StderrHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(_PlainFormatter("%(message)s"))
    logger.addHandler(handler)
    logger.propagate = False


def reset_logger() -> None:
    """Remove the setup_logger handler and go back to errors only."""
    logger = get_logger()
    _remove_own_handlers(logger)
    logger.setLevel(logging.ERROR)


def enabled(verbosity: Verbosity) -> bool:
    """True when messages of this verbosity would be emitted.

    Guards log output that is costly to format.
    """
    return get_logger().isEnabledFor(verbosity.level)
