"""
Logging utilities for docweaver.

All docweaver loggers live below the ``docweaver`` namespace so the CLI can
configure them in one place while library users keep full control. When
nothing is configured, loggers fall back to a ``NullHandler`` and stay
silent.
"""

from __future__ import annotations

import os
import sys
import time
import logging
import threading
from contextlib import contextmanager
from typing import IO, Iterator, Optional

from docweaver.constants import (
    LOG_DATE_FORMAT,
    LOG_DEFAULT_FORMAT,
    LOG_VERBOSE_FORMAT,
)

NAMESPACE = "docweaver"

_logging_configured: bool = False
_lock = threading.Lock()


class ColoredFormatter(logging.Formatter):
    """Formatter that colours the level name with ANSI escapes."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(
        self,
        fmt: str,
        *,
        datefmt: Optional[str] = None,
        use_color: bool = True,
    ) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname)
        if not (color and self.use_color and self._should_use_color()):
            return super().format(record)

        # Other handlers may format the same record, so restore it afterwards.
        original = record.levelname
        record.levelname = f"{color}{original}{self.RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = original

    @staticmethod
    def _should_use_color() -> bool:
        if os.environ.get("NO_COLOR") or os.environ.get("CI"):
            return False
        try:
            return sys.stderr.isatty()
        except (AttributeError, OSError):
            return False


def verbosity_to_level(verbose: int) -> int:
    """Map the CLI ``-v`` count to a logging level."""
    if verbose <= 0:
        return logging.WARNING
    if verbose == 1:
        return logging.INFO
    return logging.DEBUG


def setup_logging(
    *,
    level: int = logging.INFO,
    verbose: bool = False,
    stream: Optional[IO[str]] = None,
) -> None:
    """Install a single stream handler on the ``docweaver`` logger.

    Safe to call repeatedly; previous handlers are replaced.

    Args:
        level: Logging level (e.g., ``logging.INFO``, ``logging.DEBUG``).
        verbose: Use the timestamped format including logger names.
        stream: Output stream; defaults to ``sys.stderr``.
    """
    global _logging_configured

    with _lock:
        root_logger = logging.getLogger(NAMESPACE)
        root_logger.handlers.clear()
        root_logger.setLevel(level)

        handler = logging.StreamHandler(stream or sys.stderr)
        handler.setLevel(level)
        handler.setFormatter(
            ColoredFormatter(
                LOG_VERBOSE_FORMAT if verbose else LOG_DEFAULT_FORMAT,
                datefmt=LOG_DATE_FORMAT,
                use_color=not os.environ.get("NO_COLOR"),
            )
        )

        root_logger.addHandler(handler)
        root_logger.propagate = False
        _logging_configured = True


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a logger within the docweaver namespace.

    ``get_logger("scanner")`` and ``get_logger("docweaver.scanner")`` return
    the same logger.
    """
    if not name or name == NAMESPACE:
        logger = logging.getLogger(NAMESPACE)
    elif name.startswith(f"{NAMESPACE}."):
        logger = logging.getLogger(name)
    else:
        logger = logging.getLogger(f"{NAMESPACE}.{name}")

    if not logger.handlers and (not logger.parent or not logger.parent.handlers):
        logger.addHandler(logging.NullHandler())

    return logger


def is_logging_configured() -> bool:
    """Return True if docweaver logging has been configured."""
    return _logging_configured


@contextmanager
def log_duration(logger: logging.Logger, label: str) -> Iterator[None]:
    """Log how long the wrapped block took, at DEBUG level."""
    started = time.perf_counter()
    try:
        yield
    finally:
        logger.debug("%s took %.2fs", label, time.perf_counter() - started)
