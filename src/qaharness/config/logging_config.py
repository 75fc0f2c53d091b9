"""
Logging setup shared by every harness module.

Modules call ``get_logger(__name__)``; the first call configures the root
logger at ``Environment.get_log_level()``. Output is
``time | level | logger | message``, coloured by level when stdout is a
terminal and ``NO_COLOR`` is unset.

Environment overrides:
- ``QAHARNESS_LOG_FORMAT``: a ``logging`` format string
- ``QAHARNESS_LOG_DATEFMT``: a ``strftime`` date format
"""

import logging
import os
import sys
from typing import Optional

PLAIN_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
COLOR_FORMAT = "\x1b[90m%(asctime)s\x1b[0m | %(levelname_color)s | \x1b[36m%(name)s\x1b[0m | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

RESET = "\x1b[0m"
LEVEL_COLORS = {
    "DEBUG": "\x1b[37m",
    "INFO": "\x1b[32m",
    "WARNING": "\x1b[33m",
    "ERROR": "\x1b[31m",
    "CRITICAL": "\x1b[41m",
}

# HTTP client internals log every request at DEBUG
QUIET_LOGGERS = {
    "httpcore": logging.INFO,
    "httpx": logging.WARNING,
}

_configured_level: Optional[str | int] = None


def use_color() -> bool:
    try:
        return sys.stdout.isatty() and os.getenv("NO_COLOR") is None
    except (AttributeError, ValueError):
        return False


class ColorFormatter(logging.Formatter):
    """Formatter that provides ``%(levelname_color)s`` to the format string."""

    def __init__(self, fmt: str, datefmt: str, color: bool):
        super().__init__(fmt=fmt, datefmt=datefmt)
        self.color = color

    def format(self, record: logging.LogRecord) -> str:
        color = LEVEL_COLORS.get(record.levelname) if self.color else None
        record.levelname_color = f"{color}{record.levelname}{RESET}" if color else record.levelname
        return super().format(record)


def _build_formatter(fmt: Optional[str], datefmt: Optional[str]) -> ColorFormatter:
    color = use_color()
    if fmt is None:
        fmt = os.getenv("QAHARNESS_LOG_FORMAT") or (COLOR_FORMAT if color else PLAIN_FORMAT)
    if datefmt is None:
        datefmt = os.getenv("QAHARNESS_LOG_DATEFMT", DATE_FORMAT)
    return ColorFormatter(fmt, datefmt, color)


def configure_logging(
    level: Optional[str | int] = None,
    fmt: Optional[str] = None,
    datefmt: Optional[str] = None,
) -> str | int:
    """Set the root level and formatter; repeated calls with the same level do nothing.

    Existing stream handlers (pytest's capture handlers among them) get the
    level and formatter; a stderr handler is added only when the root logger
    has none.
    """
    from qaharness.config.environment import Environment

    global _configured_level

    if level is None:
        level = Environment.get_log_level()
    elif isinstance(level, str):
        level = level.upper()

    if _configured_level is not None and _configured_level == level:
        return level
    _configured_level = level

    root = logging.getLogger()
    if not root.handlers:
        root.addHandler(logging.StreamHandler())
    root.setLevel(level)

    formatter = _build_formatter(fmt, datefmt)
    for handler in root.handlers:
        if isinstance(handler, logging.StreamHandler):
            handler.setLevel(level)
            handler.setFormatter(formatter)

    for name, quiet_level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(quiet_level)
    return level


def get_logger(name: str) -> logging.Logger:
    """Return a module-scoped logger."""
    level = configure_logging()
    logger = logging.getLogger(name)
    logger.setLevel(level)
    return logger
