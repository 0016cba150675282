"""
Severity levels.

Numbers follow the standard library so a stdlib `levelno` can be compared
directly; PANIC sits above FATAL.
"""

from __future__ import annotations

from enum import IntEnum

from .exceptions import InvalidLevel


class Level(IntEnum):
    DEBUG = 10
    INFO = 20
    WARN = 30
    ERROR = 40
    FATAL = 50
    PANIC = 60


_NAME_TO_LEVEL = {
    "debug": Level.DEBUG,
    "info": Level.INFO,
    "warn": Level.WARN,
    "warning": Level.WARN,
    "error": Level.ERROR,
    "fatal": Level.FATAL,
    "panic": Level.PANIC,
}

# Upper-case names used on the wire.
_LEVEL_TO_WIRE = {
    Level.DEBUG: "DEBUG",
    Level.INFO: "INFO",
    Level.WARN: "WARN",
    Level.ERROR: "ERROR",
    Level.FATAL: "FATAL",
    Level.PANIC: "PANIC",
}

# Lower-case names used in the text format.
_LEVEL_TO_TEXT = {
    Level.DEBUG: "debug",
    Level.INFO: "info",
    Level.WARN: "warning",
    Level.ERROR: "error",
    Level.FATAL: "fatal",
    Level.PANIC: "panic",
}


def parse_level(name: str | int) -> Level:
    """Parse a level name (case-insensitive) or number into a Level."""
    if isinstance(name, int):
        try:
            return Level(name)
        except ValueError:
            raise InvalidLevel(level=str(name)) from None
    level = _NAME_TO_LEVEL.get(str(name).strip().lower())
    if level is None:
        raise InvalidLevel(level=str(name))
    return level


def level_string(level: int) -> str:
    """Convert a level to its upper-case wire name, e.g. ERROR. Unmapped levels give UNKNOWN."""
    return _LEVEL_TO_WIRE.get(level, "UNKNOWN")


def level_text(level: int) -> str:
    return _LEVEL_TO_TEXT.get(level, "unknown")
