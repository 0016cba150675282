"""
Interceptors for capturing standard library logging.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Iterable

from .caller import CallerLocation, relative_path
from .levels import Level

if TYPE_CHECKING:
    from .core import LoggingContext

# LogRecord attributes that are not user fields.
_STANDARD_LOGRECORD_ATTRS = frozenset(
    {
        "args",
        "asctime",
        "created",
        "exc_info",
        "exc_text",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "message",
        "module",
        "msecs",
        "msg",
        "name",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "taskName",
        "thread",
        "threadName",
    }
)


def stdlib_level(levelno: int) -> Level:
    """Map a stdlib level number onto the nearest duolog level at or below it."""
    if levelno >= logging.CRITICAL:
        return Level.FATAL
    if levelno >= logging.ERROR:
        return Level.ERROR
    if levelno >= logging.WARNING:
        return Level.WARN
    if levelno >= logging.INFO:
        return Level.INFO
    return Level.DEBUG


class StdlibBridgeHandler(logging.Handler):
    """
    Redirect standard library logging records into a LoggingContext.

    WARNING and below go to the access sink, ERROR and above to the error
    sink. CRITICAL is recorded as fatal but never terminates the process.
    Extra attributes passed via `extra=` become fields; the logger name is
    kept as the `logger` field.
    """

    def __init__(self, context: LoggingContext, level: int = logging.NOTSET):
        super().__init__(level)
        self.context = context

    def emit(self, record: logging.LogRecord) -> None:
        try:
            fields: dict[str, Any] = {"logger": record.name}
            for key, value in record.__dict__.items():
                if key not in _STANDARD_LOGRECORD_ATTRS and not key.startswith("_"):
                    fields[key] = value
            if record.exc_info and record.exc_info[1] is not None:
                fields["error"] = record.exc_info[1]

            caller = CallerLocation(
                relative_path(record.pathname, self.context.project_name),
                record.lineno,
            )
            self.context.log(stdlib_level(record.levelno), record.getMessage(), fields, caller)
        except Exception:
            self.handleError(record)


def intercept_loggers(context: LoggingContext, names: Iterable[str] = ("",)) -> StdlibBridgeHandler:
    """Route the named stdlib loggers (root by default) into `context`.

    Existing handlers on those loggers are removed.
    """
    handler = StdlibBridgeHandler(context)
    for name in names:
        lg = logging.getLogger(name or None)
        lg.handlers = [handler]
        if name:
            lg.propagate = False
    return handler
