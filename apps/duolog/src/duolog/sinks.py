"""
Logger sinks: one threshold, one output target, one formatter, any hooks.
"""

from __future__ import annotations

import sys
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Iterable, TextIO

import structlog
from structlog.typing import EventDict, WrappedLogger

from .exceptions import OutputUnavailable, SerializationError
from .formatters import Formatter, TextFormatter
from .levels import Level, parse_level
from .record import LogRecord


def open_output(target: str) -> tuple[TextIO, bool]:
    """Resolve an output selector to a stream.

    Returns the stream and whether the caller owns (and must close) it.
    """
    if target == "stdout":
        return sys.stdout, False
    if target == "stderr":
        return sys.stderr, False
    try:
        path = Path(target)
        path.parent.mkdir(parents=True, exist_ok=True)
        return open(path, "a", encoding="utf-8"), True
    except OSError as exc:
        raise OutputUnavailable(target=target, reason=str(exc)) from exc


# =============================================================================
# Hook Abstraction
# =============================================================================


class Hook(ABC):
    """Receives every record a sink emits, before it is written."""

    levels: frozenset[int] | None = None

    def wants(self, level: int) -> bool:
        return self.levels is None or level in self.levels

    @abstractmethod
    def fire(self, record: LogRecord) -> None:
        """Handle one emitted record. Must not block."""
        ...

    def close(self) -> None:
        pass


# =============================================================================
# structlog plumbing
# =============================================================================


class SinkWriter:
    """Terminal structlog logger: writes rendered lines verbatim."""

    def __init__(self, stream: TextIO):
        self.stream = stream

    def msg(self, message: str) -> None:
        self.stream.write(message)
        self.stream.flush()


class RecordLogger(structlog.BoundLoggerBase):
    """Bound logger whose only event is a complete LogRecord."""

    def emit(self, record: LogRecord) -> Any:
        return self._proxy_to_logger("msg", record=record)


class LoggerSink:
    """An independently configured destination (access or error).

    Records below `level` are discarded before any work is done. Emission
    (hooks, formatting, writing) is serialized by the sink's lock, so the
    bytes of two records never interleave.
    """

    def __init__(
        self,
        name: str,
        level: Level | str | int = Level.INFO,
        output: TextIO | None = None,
        formatter: Formatter | None = None,
        *,
        owns_output: bool = False,
        lock: threading.Lock | None = None,
    ):
        self.name = name
        self.level = parse_level(level)
        self.formatter = formatter or TextFormatter()
        self.hooks: list[Hook] = []
        self._writer = SinkWriter(output or sys.stderr)
        self._owns_output = owns_output
        self._lock = lock or threading.Lock()
        self._logger = structlog.wrap_logger(
            self._writer,
            processors=[self._fire_hooks, self._render],
            wrapper_class=RecordLogger,
            context_class=dict,
            cache_logger_on_first_use=True,
        )

    @classmethod
    def from_target(
        cls,
        name: str,
        level: Level | str | int,
        target: str,
        formatter: Formatter | None = None,
    ) -> LoggerSink:
        """Build a sink writing to `stdout`, `stderr` or a file path."""
        level = parse_level(level)
        stream, owns = open_output(target)
        return cls(name, level, stream, formatter, owns_output=owns)

    @property
    def output(self) -> TextIO:
        return self._writer.stream

    @property
    def lock(self) -> threading.Lock:
        return self._lock

    def enabled(self, level: int) -> bool:
        return level >= self.level

    def add_hook(self, hook: Hook) -> None:
        self.hooks.append(hook)

    def replace_hooks(self, hooks: Iterable[Hook] = ()) -> list[Hook]:
        """Swap the hook list, returning the previous one."""
        old, self.hooks = self.hooks, list(hooks)
        return old

    def emit(self, record: LogRecord) -> bool:
        """Write `record` if it meets the threshold. Returns whether it was emitted."""
        if not self.enabled(record.level):
            return False
        with self._lock:
            self._logger.emit(record)
        return True

    def close(self) -> None:
        with self._lock:
            if self._owns_output:
                self._writer.stream.close()
                self._owns_output = False

    # -------------------------------------------------------------------------
    # Processors
    # -------------------------------------------------------------------------

    def _fire_hooks(self, logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
        record: LogRecord = event_dict["record"]
        for hook in self.hooks:
            if not hook.wants(record.level):
                continue
            try:
                hook.fire(record)
            except Exception as exc:
                sys.stderr.write(f"Failed to fire hook: {exc}\n")
        return event_dict

    def _render(self, logger: WrappedLogger, method_name: str, event_dict: EventDict) -> str:
        try:
            return self.formatter.format(event_dict["record"])
        except SerializationError as exc:
            sys.stderr.write(f"Failed to format {self.name} log record: {exc}\n")
            raise structlog.DropEvent from exc
