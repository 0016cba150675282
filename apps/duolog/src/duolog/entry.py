"""
Immutable field entries and the pool that recycles their storage.
"""

from __future__ import annotations

import threading
from collections import deque
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Mapping

from .levels import Level

if TYPE_CHECKING:
    from .core import LoggingContext

Fields = Mapping[str, Any]

DEFAULT_POOL_SIZE = 64


def join_args(args: tuple[Any, ...]) -> str:
    return " ".join(str(a) for a in args)


class Entry:
    """An immutable bag of fields attached to a future log call.

    `with_field` and `with_fields` never touch the receiver; they return a new
    entry holding the union of both maps, new values winning. Severity
    methods dispatch exactly one record through the owning context.
    """

    __slots__ = ("_data", "_context")

    def __init__(self, data: dict[str, Any] | None = None, context: LoggingContext | None = None):
        self._data: dict[str, Any] = data if data is not None else {}
        self._context = context

    @property
    def fields(self) -> Mapping[str, Any]:
        return MappingProxyType(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"Entry({self._data!r})"

    def with_field(self, key: str, value: Any) -> Entry:
        """Add a single field. If you want multiple fields, use `with_fields`."""
        return self.with_fields({key: value})

    def with_fields(self, fields: Fields) -> Entry:
        data = dict(self._data)
        data.update(fields)
        return Entry(data, self._context)

    # -------------------------------------------------------------------------
    # Severity methods: debug/info/warn go to the access sink, error/fatal to
    # the error sink.
    # -------------------------------------------------------------------------

    def _ctx(self) -> LoggingContext:
        if self._context is None:
            raise RuntimeError("entry is not bound to a logging context")
        return self._context

    def debug(self, *args: Any) -> None:
        self._ctx()._log(Level.DEBUG, join_args(args), self._data)

    def debugf(self, fmt: str, *args: Any) -> None:
        self._ctx()._log(Level.DEBUG, fmt % args if args else fmt, self._data)

    def info(self, *args: Any) -> None:
        self._ctx()._log(Level.INFO, join_args(args), self._data)

    def infof(self, fmt: str, *args: Any) -> None:
        self._ctx()._log(Level.INFO, fmt % args if args else fmt, self._data)

    def warn(self, *args: Any) -> None:
        self._ctx()._log(Level.WARN, join_args(args), self._data)

    def warnf(self, fmt: str, *args: Any) -> None:
        self._ctx()._log(Level.WARN, fmt % args if args else fmt, self._data)

    def error(self, *args: Any) -> None:
        self._ctx()._log(Level.ERROR, join_args(args), self._data)

    def errorf(self, fmt: str, *args: Any) -> None:
        self._ctx()._log(Level.ERROR, fmt % args if args else fmt, self._data)

    def fatal(self, *args: Any) -> None:
        self._ctx()._log(Level.FATAL, join_args(args), self._data)

    def fatalf(self, fmt: str, *args: Any) -> None:
        self._ctx()._log(Level.FATAL, fmt % args if args else fmt, self._data)


class EntryPool:
    """Thread-safe free list of entries.

    `acquire` hands out an entry with an empty field map; `release` replaces
    the map with a fresh dict before the entry goes back, so nothing from a
    previous use can leak into the next one.
    """

    def __init__(self, max_size: int = DEFAULT_POOL_SIZE):
        self._free: deque[Entry] = deque()
        self._max_size = max_size
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._free)

    def acquire(self, context: LoggingContext | None = None) -> Entry:
        with self._lock:
            entry = self._free.pop() if self._free else None
        if entry is None:
            entry = Entry()
        entry._context = context
        return entry

    def release(self, entry: Entry) -> None:
        entry._data = {}
        entry._context = None
        with self._lock:
            if len(self._free) < self._max_size:
                self._free.append(entry)
