"""
Record formatters.

TextFormatter renders the human-readable line written to files and streams:

    2019-01-31T04:48:20 [info] [controllers/character.py:99] foo key=value

StructuredFormatter renders the JSON document shipped to the log agent:

    {"@timestamp":"2019-01-31T04:48:20.259Z","@version":"1","app_id":"svc",
     "host":"h1","instance_id":"i1","level":"INFO",
     "message":"[controllers/character.py:99] foo key=value"}
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Mapping

import orjson

from .entry import EntryPool
from .exceptions import SerializationError
from .levels import level_string, level_text
from .record import LogRecord

SortingFunc = Callable[[list[str]], None]

DEFAULT_TEXT_TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S"
DEFAULT_JSON_TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%3fZ"

_SAFE_VALUE = re.compile(r"[A-Za-z0-9\-._/@^+]*")


# =============================================================================
# key=value rendering shared by both formatters
# =============================================================================


def format_timestamp(dt: datetime, fmt: str) -> str:
    """strftime with one extension: `%3f` renders milliseconds."""
    if "%3f" in fmt:
        fmt = fmt.replace("%3f", f"{dt.microsecond // 1000:03d}")
    return dt.strftime(fmt)


def stringify(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def needs_quoting(text: str, quote_empty_fields: bool) -> bool:
    if not text:
        return quote_empty_fields
    return _SAFE_VALUE.fullmatch(text) is None


def format_value(value: Any, quote_empty_fields: bool = False) -> str:
    text = stringify(value)
    if needs_quoting(text, quote_empty_fields):
        return orjson.dumps(text).decode()
    return text


def format_pairs(
    data: Mapping[str, Any],
    keys: Iterable[str],
    quote_empty_fields: bool = False,
) -> str:
    """Render `key=value` pairs separated by single spaces."""
    return " ".join(f"{key}={format_value(data[key], quote_empty_fields)}" for key in keys)


# =============================================================================
# Formatter Abstraction
# =============================================================================


class Formatter(ABC):
    """Renders a record to one newline-terminated string."""

    @abstractmethod
    def format(self, record: LogRecord) -> str: ...


class TextFormatter(Formatter):
    """Single-line text format for log files and standard streams.

    Args:
        timestamp_format: strftime pattern (plus `%3f` for milliseconds)
        utc: render timestamps in UTC instead of local time
        disable_sorting: keep field insertion order
        sorting_func: sorts the key list in place instead of `list.sort`
        quote_empty_fields: quote empty string values
    """

    def __init__(
        self,
        timestamp_format: str = DEFAULT_TEXT_TIMESTAMP_FORMAT,
        *,
        utc: bool = False,
        disable_sorting: bool = False,
        sorting_func: SortingFunc | None = None,
        quote_empty_fields: bool = False,
    ):
        self.timestamp_format = timestamp_format or DEFAULT_TEXT_TIMESTAMP_FORMAT
        self.utc = utc
        self.disable_sorting = disable_sorting
        self.sorting_func = sorting_func
        self.quote_empty_fields = quote_empty_fields

    def _sorted_keys(self, data: Mapping[str, Any]) -> list[str]:
        keys = list(data)
        if not self.disable_sorting:
            if self.sorting_func is not None:
                self.sorting_func(keys)
            else:
                keys.sort()
        return keys

    def format(self, record: LogRecord) -> str:
        dt = record.time.astimezone(timezone.utc) if self.utc else record.time.astimezone()
        line = f"{format_timestamp(dt, self.timestamp_format)} [{level_text(record.level)}]"
        if record.caller is not None:
            line += f" [{record.caller.file}:{record.caller.line}]"
        if record.message:
            line += " " + record.message
        if record.fields:
            keys = self._sorted_keys(record.fields)
            line += " " + format_pairs(record.fields, keys, self.quote_empty_fields)
        return line + "\n"


class StructuredFormatter(Formatter):
    """JSON format for the remote log agent.

    Fields whose key is one of the identity fields given at construction
    (plus `@version` and the category key) land at the top level of the
    document. Every other field is an extra: extras are appended to the
    message as `key=value` pairs.
    """

    def __init__(
        self,
        fields: Mapping[str, Any] | None = None,
        *,
        pool: EntryPool | None = None,
        field_key_time: str = "@timestamp",
        field_key_msg: str = "message",
        field_key_level: str = "level",
        field_key_category: str = "category",
        timestamp_format: str = DEFAULT_JSON_TIMESTAMP_FORMAT,
        disable_sorting: bool = False,
        quote_empty_fields: bool = False,
    ):
        known = dict(fields or {})
        known.setdefault("@version", "1")
        self.fields: dict[str, Any] = known
        self.field_key_time = field_key_time
        self.field_key_msg = field_key_msg
        self.field_key_level = field_key_level
        self.field_key_category = field_key_category
        self.timestamp_format = timestamp_format or DEFAULT_JSON_TIMESTAMP_FORMAT
        self.disable_sorting = disable_sorting
        self.quote_empty_fields = quote_empty_fields
        self._pool = pool or EntryPool()

    def _is_known(self, key: str) -> bool:
        return key in self.fields or key == self.field_key_category

    def format(self, record: LogRecord) -> str:
        scratch = self._pool.acquire()
        try:
            scratch._data.update(self.fields)
            scratch._data.update(record.fields)

            data: dict[str, Any] = {}
            extras: dict[str, Any] = {}
            for key, value in scratch._data.items():
                if isinstance(value, BaseException):
                    value = str(value)
                if self._is_known(key):
                    data[key] = value
                else:
                    extras[key] = value

            data[self.field_key_time] = format_timestamp(
                record.time.astimezone(timezone.utc), self.timestamp_format
            )
            data[self.field_key_level] = level_string(record.level)

            parts = []
            if record.caller is not None:
                parts.append(f"[{record.caller.file}:{record.caller.line}]")
            if record.message:
                parts.append(record.message)
            if extras:
                keys = list(extras) if self.disable_sorting else sorted(extras)
                parts.append(format_pairs(extras, keys, self.quote_empty_fields))
            data[self.field_key_msg] = " ".join(parts)

            try:
                serialized = orjson.dumps(data, option=orjson.OPT_SORT_KEYS)
            except orjson.JSONEncodeError as exc:
                raise SerializationError(reason=str(exc)) from exc
            return serialized.decode() + "\n"
        finally:
            self._pool.release(scratch)
