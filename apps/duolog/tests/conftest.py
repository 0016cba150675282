from __future__ import annotations

import io
import typing as t
from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

from duolog.caller import CallerLocation
from duolog.core import LoggingContext
from duolog.formatters import TextFormatter
from duolog.levels import Level
from duolog.record import LogRecord
from duolog.sinks import LoggerSink

FIXED_TIME = datetime(2019, 1, 31, 4, 48, 20, 259123, tzinfo=timezone.utc)


@pytest.fixture
def fixed_time() -> datetime:
    return FIXED_TIME


@pytest.fixture
def make_record() -> t.Callable[..., LogRecord]:
    """Factory for records stamped with a fixed time."""

    def _make(
        message: str = "foo",
        level: int = Level.INFO,
        fields: dict[str, t.Any] | None = None,
        caller: CallerLocation | None = CallerLocation("controllers/character.py", 99),
    ) -> LogRecord:
        return LogRecord.create(level, message, fields, caller, time=FIXED_TIME)

    return _make


@pytest.fixture
def access_stream() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def error_stream() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def exit_func() -> MagicMock:
    return MagicMock()


@pytest.fixture
def context(access_stream, error_stream, exit_func) -> t.Iterator[LoggingContext]:
    """A context writing UTC text lines to in-memory streams."""
    formatter = TextFormatter(utc=True)
    ctx = LoggingContext(
        LoggerSink("access", Level.INFO, access_stream, formatter),
        LoggerSink("error", Level.ERROR, error_stream, formatter),
        project_name="duolog",
        exit_func=exit_func,
    )
    yield ctx
    ctx.close()
