"""
The snapshot taken when a severity method fires.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Mapping

from .caller import CallerLocation


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, slots=True)
class LogRecord:
    level: int
    message: str
    fields: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    caller: CallerLocation | None = None
    time: datetime = field(default_factory=_now)

    @classmethod
    def create(
        cls,
        level: int,
        message: str,
        fields: Mapping[str, Any] | None = None,
        caller: CallerLocation | None = None,
        time: datetime | None = None,
    ) -> LogRecord:
        """Build a record, copying `fields` so later entry merges cannot reach it."""
        return cls(
            level=level,
            message=message,
            fields=MappingProxyType(dict(fields or {})),
            caller=caller,
            time=time or _now(),
        )
