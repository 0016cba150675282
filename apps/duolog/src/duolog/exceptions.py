"""
Exception hierarchy for duolog.

Setup-time problems are ConfigurationError and must stop initialization.
Per-record problems are SerializationError and only ever cost one record.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class DuologError(Exception):
    """Root of all duolog errors."""

    def __init__(
        self,
        message: str,
        *,
        code: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.details = details or {}


# ================================
# Initialization errors
# ================================


class ConfigurationError(DuologError, ValueError):
    """Raised when the logging system cannot be set up as configured.

    Subclasses ValueError so pydantic validators can raise it directly.
    """

    def __init__(self, message: str, *, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, code="CONFIGURATION_ERROR", details=details)


class InvalidLevel(ConfigurationError):
    """Unknown severity name."""

    def __init__(self, *, level: str) -> None:
        super().__init__(
            f"not a valid log level: {level!r}",
            details={"level": level},
        )


class OutputUnavailable(ConfigurationError):
    """Output target could not be opened."""

    def __init__(self, *, target: str, reason: str) -> None:
        super().__init__(
            f"cannot open log output {target!r}: {reason}",
            details={"target": target, "reason": reason},
        )


class AgentUnavailable(ConfigurationError):
    """Remote agent DSN is invalid or the initial connection failed."""

    def __init__(self, *, dsn: str, reason: str) -> None:
        super().__init__(
            f"cannot connect log agent {dsn!r}: {reason}",
            details={"dsn": dsn, "reason": reason},
        )


# ================================
# Per-record errors
# ================================


class SerializationError(DuologError):
    """A single record could not be rendered to JSON."""

    def __init__(self, *, reason: str) -> None:
        super().__init__(
            f"Failed to marshal fields to JSON, {reason}",
            code="SERIALIZATION_ERROR",
            details={"reason": reason},
        )
