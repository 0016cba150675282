"""
duolog: structured logging with separate access and error streams.

- Entry: immutable key/value fields, composed with `with_field`/`with_fields`
- Sinks: access (debug/info/warn) and error (error/fatal), each with its own
  threshold and output target
- Formatters: text lines for files and streams, JSON for the log agent
- RemoteShipper: asynchronous, drop-on-full delivery to the log agent

Library: structlog for the sink pipeline, orjson for JSON, pydantic-settings
for configuration.
"""

from .caller import CallerLocation
from .core import LoggingContext, configure_logging
from .entry import Entry, EntryPool
from .exceptions import ConfigurationError, DuologError, SerializationError
from .formatters import StructuredFormatter, TextFormatter
from .levels import Level, level_string, parse_level
from .record import LogRecord
from .shipper import DeliveryPolicy, RemoteShipper, ShipperStats
from .sinks import Hook, LoggerSink

__all__ = [
    "CallerLocation",
    "ConfigurationError",
    "DeliveryPolicy",
    "DuologError",
    "Entry",
    "EntryPool",
    "Hook",
    "Level",
    "LogRecord",
    "LoggerSink",
    "LoggingContext",
    "RemoteShipper",
    "SerializationError",
    "ShipperStats",
    "StructuredFormatter",
    "TextFormatter",
    "configure_logging",
    "level_string",
    "parse_level",
]
