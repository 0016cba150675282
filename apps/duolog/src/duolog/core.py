"""
Logging context: the access/error router and its composition root.
"""

from __future__ import annotations

import sys
from typing import Any, Callable, Iterable

from .caller import CallerLocation, resolve_caller
from .config import AgentSettings, LogFormat, LoggingSettings, Settings
from .entry import Entry, EntryPool, Fields, join_args
from .exceptions import ConfigurationError
from .formatters import Formatter, StructuredFormatter, TextFormatter
from .levels import Level, parse_level
from .record import LogRecord
from .shipper import RemoteShipper
from .sinks import Hook, LoggerSink

# Frames between the user's call site and `_log`: the severity method itself.
CALLER_SKIP = 2

_RESOLVE = object()


class LoggingContext:
    """Owns the access and error sinks for the lifetime of the process.

    debug/info/warn records go to the access sink, error/fatal records to the
    error sink. A fatal record closes the hooks and then calls `exit_func(1)`.
    """

    def __init__(
        self,
        access_sink: LoggerSink,
        error_sink: LoggerSink,
        *,
        project_name: str = "",
        caller_skip: int = CALLER_SKIP,
        pool: EntryPool | None = None,
        exit_func: Callable[[int], Any] = sys.exit,
    ):
        self.access_sink = access_sink
        self.error_sink = error_sink
        self.project_name = project_name
        self.caller_skip = caller_skip
        self.pool = pool or EntryPool()
        self.exit_func = exit_func
        self._hooks: list[Hook] = []

    def __enter__(self) -> LoggingContext:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def hooks(self) -> list[Hook]:
        return list(self._hooks)

    def add_hook(self, hook: Hook) -> None:
        """Attach `hook` to both sinks."""
        self.access_sink.add_hook(hook)
        self.error_sink.add_hook(hook)
        self._hooks.append(hook)

    def sink_for(self, level: int) -> LoggerSink:
        return self.error_sink if level >= Level.ERROR else self.access_sink

    def close_hooks(self) -> None:
        """Detach every hook from both sinks and close it, draining any queue."""
        hooks, self._hooks = self._hooks, []
        self.access_sink.replace_hooks()
        self.error_sink.replace_hooks()
        for hook in hooks:
            hook.close()

    def close(self) -> None:
        """Drain hooks, then close any files the sinks opened."""
        self.close_hooks()
        self.access_sink.close()
        self.error_sink.close()

    # -------------------------------------------------------------------------
    # Entry construction
    # -------------------------------------------------------------------------

    def with_field(self, key: str, value: Any) -> Entry:
        """Add a field to a new entry. Nothing is logged until a severity method is called."""
        entry = self.pool.acquire(self)
        try:
            return entry.with_field(key, value)
        finally:
            self.pool.release(entry)

    def with_fields(self, fields: Fields) -> Entry:
        entry = self.pool.acquire(self)
        try:
            return entry.with_fields(fields)
        finally:
            self.pool.release(entry)

    # -------------------------------------------------------------------------
    # Dispatch
    # -------------------------------------------------------------------------

    def _log(
        self,
        level: Level,
        message: str,
        fields: Fields | None = None,
        caller: Any = _RESOLVE,
        *,
        terminate: bool = True,
    ) -> None:
        sink = self.sink_for(level)
        if sink.enabled(level):
            if caller is _RESOLVE:
                caller = resolve_caller(self.caller_skip, self.project_name)
            sink.emit(LogRecord.create(level, message, fields, caller))
        if terminate and level >= Level.FATAL:
            # Hooks are closed first so queued documents reach the agent.
            self.close_hooks()
            self.exit_func(1)

    def log(
        self,
        level: Level,
        message: str,
        fields: Fields | None = None,
        caller: CallerLocation | None = None,
    ) -> None:
        """Emit a record with an explicit caller. Never terminates the process."""
        self._log(level, message, fields, caller, terminate=False)

    def debug(self, *args: Any) -> None:
        self._log(Level.DEBUG, join_args(args))

    def debugf(self, fmt: str, *args: Any) -> None:
        self._log(Level.DEBUG, fmt % args if args else fmt)

    def info(self, *args: Any) -> None:
        self._log(Level.INFO, join_args(args))

    def infof(self, fmt: str, *args: Any) -> None:
        self._log(Level.INFO, fmt % args if args else fmt)

    def warn(self, *args: Any) -> None:
        self._log(Level.WARN, join_args(args))

    def warnf(self, fmt: str, *args: Any) -> None:
        self._log(Level.WARN, fmt % args if args else fmt)

    def error(self, *args: Any) -> None:
        self._log(Level.ERROR, join_args(args))

    def errorf(self, fmt: str, *args: Any) -> None:
        self._log(Level.ERROR, fmt % args if args else fmt)

    def fatal(self, *args: Any) -> None:
        self._log(Level.FATAL, join_args(args))

    def fatalf(self, fmt: str, *args: Any) -> None:
        self._log(Level.FATAL, fmt % args if args else fmt)


# =============================================================================
# Configuration Logic
# =============================================================================


def _build_local_formatter(log_settings: LoggingSettings, agent_settings: AgentSettings) -> Formatter:
    if log_settings.format == LogFormat.JSON:
        return StructuredFormatter(
            agent_settings.identity_fields(),
            disable_sorting=log_settings.disable_sorting,
            quote_empty_fields=log_settings.quote_empty_fields,
        )
    return TextFormatter(
        log_settings.timestamp_format,
        disable_sorting=log_settings.disable_sorting,
        quote_empty_fields=log_settings.quote_empty_fields,
    )


def _build_sinks(log_settings: LoggingSettings, formatter: Formatter) -> tuple[LoggerSink, LoggerSink]:
    error_level = parse_level(log_settings.error_level)
    access = LoggerSink.from_target("access", log_settings.access_level, log_settings.access_log, formatter)
    if log_settings.error_log == log_settings.access_log:
        # One file, one handle, one lock.
        return access, LoggerSink("error", error_level, access.output, formatter, lock=access.lock)
    try:
        error = LoggerSink.from_target("error", error_level, log_settings.error_log, formatter)
    except ConfigurationError:
        access.close()
        raise
    return access, error


def configure_logging(
    log_settings: LoggingSettings | None = None,
    agent_settings: AgentSettings | None = None,
    *,
    exit_func: Callable[[int], Any] = sys.exit,
    extra_hooks: Iterable[Hook] = (),
) -> LoggingContext:
    """
    Build a LoggingContext from settings.

    Args:
        log_settings: sink configuration, loaded from the environment when None
        agent_settings: log agent configuration, loaded from the environment when None
        exit_func: called with 1 after a fatal record
        extra_hooks: additional hooks attached to both sinks

    Raises:
        ConfigurationError: a level, output or agent setting cannot be applied.
            Nothing stays open when this is raised.
    """
    if log_settings is None or agent_settings is None:
        settings = Settings()
        log_settings = log_settings or settings.logging
        agent_settings = agent_settings or settings.agent

    formatter = _build_local_formatter(log_settings, agent_settings)
    access, error = _build_sinks(log_settings, formatter)
    context = LoggingContext(access, error, project_name=log_settings.project_name, exit_func=exit_func)

    if agent_settings.enabled:
        agent_formatter = StructuredFormatter(
            agent_settings.identity_fields(),
            pool=context.pool,
            disable_sorting=log_settings.disable_sorting,
            quote_empty_fields=log_settings.quote_empty_fields,
        )
        try:
            shipper = RemoteShipper.connect(
                agent_settings.dsn,
                agent_formatter,
                connect_timeout=agent_settings.connect_timeout,
                channel_size=agent_settings.channel_size,
                policy=agent_settings.policy,
                block_timeout=agent_settings.block_timeout,
            )
        except ConfigurationError:
            context.close()
            raise
        context.add_hook(shipper)

    for hook in extra_hooks:
        context.add_hook(hook)
    return context


__all__ = ["CALLER_SKIP", "LoggingContext", "configure_logging"]
