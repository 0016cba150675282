"""
Asynchronous delivery of structured records to a remote log agent.

The logging thread only formats and enqueues; a single background worker owns
the connection and performs every write. Delivery is best effort: a full
queue drops the record, a broken connection fails every later send, and both
are visible only through `RemoteShipper.stats`.
"""

from __future__ import annotations

import errno
import queue
import socket
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Protocol
from urllib.parse import urlsplit

import structlog

from .exceptions import AgentUnavailable, ConfigurationError, SerializationError
from .formatters import StructuredFormatter
from .record import LogRecord
from .sinks import Hook

logger = structlog.get_logger(__name__)

DEFAULT_CHANNEL_SIZE = 1024

_STOP = object()


class Connection(Protocol):
    def sendall(self, data: bytes, /) -> None: ...

    def close(self) -> None: ...


class DeliveryPolicy(str, Enum):
    DROP = "drop"
    BLOCK = "block"


@dataclass(frozen=True)
class ShipperStats:
    enqueued: int = 0
    sent: int = 0
    dropped: int = 0
    failed: int = 0


# =============================================================================
# Dialing
# =============================================================================


def _dial_inet(host: str, port: int, kind: socket.SocketKind, timeout: float) -> socket.socket:
    if kind == socket.SOCK_STREAM:
        return socket.create_connection((host, port), timeout=timeout)
    family, socktype, proto, _, addr = socket.getaddrinfo(host, port, type=kind)[0]
    sock = socket.socket(family, socktype, proto)
    try:
        sock.connect(addr)
    except OSError:
        sock.close()
        raise
    return sock


def dial(dsn: str, timeout: float = 5.0) -> socket.socket:
    """Open the agent connection described by `dsn`.

    Supported forms: `tcp://host:port`, `udp://host:port`, `unix:///path/to.sock`.
    """
    parts = urlsplit(dsn)
    scheme = parts.scheme.lower()
    try:
        if scheme in ("tcp", "tcp4", "tcp6", "udp", "udp4", "udp6"):
            if not parts.hostname or parts.port is None:
                raise AgentUnavailable(dsn=dsn, reason="host and port are required")
            kind = socket.SOCK_STREAM if scheme.startswith("tcp") else socket.SOCK_DGRAM
            sock = _dial_inet(parts.hostname, parts.port, kind, timeout)
        elif scheme == "unix":
            path = parts.path or parts.netloc
            if not path:
                raise AgentUnavailable(dsn=dsn, reason="socket path is required")
            sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
            sock.settimeout(timeout)
            try:
                sock.connect(path)
            except OSError:
                sock.close()
                raise
        else:
            raise AgentUnavailable(dsn=dsn, reason=f"unsupported scheme {parts.scheme!r}")
    except ValueError as exc:
        if isinstance(exc, ConfigurationError):
            raise
        raise AgentUnavailable(dsn=dsn, reason=str(exc)) from exc
    except OSError as exc:
        raise AgentUnavailable(dsn=dsn, reason=str(exc)) from exc
    # The timeout only bounds the dial; sends block on the worker thread.
    sock.settimeout(None)
    return sock


# =============================================================================
# Hook
# =============================================================================


class RemoteShipper(Hook):
    """Hook that ships every record it receives as one JSON line.

    Args:
        connection: established connection, written only by the worker thread
        formatter: renders records, carrying the identity fields
        channel_size: capacity of the delivery queue
        policy: DROP discards when the queue is full; BLOCK waits up to
            `block_timeout` seconds first
        levels: levels to ship, all levels when None
    """

    def __init__(
        self,
        connection: Connection,
        formatter: StructuredFormatter,
        *,
        channel_size: int = DEFAULT_CHANNEL_SIZE,
        policy: DeliveryPolicy | str = DeliveryPolicy.DROP,
        block_timeout: float = 1.0,
        levels: Iterable[int] | None = None,
    ):
        if channel_size < 1:
            raise ConfigurationError(
                f"channel size must be positive, got {channel_size}",
                details={"channel_size": channel_size},
            )
        self.formatter = formatter
        self.policy = DeliveryPolicy(policy)
        self.block_timeout = block_timeout
        self.levels = frozenset(levels) if levels is not None else None
        self._conn = connection
        self._queue: queue.Queue[object] = queue.Queue(maxsize=channel_size)
        self._stats_lock = threading.Lock()
        self._state_lock = threading.Lock()
        self._counts = {"enqueued": 0, "sent": 0, "dropped": 0, "failed": 0}
        self._broken = False
        self._closed = False
        self._worker = threading.Thread(target=self._run, name="duolog-shipper", daemon=True)
        self._worker.start()

    @classmethod
    def connect(
        cls,
        dsn: str,
        formatter: StructuredFormatter,
        *,
        connect_timeout: float = 5.0,
        **kwargs,
    ) -> RemoteShipper:
        return cls(dial(dsn, connect_timeout), formatter, **kwargs)

    @property
    def stats(self) -> ShipperStats:
        with self._stats_lock:
            return ShipperStats(**self._counts)

    @property
    def broken(self) -> bool:
        return self._broken

    def _count(self, key: str, n: int = 1) -> None:
        with self._stats_lock:
            self._counts[key] += n

    def fire(self, record: LogRecord) -> None:
        if self._closed:
            self._count("dropped")
            return
        try:
            document = self.formatter.format(record).encode("utf-8")
        except SerializationError:
            self._count("failed")
            return
        # close() may have run while the record was being formatted.
        with self._state_lock:
            if self._closed:
                self._count("dropped")
                return
            try:
                if self.policy is DeliveryPolicy.BLOCK:
                    self._queue.put(document, timeout=self.block_timeout)
                else:
                    self._queue.put_nowait(document)
            except queue.Full:
                self._count("dropped")
                return
            self._count("enqueued")

    def close(self, drain: bool = True, timeout: float = 5.0) -> None:
        """Stop the worker and close the connection.

        With `drain` the queued documents are delivered first, otherwise they
        are discarded and counted as dropped.
        """
        with self._state_lock:
            if self._closed:
                return
            self._closed = True
        if not drain:
            discarded = 0
            while True:
                try:
                    self._queue.get_nowait()
                except queue.Empty:
                    break
                self._queue.task_done()
                discarded += 1
            self._count("dropped", discarded)
        try:
            self._queue.put(_STOP, timeout=timeout)
        except queue.Full:
            pass
        self._worker.join(timeout)
        try:
            self._conn.close()
        except OSError:
            pass

    # -------------------------------------------------------------------------
    # Worker
    # -------------------------------------------------------------------------

    def _run(self) -> None:
        while True:
            document = self._queue.get()
            try:
                if document is _STOP:
                    return
                self._send(document)  # type: ignore[arg-type]
            finally:
                self._queue.task_done()

    def _send(self, document: bytes) -> None:
        if self._broken:
            self._count("failed")
            return
        try:
            self._conn.sendall(document)
        except OSError as exc:
            if exc.errno == errno.EMSGSIZE:
                self._count("failed")
                logger.warning("log document too large for the agent connection", size=len(document))
                return
            self._broken = True
            self._count("failed")
            logger.warning("log agent connection lost", error=str(exc))
            return
        self._count("sent")
