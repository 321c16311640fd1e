"""
Connection pools whose in-flight requests can be aborted from another thread.

urllib3 offers no way to interrupt a request that is blocked on the network.
The pools here record every connection a thread checks out while a
:class:`ConnectionTracker` is active on it, so another thread can shut those
connections down. A blocked send or receive then fails at once and the
request thread unwinds normally.
"""

from __future__ import annotations

import contextlib
import logging
import socket
import threading
import typing

from urllib3 import PoolManager
from urllib3.connection import HTTPConnection, HTTPSConnection
from urllib3.connectionpool import HTTPConnectionPool, HTTPSConnectionPool

if typing.TYPE_CHECKING:
    from urllib3.connection import BaseHTTPConnection

log = logging.getLogger(__name__)

_local = threading.local()


def _current_tracker() -> ConnectionTracker | None:
    return getattr(_local, "tracker", None)


def _shutdown(conn: BaseHTTPConnection) -> None:
    sock = getattr(conn, "sock", None)
    if sock is None:
        return
    try:
        sock.shutdown(socket.SHUT_RDWR)
    except OSError as e:
        # Already closed or never connected; nothing left to interrupt.
        log.debug("Socket of %r already unusable: %r", conn, e)


class ConnectionTracker:
    """
    The connections used by one request.

    Activate it on the thread that runs the request. Once :meth:`abort` has
    been called, every tracked connection is shut down, including ones that
    only finish connecting afterwards.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._connections: list[BaseHTTPConnection] = []
        self._aborted = False

    @property
    def aborted(self) -> bool:
        return self._aborted

    @contextlib.contextmanager
    def activate(self) -> typing.Iterator[ConnectionTracker]:
        previous = _current_tracker()
        _local.tracker = self
        try:
            yield self
        finally:
            _local.tracker = previous

    def add(self, conn: BaseHTTPConnection) -> None:
        with self._lock:
            self._connections.append(conn)
            if self._aborted:
                _shutdown(conn)

    def connected(self, conn: BaseHTTPConnection) -> None:
        with self._lock:
            if self._aborted:
                _shutdown(conn)

    def abort(self) -> None:
        with self._lock:
            self._aborted = True
            connections = list(self._connections)
            for conn in connections:
                _shutdown(conn)
        log.debug("Aborted %d connection(s)", len(connections))


class _TrackedConnectionMixin:
    def connect(self) -> None:
        super().connect()  # type: ignore[misc]
        tracker = _current_tracker()
        if tracker is not None:
            tracker.connected(typing.cast("BaseHTTPConnection", self))


class TrackedHTTPConnection(_TrackedConnectionMixin, HTTPConnection):
    pass


class TrackedHTTPSConnection(_TrackedConnectionMixin, HTTPSConnection):
    pass


class _TrackedPoolMixin:
    def _get_conn(self, timeout: float | None = None) -> BaseHTTPConnection:
        conn: BaseHTTPConnection = super()._get_conn(timeout)  # type: ignore[misc]
        tracker = _current_tracker()
        if tracker is not None:
            tracker.add(conn)
        return conn


class TrackedHTTPConnectionPool(_TrackedPoolMixin, HTTPConnectionPool):
    ConnectionCls = TrackedHTTPConnection


class TrackedHTTPSConnectionPool(_TrackedPoolMixin, HTTPSConnectionPool):
    ConnectionCls = TrackedHTTPSConnection


class CancellablePoolManager(PoolManager):
    """
    A :class:`urllib3.PoolManager` whose requests stop when they are
    cancelled, instead of only being abandoned.

    It is the default transport. Pass one to
    :func:`pasterun.options.transport` to customize pooling while keeping
    this behavior; other transports still return promptly on cancellation
    but leave the request running in the background until it completes.
    """

    def __init__(self, *args: typing.Any, **kwargs: typing.Any) -> None:
        super().__init__(*args, **kwargs)
        self.pool_classes_by_scheme = {
            "http": TrackedHTTPConnectionPool,
            "https": TrackedHTTPSConnectionPool,
        }
