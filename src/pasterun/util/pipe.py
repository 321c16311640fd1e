"""
A synchronous in-memory pipe connecting one writing thread to one reading
thread.

Writes are not buffered: :meth:`PipeWriter.write` returns only after the
reader has consumed every byte of it, so at most one write's worth of data is
ever held in memory regardless of how much flows through the pipe.
"""

from __future__ import annotations

import threading
import typing

from ..exceptions import BodyProducerError, ClosedPipeError


class _Pipe:
    def __init__(self) -> None:
        self._cond = threading.Condition()
        self._pending: memoryview | None = None
        self._read_closed = False
        self._read_error: BaseException | None = None
        self._write_closed = False
        self._write_error: BaseException | None = None

    def read(self, size: int = -1) -> bytes:
        with self._cond:
            while True:
                if self._read_closed:
                    raise ClosedPipeError()
                if self._pending is not None:
                    if size is None or size < 0 or size >= len(self._pending):
                        chunk, self._pending = self._pending, None
                    else:
                        chunk = self._pending[:size]
                        self._pending = self._pending[size:]
                    if self._pending is None:
                        self._cond.notify_all()
                    return chunk.tobytes()
                if self._write_closed:
                    if self._write_error is not None:
                        error = self._write_error
                        raise BodyProducerError(error) from error
                    return b""
                self._cond.wait()

    def write(self, data: bytes) -> int:
        view = memoryview(data).cast("B")
        with self._cond:
            if self._write_closed:
                raise ClosedPipeError()
            if self._read_closed:
                raise self._read_error or ClosedPipeError()
            if not view:
                return 0

            self._pending = view
            self._cond.notify_all()
            while self._pending is not None:
                if self._read_closed:
                    consumed = len(view) - len(self._pending)
                    self._pending = None
                    raise self._read_error or ClosedPipeError(
                        f"read side closed after {consumed} of {len(view)} bytes"
                    )
                self._cond.wait()
            return len(view)

    def close_read(self, error: BaseException | None) -> None:
        with self._cond:
            if not self._read_closed:
                self._read_closed = True
                self._read_error = error
            self._cond.notify_all()

    def close_write(self, error: BaseException | None) -> None:
        with self._cond:
            if not self._write_closed:
                self._write_closed = True
                self._write_error = error
            self._cond.notify_all()


class PipeReader:
    """The read half of a pipe. Iterating yields chunks until end-of-stream."""

    def __init__(self, pipe: _Pipe) -> None:
        self._pipe = pipe

    def read(self, size: int = -1) -> bytes:
        """
        Block until the writer supplies data, then return up to ``size`` bytes
        of it. Returns ``b""`` once the writer has closed cleanly. If it closed
        with an error, raises :class:`~pasterun.exceptions.BodyProducerError`
        wrapping that error.
        """
        return self._pipe.read(size)

    def __iter__(self) -> typing.Iterator[bytes]:
        while True:
            chunk = self.read()
            if not chunk:
                return
            yield chunk

    def close(self, error: BaseException | None = None) -> None:
        """
        Close the read side. Any blocked or future write fails with ``error``,
        or :class:`~pasterun.exceptions.ClosedPipeError` if none is given.
        """
        self._pipe.close_read(error)


class PipeWriter:
    """The write half of a pipe."""

    def __init__(self, pipe: _Pipe) -> None:
        self._pipe = pipe

    def write(self, data: bytes) -> int:
        """Block until the reader has consumed all of ``data``."""
        return self._pipe.write(data)

    def close(self, error: BaseException | None = None) -> None:
        """
        Close the write side. Readers see end-of-stream, or ``error`` wrapped
        in :class:`~pasterun.exceptions.BodyProducerError` when one is given.
        Only the first close has any effect.
        """
        self._pipe.close_write(error)


def pipe() -> tuple[PipeReader, PipeWriter]:
    """Create a connected ``(reader, writer)`` pair."""
    p = _Pipe()
    return PipeReader(p), PipeWriter(p)
