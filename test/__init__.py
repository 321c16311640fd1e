from __future__ import annotations

import io
import os
import threading
import time
import typing

from urllib3.response import HTTPResponse

# We use timeouts in two different ways in our tests
#
# 1. To bound how long a test may wait for something that should happen
#    promptly, such as a cancelled call returning.
# 2. To make sure that the test does not hang even if the operation should
#    succeed, we want to use a long timeout, even more so on CI where tests
#    can be really slow
SHORT_TIMEOUT = 0.2
LONG_TIMEOUT = 2.0
if os.environ.get("CI") or os.environ.get("GITHUB_ACTIONS") == "true":
    LONG_TIMEOUT = 10.0


def wait_for_threads(name: str, timeout: float = LONG_TIMEOUT) -> bool:
    """Wait until no thread called ``name`` is alive. False on timeout."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if not any(t.name == name for t in threading.enumerate()):
            return True
        time.sleep(0.01)
    return False


class LargeFileMock(io.RawIOBase):
    """
    A read-only stream of ``size`` bytes that are generated on demand, so
    tests can upload far more than they could hold in memory.
    """

    def __init__(self, size: int = 1024 * 1024 * 1024, fill: bytes = b"a") -> None:
        self.bytes_read = 0
        self.bytes_max = size
        self.fill = fill
        self.largest_read = 0

    def readable(self) -> bool:
        return True

    def read(self, size: int | None = -1) -> bytes:
        if self.bytes_read >= self.bytes_max:
            return b""

        if size is None or size < 0:
            length = self.bytes_max - self.bytes_read
        else:
            length = min(size, self.bytes_max - self.bytes_read)

        self.bytes_read += length
        self.largest_read = max(self.largest_read, length)
        return self.fill * length


class FailingReader(io.RawIOBase):
    """Yields ``good`` once, then fails every read with ``error``."""

    def __init__(self, good: bytes, error: BaseException) -> None:
        self.good = good
        self.error = error
        self.reads = 0

    def readable(self) -> bool:
        return True

    def read(self, size: int | None = -1) -> bytes:
        self.reads += 1
        if self.reads == 1:
            return self.good
        raise self.error


class BlockingReader(io.RawIOBase):
    """
    Yields ``first`` and then blocks until :meth:`release` is called, after
    which it yields ``more`` forever. Used to hold an upload open.
    """

    def __init__(self, first: bytes = b"started", more: bytes = b"x" * 1024) -> None:
        self.first = first
        self.more = more
        self.blocked = threading.Event()
        self._released = threading.Event()
        self.reads = 0

    def readable(self) -> bool:
        return True

    def release(self) -> None:
        self._released.set()

    def read(self, size: int | None = -1) -> bytes:
        self.reads += 1
        if self.reads == 1:
            return self.first
        self.blocked.set()
        self._released.wait(LONG_TIMEOUT * 5)
        return self.more


class FakeTransport:
    """
    Records requests and answers each with a canned response, standing in
    for a ``PoolManager``.

    Request bodies that are streams are read to the end the way urllib3
    does, in ``blocksize`` chunks. Only the total size and the first
    ``keep`` bytes are kept.
    """

    def __init__(
        self,
        status: int = 200,
        body: bytes = b"",
        headers: typing.Mapping[str, str] | None = None,
        blocksize: int = 16384,
        keep: int = 1024 * 1024,
    ) -> None:
        self.status = status
        self.body = body
        self.headers = dict(headers or {})
        self.blocksize = blocksize
        self.keep = keep
        self.calls: list[dict[str, typing.Any]] = []
        self.sent = b""
        self.sent_size = 0
        self.largest_chunk = 0

    @property
    def last_call(self) -> dict[str, typing.Any]:
        return self.calls[-1]

    def _consume(self, body: typing.Any) -> None:
        kept = []
        while True:
            chunk = body.read(self.blocksize)
            if not chunk:
                break
            self.sent_size += len(chunk)
            self.largest_chunk = max(self.largest_chunk, len(chunk))
            if sum(map(len, kept)) < self.keep:
                kept.append(chunk)
        self.sent = b"".join(kept)

    def urlopen(self, method: str, url: str, **kw: typing.Any) -> HTTPResponse:
        self.calls.append(dict(kw, method=method, url=url))
        body = kw.get("body")
        if body is not None and hasattr(body, "read"):
            self._consume(body)
        return HTTPResponse(
            body=io.BytesIO(self.body),
            headers=self.headers,
            status=self.status,
            preload_content=kw.get("preload_content", True),
        )
