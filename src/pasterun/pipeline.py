"""
Streaming of upload bodies.

The multipart body of an upload is produced on a background thread and
written into a :func:`~pasterun.util.pipe.pipe`, while the calling thread
hands the read side to urllib3 as a chunked request body. Every write blocks
until urllib3 has taken the bytes, so the body is produced exactly as fast
as the connection accepts it and the payload is never held in memory.
"""

from __future__ import annotations

import logging
import threading
import typing

from .exceptions import RequestCancelled
from .filepost import DEFAULT_BLOCKSIZE, MultipartWriter, write_upload_formdata
from .util.pipe import PipeReader, PipeWriter, pipe

if typing.TYPE_CHECKING:
    from types import TracebackType

    from .filepost import _SupportsRead
    from .options import RequestConfig

log = logging.getLogger(__name__)


class UploadPipeline:
    """
    Produce the body of one upload on a background thread.

    Use it as a context manager. Leaving the ``with`` block closes the read
    side of the pipe however the block exits, which makes any pending or
    later write of the producer fail at once, so the producer thread can
    never stay blocked on a request that is no longer being sent::

        with UploadPipeline(config, payload) as pipeline:
            pool.urlopen("POST", url, body=pipeline.body, chunked=True,
                         headers={"Content-Type": pipeline.content_type})

    :param config:
        The resolved upload configuration.
    :param payload:
        Readable source of the paste content. It is read sequentially, one
        ``blocksize`` at a time, and is never rewound.
    :param boundary:
        Multipart boundary, random if not given.
    """

    def __init__(
        self,
        config: RequestConfig,
        payload: _SupportsRead,
        boundary: str | None = None,
        blocksize: int = DEFAULT_BLOCKSIZE,
    ) -> None:
        self.config = config
        self.payload = payload
        self.blocksize = blocksize
        self.body: PipeReader
        self._writer: PipeWriter
        self.body, self._writer = pipe()
        self._multipart = MultipartWriter(self._writer, boundary)
        self._thread = threading.Thread(
            target=self._produce, name="pasterun-upload-producer", daemon=True
        )
        self._abandoned = False
        self._error: BaseException | None = None
        self._remove_cancel_callback: typing.Callable[[], None] | None = None

    @property
    def content_type(self) -> str:
        return self._multipart.content_type

    @property
    def error(self) -> BaseException | None:
        """What made the producer fail, if it failed before being abandoned."""
        return self._error

    @property
    def producer(self) -> threading.Thread:
        return self._thread

    def start(self) -> None:
        if self.config.cancel is not None:
            self._remove_cancel_callback = self.config.cancel.add_callback(
                self._cancelled
            )
        self._thread.start()

    def _produce(self) -> None:
        try:
            size = write_upload_formdata(
                self._multipart, self.config, self.payload, self.blocksize
            )
            self._multipart.close()
        except BaseException as e:
            if self._abandoned:
                log.debug("Upload producer stopped, body no longer read: %r", e)
            else:
                log.debug("Upload producer failed: %r", e)
                self._error = e
            self._writer.close(e)
        else:
            log.debug("Upload body complete, %d payload bytes", size)
            self._writer.close()

    def _cancelled(self) -> None:
        self.abandon(RequestCancelled())

    def abandon(self, error: BaseException | None = None) -> None:
        """Stop reading the body. The producer's next write raises ``error``."""
        self._abandoned = True
        self.body.close(error)

    def join(self, timeout: float | None = None) -> bool:
        """Wait for the producer. Returns ``False`` if it is still running."""
        if self._thread.ident is None:
            return True
        self._thread.join(timeout)
        return not self._thread.is_alive()

    def __enter__(self) -> UploadPipeline:
        self.start()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if self._remove_cancel_callback is not None:
            self._remove_cancel_callback()
        self.abandon()
