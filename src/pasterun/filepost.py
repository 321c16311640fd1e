from __future__ import annotations

import binascii
import os
import typing

from .fields import RequestField

if typing.TYPE_CHECKING:
    from .options import RequestConfig

#: Form name and placeholder filename of the part carrying the paste content.
FILE_FIELD_NAME = "file"
FILE_PLACEHOLDER_NAME = "-"

#: Size of the chunks copied from the payload into the body.
DEFAULT_BLOCKSIZE = 64 * 1024


class _SupportsWrite(typing.Protocol):
    def write(self, data: bytes) -> typing.Any:
        ...


class _SupportsRead(typing.Protocol):
    def read(self, size: int = ...) -> bytes | str:
        ...


def choose_boundary() -> str:
    """
    Our embarrassingly-simple replacement for mimetools.choose_boundary.
    """
    return binascii.hexlify(os.urandom(16)).decode()


def upload_fields(config: RequestConfig) -> typing.Iterator[RequestField]:
    """
    Yield the text fields of an upload in their wire order: ``author``,
    ``title``, ``desc`` and ``type``, skipping any that are empty.
    """
    for name, value in (
        ("author", config.author),
        ("title", config.title),
        ("desc", config.description),
        ("type", config.paste_type),
    ):
        if value:
            yield RequestField.text(name, value)


class MultipartWriter:
    """
    Incrementally write a multipart/form-data body to ``fp``.

    Nothing is buffered here: every header, value and content chunk is passed
    to ``fp.write`` as soon as it is produced, so the memory used is bounded by
    ``blocksize`` however large the streamed content is.

    :param fp:
        Any object with a ``write(bytes)`` method.
    :param boundary:
        If not specified, then a random boundary will be generated using
        :func:`pasterun.filepost.choose_boundary`.
    """

    def __init__(self, fp: _SupportsWrite, boundary: str | None = None) -> None:
        self._fp = fp
        self.boundary = boundary or choose_boundary()
        self._closed = False

    @property
    def content_type(self) -> str:
        return f"multipart/form-data; boundary={self.boundary}"

    def _write_part_headers(self, field: RequestField) -> None:
        if self._closed:
            raise ValueError("write to closed multipart writer")
        self._fp.write(f"--{self.boundary}\r\n".encode("latin-1"))
        self._fp.write(field.render_headers().encode("utf-8"))

    def write_part(self, field: RequestField) -> None:
        """Write a complete part, headers and ``field.data``."""
        self._write_part_headers(field)
        data = field.data
        if isinstance(data, str):
            data = data.encode("utf-8")
        if data:
            self._fp.write(data)
        self._fp.write(b"\r\n")

    def write_field(self, name: str, value: str) -> None:
        self.write_part(RequestField.text(name, value))

    def write_file(
        self,
        name: str,
        filename: str,
        source: _SupportsRead,
        blocksize: int = DEFAULT_BLOCKSIZE,
    ) -> int:
        """
        Write a file part whose content is copied from ``source`` one
        ``blocksize`` read at a time until it returns an empty chunk.

        Returns the number of content bytes copied.
        """
        self._write_part_headers(RequestField.file(name, filename))
        copied = 0
        while True:
            chunk = source.read(blocksize)
            if not chunk:
                break
            if isinstance(chunk, str):
                chunk = chunk.encode("utf-8")
            self._fp.write(chunk)
            copied += len(chunk)
        self._fp.write(b"\r\n")
        return copied

    def close(self) -> None:
        """Write the closing delimiter. Only the first call writes anything."""
        if self._closed:
            return
        self._closed = True
        self._fp.write(f"--{self.boundary}--\r\n".encode("latin-1"))


def write_upload_formdata(
    writer: MultipartWriter,
    config: RequestConfig,
    payload: _SupportsRead,
    blocksize: int = DEFAULT_BLOCKSIZE,
) -> int:
    """
    Write the body of a paste upload: the non-empty text fields of ``config``
    in their fixed order, then the paste content streamed from ``payload``.

    The closing delimiter is left to the caller, which may still need to
    decide whether the body completed. Returns the payload size in bytes.
    """
    for field in upload_fields(config):
        writer.write_part(field)
    return writer.write_file(FILE_FIELD_NAME, FILE_PLACEHOLDER_NAME, payload, blocksize)
