from __future__ import annotations

import dataclasses
import email.utils
import logging
import typing
from datetime import datetime, timezone

from .exceptions import ResponseFormatError

if typing.TYPE_CHECKING:
    from types import TracebackType

    from urllib3.response import BaseHTTPResponse

log = logging.getLogger(__name__)

#: Stands in for a missing or unparsable timestamp. An ``expires`` equal to
#: this means the paste never expires.
ZERO_TIME = datetime.min.replace(tzinfo=timezone.utc)


def parse_http_date(value: str | None) -> datetime:
    """
    Parse an HTTP-date header value such as ``Tue, 15 Nov 1994 08:12:31 GMT``.

    Returns :data:`ZERO_TIME` instead of raising when ``value`` is missing or
    not a valid date.
    """
    if not value:
        return ZERO_TIME
    try:
        parsed = email.utils.parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        log.debug("Ignoring unparsable HTTP date %r", value)
        return ZERO_TIME
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _content_length(value: str | None) -> int:
    try:
        length = int(value) if value is not None else -1
    except ValueError:
        return -1
    return length if length >= 0 else -1


@dataclasses.dataclass
class PasteInfo:
    """
    A fetched paste.

    ``content`` is the live, still unread response body. It stays open until
    :meth:`close` is called, which the ``with`` statement does for you::

        with pasterun.get("abc123") as paste:
            data = paste.read()
    """

    content: BaseHTTPResponse = dataclasses.field(repr=False)
    #: Declared size of the content in bytes, ``-1`` when unknown. Advisory only.
    size: int = -1
    content_type: str = ""
    language: str = ""
    #: Classifier: file name, .ext, MIME type, etc.
    paste_class: str = ""
    author: str = ""
    title: str = ""
    created: datetime = ZERO_TIME
    expires: datetime = ZERO_TIME

    @classmethod
    def from_response(cls, response: BaseHTTPResponse) -> PasteInfo:
        headers = response.headers
        return cls(
            content=response,
            size=_content_length(headers.get("Content-Length")),
            content_type=headers.get("Content-Type", ""),
            language=headers.get("Paste-Language", ""),
            paste_class=headers.get("Paste-Class", ""),
            author=headers.get("Created-By", ""),
            title=headers.get("Paste-Title", ""),
            created=parse_http_date(headers.get("Created-At")),
            expires=parse_http_date(headers.get("Expires")),
        )

    @property
    def never_expires(self) -> bool:
        return self.expires == ZERO_TIME

    def read(self, amt: int | None = None) -> bytes:
        return self.content.read(amt)

    def stream(self, amt: int = 2**16) -> typing.Iterator[bytes]:
        return self.content.stream(amt)

    def close(self) -> None:
        """Close the content stream and hand its connection back to the pool."""
        self.content.close()
        self.content.release_conn()

    def __enter__(self) -> PasteInfo:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()


@dataclasses.dataclass(frozen=True)
class LanguageInfo:
    """An entry of the language catalog."""

    name: str
    #: Classifier: file name, .ext, MIME type, etc.
    paste_class: str
    mode: str | None = None

    @classmethod
    def from_json(cls, entry: typing.Mapping[str, typing.Any]) -> LanguageInfo:
        return cls(
            name=entry.get("name", ""),
            paste_class=entry.get("class", ""),
            mode=entry.get("mode") or None,
        )


def parse_language_catalog(data: typing.Any) -> list[LanguageInfo]:
    """
    Decode the JSON document of the language catalog, an object whose
    ``results`` list holds one object per language. A missing or ``null``
    list means no languages.
    """
    if not isinstance(data, dict):
        raise ResponseFormatError(f"expected a JSON object, got {type(data).__name__}")
    results = data.get("results") or []
    if not isinstance(results, list):
        raise ResponseFormatError(
            f"expected 'results' to be a list, got {type(results).__name__}"
        )
    languages = []
    for entry in results:
        if not isinstance(entry, dict):
            raise ResponseFormatError(
                f"expected language entries to be objects, got {type(entry).__name__}"
            )
        languages.append(LanguageInfo.from_json(entry))
    return languages
