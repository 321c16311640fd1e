"""
Per-call request configuration.

Every public call takes any number of options, small functions that each
return an updated copy of an immutable :class:`RequestConfig`. They are
applied in order, so for a setting given twice the last one wins::

    import pasterun
    from pasterun.options import author, title, token

    pasterun.upload(fp, author("ann"), title("notes"), token("s3cret"))
"""

from __future__ import annotations

import dataclasses
import typing

from .exceptions import InvalidHeadersError

if typing.TYPE_CHECKING:
    from urllib3.response import BaseHTTPResponse

    from .util.cancel import CancelToken

#: Used when no :func:`base_url` option is given.
DEFAULT_BASE_URL = "https://api.paste.run/"


class Transport(typing.Protocol):
    """
    What a transport must provide. Any urllib3 ``PoolManager``,
    ``ProxyManager`` or connection pool qualifies.
    """

    def urlopen(
        self, method: str, url: str, **kw: typing.Any
    ) -> BaseHTTPResponse:  # pragma: no cover
        ...


@dataclasses.dataclass(frozen=True)
class RequestConfig:
    """
    The fully resolved settings of a single call.

    Empty strings mean "not set": empty form fields are left out of an
    upload, an empty token sends no ``Authorization`` header and an empty
    base URL means :data:`DEFAULT_BASE_URL`.
    """

    author: str = ""
    title: str = ""
    description: str = ""
    paste_type: str = ""
    token: str = ""
    base_url: str = ""
    #: Flat ``(name, value, name, value, ...)`` sequence, always of even length.
    headers: tuple[str, ...] = ()
    cancel: CancelToken | None = None
    transport: Transport | None = None
    query: str = ""

    @property
    def resolved_base_url(self) -> str:
        return self.base_url or DEFAULT_BASE_URL

    def header_pairs(self) -> typing.Iterator[tuple[str, str]]:
        for i in range(0, len(self.headers) - 1, 2):
            yield self.headers[i], self.headers[i + 1]


Option = typing.Callable[[RequestConfig], RequestConfig]


def _setter(field: str, value: typing.Any) -> Option:
    def apply(config: RequestConfig) -> RequestConfig:
        return dataclasses.replace(config, **{field: value})

    return apply


def author(value: str) -> Option:
    """Author of the paste, for uploads."""
    return _setter("author", value)


def title(value: str) -> Option:
    """Title of the paste, for uploads."""
    return _setter("title", value)


def description(value: str) -> Option:
    """Description of the paste, for uploads."""
    return _setter("description", value)


def paste_type(value: str) -> Option:
    """Type of the paste, for uploads."""
    return _setter("paste_type", value)


def token(value: str) -> Option:
    """Bearer token sent in the ``Authorization`` header."""
    return _setter("token", value)


def cancel(value: CancelToken) -> Option:
    """Abort the call once ``value`` fires."""
    return _setter("cancel", value)


def transport(value: Transport) -> Option:
    """
    Send the request through ``value`` instead of the shared
    :class:`~pasterun.poolmanager.CancellablePoolManager`.
    """
    return _setter("transport", value)


def base_url(value: str) -> Option:
    """Talk to the API at ``value`` instead of :data:`DEFAULT_BASE_URL`."""
    return _setter("base_url", value)


def headers(*pairs: str) -> Option:
    """
    Extra HTTP headers given as alternating names and values::

        headers("X-Trace", "abc", "User-Agent", "my-tool/1.0")

    Raises :class:`~pasterun.exceptions.InvalidHeadersError` right away when
    a value is missing.
    """
    if len(pairs) % 2 != 0:
        raise InvalidHeadersError(pairs)
    return _setter("headers", tuple(pairs))


def query(value: str) -> Option:
    """Search text, for :func:`pasterun.get_languages`."""
    return _setter("query", value)


def resolve_config(
    base: RequestConfig | None = None, options: typing.Iterable[Option] = ()
) -> RequestConfig:
    """
    Apply ``options`` in order on top of ``base`` and return the result.

    No I/O happens here, and a malformed header list is rejected before the
    caller opens any stream or connection.
    """
    config = base if base is not None else RequestConfig()
    for option in options:
        config = option(config)
    if len(config.headers) % 2 != 0:
        raise InvalidHeadersError(config.headers)
    return config
