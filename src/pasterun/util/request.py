from __future__ import annotations

import typing

from urllib3 import HTTPHeaderDict

from .._version import __version__

DEFAULT_USER_AGENT = f"pasterun/{__version__}"


def make_headers(
    token: str = "",
    extra: typing.Iterable[tuple[str, str]] = (),
    content_type: str | None = None,
    accept: str | None = None,
) -> HTTPHeaderDict:
    """
    Build the headers of a request to the paste service.

    Later sources override earlier ones, case-insensitively:
    ``User-Agent`` and ``accept`` first, then the caller's ``extra`` headers
    in order, then ``content_type`` and finally the bearer ``token``.

    :param token:
        Bearer credential for the 'Authorization' header, omitted when empty.

    :param extra:
        ``(name, value)`` pairs applied verbatim.

    :param content_type:
        Value of the 'Content-Type' header, for requests with a body.

    :param accept:
        Value of the 'Accept' header.

    Example:

    .. code-block:: python

        from pasterun.util import make_headers

        print(dict(make_headers(token="s3cret", accept="application/json")))
        # {'User-Agent': 'pasterun/1.0.0', 'Accept': 'application/json',
        #  'Authorization': 'Bearer s3cret'}
    """
    headers = HTTPHeaderDict({"User-Agent": DEFAULT_USER_AGENT})
    if accept:
        headers["Accept"] = accept

    for name, value in extra:
        headers[name] = value

    if content_type:
        headers["Content-Type"] = content_type

    if token:
        headers["Authorization"] = f"Bearer {token}"

    return headers
