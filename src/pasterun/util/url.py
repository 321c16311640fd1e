from __future__ import annotations

from urllib.parse import quote_plus

from ..exceptions import InvalidPasteReferenceError

#: Public address pastes are shared under. Paste URLs must start with it.
PASTE_URL_PREFIX = "https://www.paste.run/"

# Characters that cannot appear in a paste ID.
_FORBIDDEN_ID_CHARS = frozenset("./#?")


def _check_paste_id(reference: str, paste_id: str) -> str:
    if not paste_id or _FORBIDDEN_ID_CHARS.intersection(paste_id):
        raise InvalidPasteReferenceError(reference)
    return paste_id


def paste_id_from_reference(reference: str) -> str:
    """
    Extract the paste ID from ``reference``, which is either a full paste
    URL such as ``https://www.paste.run/abc123`` or a bare ID such as
    ``abc123``.

    Raises :class:`~pasterun.exceptions.InvalidPasteReferenceError` for URLs
    on any other host and for IDs containing any of ``./#?``.
    """
    if "://" in reference:
        if not reference.startswith(PASTE_URL_PREFIX):
            raise InvalidPasteReferenceError(reference)
        return _check_paste_id(reference, reference[len(PASTE_URL_PREFIX) :])
    return _check_paste_id(reference, reference)


def _join(base_url: str, path: str) -> str:
    if base_url.endswith("/"):
        base_url = base_url[:-1]
    return f"{base_url}/{path}"


def paste_url(base_url: str, paste_id: str) -> str:
    """URL of the raw content of ``paste_id``."""
    return _join(base_url, paste_id) + "?raw"


def languages_url(base_url: str, query: str = "") -> str:
    """URL of the language catalog, filtered by ``query`` when one is given."""
    url = _join(base_url, "languages")
    if query:
        url += "?q=" + quote_plus(query)
    return url
