from __future__ import annotations

from .cancel import CancelToken
from .pipe import PipeReader, PipeWriter, pipe
from .request import make_headers
from .url import PASTE_URL_PREFIX, languages_url, paste_id_from_reference, paste_url

__all__ = (
    "CancelToken",
    "PASTE_URL_PREFIX",
    "PipeReader",
    "PipeWriter",
    "languages_url",
    "make_headers",
    "paste_id_from_reference",
    "paste_url",
    "pipe",
)
