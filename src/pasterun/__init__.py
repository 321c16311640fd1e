"""
Python client for the paste.run paste service: streaming uploads, paste
retrieval and the language catalog.
"""

from __future__ import annotations

# Set default logging handler to avoid "No handler found" warnings.
import logging
import os
import typing
from logging import NullHandler

from . import exceptions, options
from ._version import __version__
from .client import PasteClient
from .options import DEFAULT_BASE_URL, Option, RequestConfig
from .poolmanager import CancellablePoolManager
from .response import ZERO_TIME, LanguageInfo, PasteInfo
from .util.cancel import CancelToken

if typing.TYPE_CHECKING:
    from .filepost import _SupportsRead

__license__ = "MIT"
__version__ = __version__

__all__ = (
    "CancelToken",
    "CancellablePoolManager",
    "DEFAULT_BASE_URL",
    "LanguageInfo",
    "Option",
    "PasteClient",
    "PasteInfo",
    "RequestConfig",
    "ZERO_TIME",
    "add_stderr_logger",
    "exceptions",
    "get",
    "get_languages",
    "options",
    "upload",
    "upload_file",
)

logging.getLogger(__name__).addHandler(NullHandler())


def add_stderr_logger(
    level: int = logging.DEBUG,
) -> logging.StreamHandler[typing.TextIO]:
    """
    Helper for quickly adding a StreamHandler to the logger. Useful for
    debugging.

    Returns the handler after adding it.
    """
    # This method needs to be in this __init__.py to get the __name__ correct
    # even if pasterun is vendored within another package.
    logger = logging.getLogger(__name__)
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.debug("Added a stderr logging handler to logger: %s", __name__)
    return handler


# ... Clean up.
del NullHandler


_DEFAULT_CLIENT = PasteClient()


def upload(payload: _SupportsRead | bytes | str, *options: Option) -> str:
    """
    Upload ``payload`` as a new paste and return the paste URL.

    A convenience, top-level function using a module-global
    :class:`~pasterun.client.PasteClient` with no default options.
    """
    return _DEFAULT_CLIENT.upload(payload, *options)


def upload_file(path: str | os.PathLike[str], *options: Option) -> str:
    """Upload the file at ``path``, titled with its base name by default."""
    return _DEFAULT_CLIENT.upload_file(path, *options)


def get(paste: str, *options: Option) -> PasteInfo:
    """
    Fetch a paste by URL or ID. The content of the returned
    :class:`~pasterun.response.PasteInfo` must be closed after use.
    """
    return _DEFAULT_CLIENT.get(paste, *options)


def get_languages(*options: Option) -> list[LanguageInfo]:
    """
    List all languages known to the service, or only those matching
    :func:`pasterun.options.query`.
    """
    return _DEFAULT_CLIENT.get_languages(*options)
