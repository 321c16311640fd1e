from __future__ import annotations

import dataclasses
import io
import logging
import os
import threading
import typing
from concurrent.futures import Future

from urllib3.util.retry import Retry

from .exceptions import (
    BodyProducerError,
    RequestCancelled,
    ResponseError,
    ResponseFormatError,
)
from .options import Option, RequestConfig, resolve_config
from .pipeline import UploadPipeline
from .poolmanager import CancellablePoolManager, ConnectionTracker
from .response import LanguageInfo, PasteInfo, parse_language_catalog
from .util.request import make_headers
from .util.url import languages_url, paste_id_from_reference, paste_url

if typing.TYPE_CHECKING:
    from urllib3.response import BaseHTTPResponse

    from .filepost import _SupportsRead
    from .options import Transport

log = logging.getLogger(__name__)

#: Nothing is ever retried. GET requests follow redirects, like a browser.
NO_RETRIES = Retry(total=False)
GET_RETRIES = Retry(connect=0, read=0, status=0, other=0, redirect=10)

_DEFAULT_TRANSPORT = CancellablePoolManager()


def _release_late_response(future: Future[BaseHTTPResponse]) -> None:
    if future.cancelled() or future.exception() is not None:
        return
    response = future.result()
    log.debug("Releasing response that arrived after cancellation: %d", response.status)
    response.close()
    response.release_conn()


def _read_text(response: BaseHTTPResponse) -> str:
    """Read the whole body as stripped text and release the connection."""
    try:
        body = response.read()
    finally:
        response.release_conn()
    return body.decode("utf-8", "replace").strip()


def _check_status(response: BaseHTTPResponse, expected: int) -> None:
    """
    Raise :class:`~pasterun.exceptions.ResponseError` unless ``response`` has
    the ``expected`` status. The service explains failures in plain text, so
    the whole body, stripped, becomes the error message.
    """
    if response.status == expected:
        return
    raise ResponseError(response.status, _read_text(response))


class PasteClient:
    """
    Client for the paste.run API.

    Options given here are defaults for every call made with this client;
    options passed to a call are applied after them and so take precedence::

        client = PasteClient(token("s3cret"), author("ann"))
        url = client.upload(b"hello", title("greeting"))

    The module-level :func:`pasterun.upload`, :func:`pasterun.get` and
    :func:`pasterun.get_languages` use a client without defaults.
    """

    def __init__(self, *options: Option) -> None:
        self.defaults = resolve_config(options=options)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(base_url={self.defaults.resolved_base_url!r})"

    def _config(self, options: typing.Iterable[Option]) -> RequestConfig:
        return resolve_config(self.defaults, options)

    def _urlopen(
        self, config: RequestConfig, method: str, url: str, **kw: typing.Any
    ) -> BaseHTTPResponse:
        transport: Transport = config.transport or _DEFAULT_TRANSPORT
        kw.setdefault("preload_content", False)

        token = config.cancel
        if token is None:
            return transport.urlopen(method, url, **kw)

        token.raise_if_cancelled()
        future: Future[BaseHTTPResponse] = Future()
        tracker = ConnectionTracker()

        def run() -> None:
            if not future.set_running_or_notify_cancel():
                return
            try:
                with tracker.activate():
                    future.set_result(transport.urlopen(method, url, **kw))
            except BaseException as e:
                future.set_exception(e)

        done = threading.Event()
        future.add_done_callback(lambda _: done.set())
        remove = token.add_callback(done.set)
        threading.Thread(target=run, name="pasterun-request", daemon=True).start()
        try:
            done.wait()
        finally:
            remove()

        # A failure caused by the cancellation itself is reported as cancellation.
        if future.done() and (future.exception() is None or not token.cancelled):
            return future.result()

        log.debug("%s %s cancelled before a response arrived", method, url)
        tracker.abort()
        future.add_done_callback(_release_late_response)
        raise RequestCancelled()

    def _upload(self, payload: _SupportsRead, config: RequestConfig) -> str:
        url = config.resolved_base_url
        log.debug("Uploading paste to %s", url)

        with UploadPipeline(config, payload) as pipeline:
            headers = make_headers(
                token=config.token,
                extra=config.header_pairs(),
                content_type=pipeline.content_type,
            )
            try:
                response = self._urlopen(
                    config,
                    "POST",
                    url,
                    body=pipeline.body,
                    headers=headers,
                    chunked=True,
                    retries=NO_RETRIES,
                    redirect=False,
                )
            except BodyProducerError as e:
                raise e.error from None
            except Exception as e:
                if pipeline.error is not None and pipeline.error is not e:
                    raise pipeline.error from e
                raise

        _check_status(response, 201)
        return _read_text(response)

    def upload(self, payload: _SupportsRead | bytes | str, *options: Option) -> str:
        """
        Upload the content of ``payload`` as a new paste and return its URL.

        :param payload:
            A readable binary stream, or the content itself as ``bytes`` or
            ``str``. Streams are read in chunks while the request is sent and
            may be arbitrarily large.
        """
        config = self._config(options)
        if isinstance(payload, str):
            payload = payload.encode("utf-8")
        if isinstance(payload, bytes):
            payload = io.BytesIO(payload)
        return self._upload(payload, config)

    def upload_file(self, path: str | os.PathLike[str], *options: Option) -> str:
        """
        Upload the file at ``path``. The paste title defaults to the file's
        base name.
        """
        base = dataclasses.replace(self.defaults, title=os.path.basename(path))
        config = resolve_config(base, options)
        with open(path, "rb") as fp:
            return self._upload(fp, config)

    def get(self, paste: str, *options: Option) -> PasteInfo:
        """
        Fetch a paste.

        :param paste:
            A full paste URL such as ``https://www.paste.run/abc123`` or just
            the paste ID.

        The returned :class:`~pasterun.response.PasteInfo` holds the raw
        content as a live stream, which must be closed once consumed.
        """
        config = self._config(options)
        url = paste_url(config.resolved_base_url, paste_id_from_reference(paste))
        headers = make_headers(token=config.token, extra=config.header_pairs())

        response = self._urlopen(
            config, "GET", url, headers=headers, retries=GET_RETRIES
        )
        _check_status(response, 200)
        return PasteInfo.from_response(response)

    def get_languages(self, *options: Option) -> list[LanguageInfo]:
        """
        Get information on all languages, or use
        :func:`~pasterun.options.query` to search for particular ones.
        """
        config = self._config(options)
        url = languages_url(config.resolved_base_url, config.query)
        headers = make_headers(
            token=config.token, extra=config.header_pairs(), accept="application/json"
        )

        response = self._urlopen(
            config, "GET", url, headers=headers, retries=GET_RETRIES
        )
        _check_status(response, 200)
        try:
            data = response.json()
        except ValueError as e:
            raise ResponseFormatError(f"invalid JSON: {e}") from e
        finally:
            response.release_conn()
        return parse_language_catalog(data)
