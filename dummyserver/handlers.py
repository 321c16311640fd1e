from __future__ import annotations

import asyncio
import dataclasses
import itertools
import json
import logging
import threading
import typing
from datetime import datetime, timedelta, timezone

from tornado import httputil
from tornado.web import Application, RequestHandler

log = logging.getLogger(__name__)

PASTE_URL_PREFIX = "https://www.paste.run/"

LANGUAGES: list[dict[str, str]] = [
    {"name": "C", "class": ".c", "mode": "text/x-csrc"},
    {"name": "C++", "class": ".cpp", "mode": "text/x-c++src"},
    {"name": "Go", "class": ".go", "mode": "text/x-go"},
    {"name": "Plain Text", "class": "text/plain"},
    {"name": "Python", "class": ".py", "mode": "text/x-python"},
]


class Response:
    def __init__(
        self,
        body: str | bytes = "",
        status: str = "200 OK",
        headers: typing.Sequence[tuple[str, str]] | None = None,
        json: typing.Any | None = None,
    ) -> None:
        self.body = body
        self.status = status
        if json is not None:
            self.headers = list(headers or [("Content-type", "application/json")])
            self.body = _json_dumps(json)
        else:
            self.headers = list(headers or [("Content-type", "text/plain")])

    def __call__(self, request_handler: RequestHandler) -> None:
        status, reason = self.status.split(" ", 1)
        request_handler.set_status(int(status), reason)
        for header, value in self.headers:
            request_handler.set_header(header, value)

        if isinstance(self.body, str):
            request_handler.write(self.body.encode())
        else:
            request_handler.write(self.body)


def _json_dumps(value: typing.Any) -> str:
    return json.dumps(value)


@dataclasses.dataclass
class StoredPaste:
    content: bytes
    author: str = ""
    title: str = ""
    description: str = ""
    type: str = ""
    language: str = "Plain Text"
    paste_class: str = "text/plain"
    created_at: str = ""
    expires: str | None = None


@dataclasses.dataclass
class RecordedRequest:
    method: str
    uri: str
    headers: httputil.HTTPHeaders
    body: bytes


class PasteStore:
    """In-memory pastes plus a log of every request the app has seen."""

    def __init__(self, token: str = "") -> None:
        self.token = token
        self.pastes: dict[str, StoredPaste] = {}
        self.requests: list[RecordedRequest] = []
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    @classmethod
    def with_fixtures(cls, token: str = "") -> PasteStore:
        store = cls(token)
        now = datetime.now(timezone.utc).replace(microsecond=0)
        store.pastes["abc123"] = StoredPaste(
            content=b"print('hello')\n",
            author="ann",
            title="hello.py",
            language="Python",
            paste_class=".py",
            created_at=httputil.format_timestamp(now),
            expires=httputil.format_timestamp(now + timedelta(days=7)),
        )
        store.pastes["keeper"] = StoredPaste(
            content=b"kept forever",
            created_at="yesterday-ish",
        )
        return store

    def add(self, paste: StoredPaste) -> str:
        with self._lock:
            paste_id = f"p{next(self._ids):04d}"
            self.pastes[paste_id] = paste
        return paste_id

    @property
    def last_request(self) -> RecordedRequest:
        return self.requests[-1]


def _argument(request: httputil.HTTPServerRequest, name: str) -> str:
    values = request.body_arguments.get(name)
    if not values:
        return ""
    return values[0].decode("utf-8")


class PasteApp(RequestHandler):
    """
    A stand-in for the paste.run API.

    ``POST /`` creates a paste, ``GET /<id>?raw`` serves one and
    ``GET /languages`` lists the language catalog. A few extra paths make
    failure modes easy to reach:

    * ``POST /rate_limited`` always answers 429 with a plain-text reason.
    * ``GET /sleepy?raw`` answers only after ``SLEEPY_SECONDS``.
    """

    SLEEPY_SECONDS = 5.0

    @property
    def store(self) -> PasteStore:
        return typing.cast(PasteStore, self.application.settings["store"])

    def prepare(self) -> None:
        req = self.request
        self.store.requests.append(
            RecordedRequest(req.method or "", req.uri or "", req.headers, req.body)
        )

    async def get(self) -> None:
        """Handle GET requests"""
        await self._call_method()

    async def post(self) -> None:
        """Handle POST requests"""
        await self._call_method()

    async def _call_method(self) -> None:
        """Route on the method and the first path segment."""
        req = self.request
        target = req.path.strip("/")

        resp = self._check_auth(req)
        if resp is None:
            if req.method == "POST" and target == "":
                resp = self.upload(req)
            elif req.method == "POST" and target == "rate_limited":
                resp = Response("rate limited\n", status="429 Too Many Requests")
            elif req.method == "GET" and target == "languages":
                resp = self.languages(req)
            elif req.method == "GET" and target == "sleepy":
                await asyncio.sleep(self.SLEEPY_SECONDS)
                resp = Response("finally awake")
            elif req.method == "GET" and target and "/" not in target:
                resp = self.paste(req, target)
            else:
                resp = Response("not found\n", status="404 Not Found")

        resp(self)

    def _check_auth(self, request: httputil.HTTPServerRequest) -> Response | None:
        token = self.store.token
        auth = request.headers.get("Authorization")
        if auth is not None and auth != f"Bearer {token}":
            return Response("invalid token\n", status="401 Unauthorized")
        return None

    def upload(self, request: httputil.HTTPServerRequest) -> Response:
        "Store the uploaded paste, checking it conforms to the upload form"
        content_type = request.headers.get("Content-Type", "")
        if not content_type.startswith("multipart/form-data; boundary="):
            return Response(
                f"unexpected content type {content_type!r}\n",
                status="400 Bad Request",
            )

        files_ = request.files.get("file")
        if not files_ or len(files_) != 1:
            return Response("expected exactly one file\n", status="400 Bad Request")
        file_ = files_[0]
        if file_["filename"] != "-":
            return Response(
                f"unexpected filename {file_['filename']!r}\n",
                status="400 Bad Request",
            )

        paste = StoredPaste(
            content=file_["body"],
            author=_argument(request, "author"),
            title=_argument(request, "title"),
            description=_argument(request, "desc"),
            type=_argument(request, "type"),
            created_at=httputil.format_timestamp(datetime.now(timezone.utc)),
        )
        paste_id = self.store.add(paste)
        log.debug("Stored paste %s (%d bytes)", paste_id, len(paste.content))
        return Response(f"{PASTE_URL_PREFIX}{paste_id}\n", status="201 Created")

    def paste(self, request: httputil.HTTPServerRequest, paste_id: str) -> Response:
        "Serve the raw content of a paste along with its metadata headers"
        if "raw" not in request.query_arguments:
            return Response(
                "only raw pastes are served here\n", status="400 Bad Request"
            )
        paste = self.store.pastes.get(paste_id)
        if paste is None:
            return Response("paste not found\n", status="404 Not Found")

        headers = [
            ("Content-Type", "text/plain; charset=utf-8"),
            ("Paste-Language", paste.language),
            ("Paste-Class", paste.paste_class),
            ("Created-At", paste.created_at),
        ]
        if paste.author:
            headers.append(("Created-By", paste.author))
        if paste.title:
            headers.append(("Paste-Title", paste.title))
        if paste.expires is not None:
            headers.append(("Expires", paste.expires))
        return Response(paste.content, headers=headers)

    def languages(self, request: httputil.HTTPServerRequest) -> Response:
        "List the catalog, filtered by a case-insensitive name search"
        if request.headers.get("Accept") != "application/json":
            return Response("this endpoint serves JSON\n", status="406 Not Acceptable")

        query = self.get_query_argument("q", "")
        results = [
            lang for lang in LANGUAGES if query.lower() in lang["name"].lower()
        ]
        body: dict[str, typing.Any] = {"results": results}
        if query:
            body = {"q": query, **body}
        return Response(json=body)


def make_app(store: PasteStore) -> Application:
    return Application([(r".*", PasteApp)], store=store)
