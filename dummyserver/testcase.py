from __future__ import annotations

import asyncio
import contextlib
import typing

from tornado import httpserver, ioloop

from dummyserver.handlers import PasteStore, make_app
from dummyserver.server import run_loop_in_thread, run_tornado_app


class PasteServerTestCase:
    """A simple paste.run stand-in, served by tornado for the whole class.

    ``store`` holds the pastes and records every request the server sees.
    """

    host = "localhost"
    token = "s3cret"
    port: typing.ClassVar[int]
    base_url: typing.ClassVar[str]

    store: typing.ClassVar[PasteStore]
    io_loop: typing.ClassVar[ioloop.IOLoop]
    server: typing.ClassVar[httpserver.HTTPServer]
    _stack: typing.ClassVar[contextlib.ExitStack]

    @classmethod
    def setup_class(cls) -> None:
        cls.store = PasteStore.with_fixtures(cls.token)

        with contextlib.ExitStack() as stack:
            io_loop = stack.enter_context(run_loop_in_thread())

            async def run_app() -> None:
                app = make_app(cls.store)
                cls.server, cls.port = run_tornado_app(app, cls.host)

            asyncio.run_coroutine_threadsafe(run_app(), io_loop.asyncio_loop).result()  # type: ignore[attr-defined]
            cls.io_loop = io_loop
            cls._stack = stack.pop_all()

        cls.base_url = f"http://{cls.host}:{cls.port}/"

    @classmethod
    def teardown_class(cls) -> None:
        cls.io_loop.add_callback(cls.server.stop)
        cls._stack.close()
