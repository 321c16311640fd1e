#!/usr/bin/env python

"""
Dummy server used for unit testing.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import contextlib
import logging
import sys
import threading
from collections.abc import Generator

import tornado.httpserver
import tornado.ioloop
import tornado.netutil
import tornado.web

log = logging.getLogger(__name__)


def run_tornado_app(
    app: tornado.web.Application, host: str
) -> tuple[tornado.httpserver.HTTPServer, int]:
    """Serve ``app`` on a free port of ``host``. Must run on the IOLoop thread."""
    http_server = tornado.httpserver.HTTPServer(app)

    sockets = tornado.netutil.bind_sockets(None, address=host)  # type: ignore[arg-type]
    port = sockets[0].getsockname()[1]
    http_server.add_sockets(sockets)
    return http_server, port


def get_unreachable_address() -> tuple[str, int]:
    # reserved as per rfc2606
    return ("something.invalid", 54321)


SERVER_THREAD_NAME = "dummyserver IOLoop"


@contextlib.contextmanager
def run_loop_in_thread(
    timeout: float = 10.0,
) -> Generator[tornado.ioloop.IOLoop, None, None]:
    """
    Run an asyncio-backed tornado IOLoop on a background thread while the
    block executes. Schedule work on it with ``io_loop.add_callback`` or
    ``asyncio.run_coroutine_threadsafe``. On exit the loop is stopped, every
    descriptor registered with it is closed and the thread is joined.
    """
    ready: concurrent.futures.Future[
        tuple[tornado.ioloop.IOLoop, asyncio.Event]
    ] = concurrent.futures.Future()
    failure: list[BaseException] = []

    async def serve() -> None:
        io_loop = tornado.ioloop.IOLoop.current()
        stop = asyncio.Event()
        ready.set_result((io_loop, stop))
        await stop.wait()

    def target() -> None:
        try:
            asyncio.run(serve())
        except BaseException as e:
            failure.append(e)
            if not ready.done():
                ready.set_exception(e)
        finally:
            # Only possible once the asyncio loop is no longer running.
            if ready.done() and ready.exception() is None:
                ready.result()[0].close(all_fds=True)

    thread = threading.Thread(target=target, name=SERVER_THREAD_NAME, daemon=True)
    thread.start()
    io_loop, stop = ready.result(timeout)
    try:
        yield io_loop
    finally:
        io_loop.add_callback(stop.set)
        thread.join(timeout)
        if failure:
            raise failure[0]


def main() -> int:
    # For debugging dummyserver itself - PYTHONPATH=src python -m dummyserver.server
    from .handlers import PasteStore, make_app

    host = "127.0.0.1"

    async def amain() -> None:
        app = make_app(PasteStore.with_fixtures())
        server, port = run_tornado_app(app, host)
        print(f"Listening on http://{host}:{port}/")
        try:
            await asyncio.Event().wait()
        finally:
            server.stop()

    asyncio.run(amain())
    return 0


if __name__ == "__main__":
    sys.exit(main())
