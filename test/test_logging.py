from __future__ import annotations

import logging

import pytest

import pasterun
from pasterun.options import transport

from . import FakeTransport


class TestLogging:
    def test_null_handler_by_default(self) -> None:
        handlers = logging.getLogger("pasterun").handlers
        assert any(isinstance(h, logging.NullHandler) for h in handlers)

    def test_add_stderr_logger(
        self, capsys: pytest.CaptureFixture[str], stderr_logger: logging.Handler
    ) -> None:
        assert isinstance(stderr_logger, logging.StreamHandler)
        assert stderr_logger in logging.getLogger("pasterun").handlers

        fake = FakeTransport(201, b"https://www.paste.run/p0001\n")
        pasterun.upload(b"x", transport(fake))

        err = capsys.readouterr().err
        assert "Added a stderr logging handler to logger: pasterun" in err
        assert "Uploading paste to https://api.paste.run/" in err
