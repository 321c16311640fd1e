from __future__ import annotations

import io
from datetime import datetime, timezone

import pytest
from urllib3.response import HTTPResponse

from pasterun.response import (
    ZERO_TIME,
    LanguageInfo,
    PasteInfo,
    parse_http_date,
)


def make_response(body: bytes = b"", **headers: str) -> HTTPResponse:
    return HTTPResponse(
        body=io.BytesIO(body),
        headers={k.replace("_", "-"): v for k, v in headers.items()},
        status=200,
        preload_content=False,
    )


class TestParseHTTPDate:
    def test_valid(self) -> None:
        assert parse_http_date("Tue, 15 Nov 1994 08:12:31 GMT") == datetime(
            1994, 11, 15, 8, 12, 31, tzinfo=timezone.utc
        )

    @pytest.mark.parametrize("value", [None, "", "yesterday-ish", "Tue, 99 Foo"])
    def test_invalid_is_zero_time(self, value: str | None) -> None:
        assert parse_http_date(value) is ZERO_TIME

    def test_zero_time(self) -> None:
        assert ZERO_TIME.year == 1
        assert ZERO_TIME.tzinfo is timezone.utc


class TestPasteInfo:
    def test_from_response(self) -> None:
        response = make_response(
            b"print('hello')\n",
            Content_Length="15",
            Content_Type="text/plain; charset=utf-8",
            Paste_Language="Python",
            Paste_Class=".py",
            Created_By="ann",
            Paste_Title="hello.py",
            Created_At="Tue, 15 Nov 1994 08:12:31 GMT",
            Expires="Tue, 22 Nov 1994 08:12:31 GMT",
        )
        with PasteInfo.from_response(response) as paste:
            assert paste.size == 15
            assert paste.content_type == "text/plain; charset=utf-8"
            assert paste.language == "Python"
            assert paste.paste_class == ".py"
            assert paste.author == "ann"
            assert paste.title == "hello.py"
            assert paste.created == datetime(
                1994, 11, 15, 8, 12, 31, tzinfo=timezone.utc
            )
            assert paste.expires.day == 22
            assert not paste.never_expires
            assert paste.read() == b"print('hello')\n"

        assert response.closed

    def test_missing_headers(self) -> None:
        paste = PasteInfo.from_response(make_response(b"data"))
        assert paste.size == -1
        assert paste.content_type == ""
        assert paste.language == ""
        assert paste.author == ""
        assert paste.created is ZERO_TIME
        assert paste.never_expires
        paste.close()

    @pytest.mark.parametrize("length", ["", "abc", "-5"])
    def test_bad_content_length(self, length: str) -> None:
        paste = PasteInfo.from_response(make_response(Content_Length=length))
        assert paste.size == -1
        paste.close()

    def test_stream(self) -> None:
        with PasteInfo.from_response(make_response(b"abcdef")) as paste:
            assert list(paste.stream(4)) == [b"abcd", b"ef"]

    def test_partial_reads(self) -> None:
        with PasteInfo.from_response(make_response(b"abcdef")) as paste:
            assert paste.read(2) == b"ab"
            assert paste.read() == b"cdef"

    def test_repr_hides_content(self) -> None:
        paste = PasteInfo.from_response(make_response(b"secret", Paste_Title="t"))
        assert "secret" not in repr(paste)
        assert "title='t'" in repr(paste)
        paste.close()


class TestLanguageInfo:
    def test_from_json(self) -> None:
        info = LanguageInfo.from_json(
            {"name": "Python", "class": ".py", "mode": "text/x-python"}
        )
        assert info == LanguageInfo("Python", ".py", "text/x-python")

    def test_mode_is_optional(self) -> None:
        info = LanguageInfo.from_json({"name": "Plain Text", "class": "text/plain"})
        assert info.mode is None
        assert LanguageInfo.from_json({"name": "X", "class": "x", "mode": ""}).mode is None
