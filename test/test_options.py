from __future__ import annotations

import pytest

from pasterun.exceptions import ConfigurationError, InvalidHeadersError
from pasterun.options import (
    DEFAULT_BASE_URL,
    RequestConfig,
    author,
    base_url,
    cancel,
    description,
    headers,
    paste_type,
    query,
    resolve_config,
    title,
    token,
    transport,
)
from pasterun.util.cancel import CancelToken

from . import FakeTransport


class TestResolveConfig:
    def test_defaults(self) -> None:
        config = resolve_config()
        assert config == RequestConfig()
        assert config.resolved_base_url == DEFAULT_BASE_URL
        assert config.cancel is None
        assert config.transport is None

    def test_every_option(self) -> None:
        tok = CancelToken()
        fake = FakeTransport()
        config = resolve_config(
            options=[
                author("ann"),
                title("notes"),
                description("some notes"),
                paste_type("text"),
                token("s3cret"),
                cancel(tok),
                transport(fake),
                base_url("http://localhost:8080/"),
                headers("X-A", "1"),
                query("py"),
            ]
        )
        assert config.author == "ann"
        assert config.title == "notes"
        assert config.description == "some notes"
        assert config.paste_type == "text"
        assert config.token == "s3cret"
        assert config.cancel is tok
        assert config.transport is fake
        assert config.resolved_base_url == "http://localhost:8080/"
        assert config.headers == ("X-A", "1")
        assert config.query == "py"

    def test_last_option_wins(self) -> None:
        config = resolve_config(options=[title("first"), author("ann"), title("last")])
        assert config.title == "last"
        assert config.author == "ann"

    def test_base_is_not_modified(self) -> None:
        base = RequestConfig(title="base", token="t")
        config = resolve_config(base, [title("other")])
        assert base.title == "base"
        assert config.title == "other"
        assert config.token == "t"

    def test_empty_values_unset(self) -> None:
        config = resolve_config(options=[base_url("http://x/"), base_url("")])
        assert config.resolved_base_url == DEFAULT_BASE_URL

    def test_config_is_immutable(self) -> None:
        config = resolve_config()
        with pytest.raises(AttributeError):
            config.title = "nope"  # type: ignore[misc]


class TestHeaders:
    def test_pairs(self) -> None:
        config = resolve_config(options=[headers("X-A", "1", "X-B", "2")])
        assert list(config.header_pairs()) == [("X-A", "1"), ("X-B", "2")]

    def test_replaces_earlier_headers(self) -> None:
        config = resolve_config(options=[headers("X-A", "1"), headers("X-B", "2")])
        assert list(config.header_pairs()) == [("X-B", "2")]

    @pytest.mark.parametrize("pairs", [("X-A",), ("X-A", "1", "X-B")])
    def test_odd_count_rejected_immediately(self, pairs: tuple[str, ...]) -> None:
        with pytest.raises(InvalidHeadersError) as e:
            headers(*pairs)
        assert isinstance(e.value, ConfigurationError)
        assert isinstance(e.value, ValueError)
        assert e.value.headers == pairs

    def test_odd_count_rejected_on_resolve(self) -> None:
        with pytest.raises(InvalidHeadersError):
            resolve_config(RequestConfig(headers=("X-A",)))
