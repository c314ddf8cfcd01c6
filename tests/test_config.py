"""
Tests for fetch configuration and per-fetch state.
"""

import math
from dataclasses import FrozenInstanceError

import pytest

from http_fetch_core.config import Compression, FetchConfig, FetchState


class TestCompression:
    """Test conversion of option and header values."""

    @pytest.mark.parametrize(
        "value, expected",
        [
            (None, Compression.NONE),
            ("", Compression.NONE),
            ("identity", Compression.NONE),
            ("none", Compression.NONE),
            ("gzip", Compression.GZIP),
            ("x-gzip", Compression.GZIP),
            (" GZIP ", Compression.GZIP),
            ("deflate", Compression.DEFLATE),
            (Compression.DEFLATE, Compression.DEFLATE),
        ],
    )
    def test_from_value(self, value, expected):
        assert Compression.from_value(value) is expected

    @pytest.mark.parametrize("value", ["br", "compress", "zstd"])
    def test_unsupported(self, value):
        with pytest.raises(ValueError):
            Compression.from_value(value)


class TestFetchConfig:
    """Test FetchConfig class functionality."""

    def test_defaults(self, default_config):
        assert default_config.max_redirects == 5
        assert default_config.max_retries == 1
        assert default_config.parse_headers is False
        assert default_config.compression is Compression.NONE
        assert default_config.base_uri is None
        assert not default_config.unbounded_redirects

    def test_immutability(self, default_config):
        with pytest.raises(FrozenInstanceError):
            default_config.max_retries = 3

    def test_unbounded(self):
        assert FetchConfig(max_redirects=None).unbounded_redirects

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"max_redirects": -1},
            {"max_redirects": 2.5},
            {"max_retries": -1},
            {"max_retries": None},
            {"compression": "gzip"},
        ],
    )
    def test_validation(self, kwargs):
        with pytest.raises(ValueError):
            FetchConfig(**kwargs)

    def test_create_converts(self):
        config = FetchConfig.create(
            max_redirects=math.inf, max_retries=0, parse_headers=True, compression="x-gzip"
        )

        assert config.max_redirects is None
        assert config.unbounded_redirects
        assert config.max_retries == 0
        assert config.parse_headers is True
        assert config.compression is Compression.GZIP

    def test_create_defaults(self):
        assert FetchConfig.create() == FetchConfig()

    def test_create_rejects_finite_float(self):
        with pytest.raises(ValueError):
            FetchConfig.create(max_redirects=3.0)


class TestFetchState:
    """Test per-fetch bookkeeping."""

    def test_start(self):
        state = FetchState.start("http://example.com/")

        assert state.visited == ["http://example.com/"]
        assert state.current_uri == "http://example.com/"
        assert state.redirect_count == 0
        assert state.retry_count == 0
        assert state.authenticated == set()

    def test_record_redirect(self):
        state = FetchState.start("http://example.com/")
        state.record_redirect("http://example.com/a")
        state.record_redirect("http://example.com/b")

        assert state.visited[0] == "http://example.com/b"
        assert state.current_uri == "http://example.com/b"
        assert state.traversal == (
            "http://example.com/",
            "http://example.com/a",
            "http://example.com/b",
        )
        assert state.redirect_count == len(state.visited) - 1 == 2

    def test_redirect_limit(self):
        state = FetchState.start("http://example.com/")
        state.record_redirect("http://example.com/a")

        assert not state.redirect_limit_exceeded(1)
        assert state.redirect_limit_exceeded(0)
        assert not state.redirect_limit_exceeded(None)

    def test_redirect_loop(self):
        state = FetchState.start("http://example.com/")
        state.record_redirect("http://example.com/a")
        assert not state.is_redirect_loop("http://example.com/a")

        state.record_redirect("http://example.com/")
        assert state.is_redirect_loop("http://example.com/")

    def test_states_are_independent(self):
        first = FetchState.start("http://example.com/")
        second = FetchState.start("http://example.com/")
        first.authenticated.add("http://example.com/")

        assert second.authenticated == set()
