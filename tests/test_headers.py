"""
Tests for lenient and strict header line parsing.
"""

import pytest

from http_fetch_core.exceptions import HeaderParseError, ProtocolError
from http_fetch_core.headers import (
    group_headers,
    parse_header_line,
    parse_header_line_lenient,
    parse_header_line_strict,
    parse_headers,
)

WELL_FORMED = [
    (b"Content-Type: text/html", ("content-type", "text/html")),
    (b"content-length:42", ("content-length", "42")),
    (b"X-Spaces:   padded value \t", ("x-spaces", "padded value")),
    (b"Cache-Control: no-cache, no-store", ("cache-control", "no-cache, no-store")),
    (b"X-Empty:", ("x-empty", "")),
    (b"X-Empty-Padded:   ", ("x-empty-padded", "")),
    (b"Location: http://example.com/a?b=c:d", ("location", "http://example.com/a?b=c:d")),
    (b"Server:\tnginx/1.18.0\r\n", ("server", "nginx/1.18.0")),
    (b"X-Latin: caf\xe9", ("x-latin", "caf\xe9")),
    (b"X-Gap: a  b", ("x-gap", "a  b")),
    (b"Accept-Encoding: gzip,\tdeflate", ("accept-encoding", "gzip,\tdeflate")),
]

# Accepted by the lenient parser, rejected by the strict one
MALFORMED = [
    b"X-Space-Before-Colon : value",
    b"X-Control: a\x01b",
    b"X Bad Name: value",
    b"X-Null: a\x00b",
    b"X-Del: a\x7fb",
]


class TestParsersAgree:
    """Both parsers give the same result on well-formed lines."""

    @pytest.mark.parametrize("line, expected", WELL_FORMED)
    def test_lenient(self, line, expected):
        assert parse_header_line_lenient(line) == expected

    @pytest.mark.parametrize("line, expected", WELL_FORMED)
    def test_strict(self, line, expected):
        assert parse_header_line_strict(line) == expected


class TestParsersDiverge:
    """The strict parser rejects lines the lenient parser accepts."""

    @pytest.mark.parametrize("line", MALFORMED)
    def test_lenient_accepts(self, line):
        name, _ = parse_header_line_lenient(line)
        assert name

    @pytest.mark.parametrize("line", MALFORMED)
    def test_strict_rejects(self, line):
        with pytest.raises(HeaderParseError) as exc_info:
            parse_header_line_strict(line)
        assert exc_info.value.line == line
        assert isinstance(exc_info.value, ProtocolError)

    def test_lenient_strips_name_whitespace(self):
        assert parse_header_line_lenient(b"X-Odd : value") == ("x-odd", "value")


class TestBothReject:
    """Lines neither parser can make sense of."""

    @pytest.mark.parametrize("line", [b"no colon here", b": missing name", b""])
    @pytest.mark.parametrize("strict", [False, True])
    def test_rejected(self, line, strict):
        with pytest.raises(HeaderParseError):
            parse_header_line(line, strict=strict)


class TestGrouping:
    """Test grouping of parsed header pairs."""

    def test_sorted_names_values_in_arrival_order(self):
        grouped = group_headers(
            [("set-cookie", "a=1"), ("content-type", "text/html"), ("set-cookie", "b=2")]
        )

        assert list(grouped) == ["content-type", "set-cookie"]
        assert grouped["set-cookie"] == ("a=1", "b=2")

    def test_empty(self):
        assert group_headers([]) == {}

    @pytest.mark.parametrize("strict", [False, True])
    def test_parse_headers(self, sample_header_lines, strict):
        headers = parse_headers(sample_header_lines, strict=strict)

        assert headers == {
            "cache-control": ("no-cache",),
            "content-type": ("text/html; charset=utf-8",),
            "server": ("nginx/1.18.0",),
            "set-cookie": ("a=1", "b=2"),
            "x-empty": ("",),
        }

    def test_parse_headers_strict_failure(self):
        with pytest.raises(HeaderParseError):
            parse_headers([b"Good: 1", b"Bad : 2"], strict=True)
