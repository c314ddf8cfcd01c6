"""
Pytest configuration for http_fetch_core tests.

This file contains shared fixtures and configuration
for all tests in the project.
"""

import gzip
import zlib
from typing import Callable, List

import pytest

from http_fetch_core.config import FetchConfig
from http_fetch_core.mock_transport import MockReply, MockTransport
from http_fetch_core.network.mock import MockNetworkBackend


@pytest.fixture
def origin() -> str:
    """URI every scripted fetch starts from."""
    return "http://example.com/start"


@pytest.fixture
def make_transport() -> Callable[..., MockTransport]:
    """Build a scripted transport from a list of replies."""
    def _create(*replies) -> MockTransport:
        return MockTransport(replies)
    return _create


@pytest.fixture
def ok_reply() -> MockReply:
    return MockReply.create(
        200,
        headers=[("Content-Type", "text/plain"), ("Content-Length", "11")],
        body=b"Hello World",
    )


@pytest.fixture
def default_config() -> FetchConfig:
    return FetchConfig()


@pytest.fixture
def mock_backend() -> MockNetworkBackend:
    return MockNetworkBackend()


@pytest.fixture
def sample_header_lines() -> List[bytes]:
    """Well-formed raw header lines, including a repeated name."""
    return [
        b"Content-Type: text/html; charset=utf-8",
        b"Set-Cookie: a=1",
        b"Cache-Control: no-cache",
        b"Set-Cookie: b=2",
        b"X-Empty:",
        b"Server:\tnginx/1.18.0  ",
    ]


@pytest.fixture
def gzip_body() -> bytes:
    return gzip.compress(b"compressed payload " * 20)


@pytest.fixture
def deflate_body() -> bytes:
    return zlib.compress(b"deflated payload " * 20)


def http_response(
    status: int = 200,
    reason: bytes = b"OK",
    headers: List[bytes] = (),
    body: bytes = b"",
    version: bytes = b"1.1",
) -> bytes:
    """Render a raw HTTP/1.x response as a server would send it."""
    lines = [b"HTTP/" + version + b" " + str(status).encode() + b" " + reason]
    lines.extend(headers)
    if not any(line.lower().startswith(b"content-length") for line in headers):
        lines.append(b"Content-Length: " + str(len(body)).encode())
    return b"\r\n".join(lines) + b"\r\n\r\n" + body


@pytest.fixture
def raw_response() -> Callable[..., bytes]:
    return http_response
