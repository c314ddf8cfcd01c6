"""
HTTP primitives for http_fetch_core.

This module defines the data structures exchanged with the transport:
the wire-level ``Request``/``Response`` used by the HTTP/1.1 connection,
and the ``RequestOptions``/``RawResponse`` pair that forms the contract
of a single transport round trip. All classes are immutable.
"""

from dataclasses import dataclass, field, replace
from typing import (
    AsyncIterable,
    List,
    NamedTuple,
    Optional,
    Tuple,
    Union,
)
from urllib.parse import urlsplit

from .streams import StreamInterface

# Type aliases for better readability
Headers = List[Tuple[bytes, bytes]]
URL = Tuple[bytes, bytes, int, bytes]  # (scheme, host, port, target)
StatusCode = int
Version = Tuple[int, int]

# Statuses after which a redirected request is re-issued as GET without a body
_SEE_OTHER_STATUSES = frozenset({301, 302, 303})

# Request headers that only travel to the origin they were set for
_CREDENTIAL_HEADERS = ("authorization", "proxy-authorization", "cookie")


class URLComponents(NamedTuple):
    """Immutable representation of URL components."""
    scheme: bytes
    host: bytes
    port: int
    target: bytes

    @classmethod
    def from_url(cls, url: str) -> "URLComponents":
        """
        Create URLComponents from an absolute URL string.

        The target keeps the query string; the fragment is dropped
        since it is never sent on the wire.
        """
        parsed = urlsplit(url)
        scheme = parsed.scheme.lower().encode() if parsed.scheme else b"http"
        host = parsed.hostname.encode("idna") if parsed.hostname else b""
        port = parsed.port or (443 if scheme == b"https" else 80)
        target = parsed.path or "/"
        if parsed.query:
            target += "?" + parsed.query
        return cls(scheme=scheme, host=host, port=port, target=target.encode("ascii"))

    def to_tuple(self) -> URL:
        return (self.scheme, self.host, self.port, self.target)


def _origin(url: str) -> Tuple[str, str, int]:
    parsed = urlsplit(url)
    scheme = (parsed.scheme or "http").lower()
    return scheme, parsed.hostname or "", parsed.port or (443 if scheme == "https" else 80)


def same_origin(first: str, second: str) -> bool:
    """True when both absolute URLs share scheme, host and port."""
    try:
        return _origin(first) == _origin(second)
    except ValueError:
        # unparseable port
        return False


@dataclass(frozen=True)
class Request:
    """
    Immutable wire-level HTTP request.

    Any change creates a new Request instance.
    """

    method: bytes
    url: URL
    headers: Headers = field(default_factory=list)
    stream: Optional[AsyncIterable[bytes]] = None

    def __post_init__(self) -> None:
        if not isinstance(self.method, bytes):
            raise ValueError("method must be bytes")
        if not isinstance(self.url, tuple) or len(self.url) != 4:
            raise ValueError("url must be a 4-tuple (scheme, host, port, target)")
        if not isinstance(self.url[2], int):
            raise ValueError("URL port must be int")
        for name, value in self.headers:
            if not isinstance(name, bytes) or not isinstance(value, bytes):
                raise ValueError("header names and values must be bytes")

    @classmethod
    def create(
        cls,
        method: Union[str, bytes],
        url: Union[str, URL, URLComponents],
        headers: Optional[Headers] = None,
        stream: Optional[AsyncIterable[bytes]] = None,
    ) -> "Request":
        """Create a Request with proper type conversion."""
        if isinstance(method, str):
            method = method.encode()
        if isinstance(url, str):
            url = URLComponents.from_url(url).to_tuple()
        elif isinstance(url, URLComponents):
            url = url.to_tuple()
        elif not isinstance(url, tuple):
            raise ValueError("url must be string, URLComponents, or URL tuple")
        return cls(method=method, url=url, headers=list(headers or []), stream=stream)

    def add_header(self, name: Union[str, bytes], value: Union[str, bytes]) -> "Request":
        """Return a new request with one more header."""
        if isinstance(name, str):
            name = name.encode()
        if isinstance(value, str):
            value = value.encode("latin-1")
        return replace(self, headers=self.headers + [(name, value)])

    def has_header(self, name: bytes) -> bool:
        name = name.lower()
        return any(key.lower() == name for key, _ in self.headers)

    @property
    def scheme(self) -> bytes:
        return self.url[0]

    @property
    def host(self) -> bytes:
        return self.url[1]

    @property
    def port(self) -> int:
        return self.url[2]

    @property
    def target(self) -> bytes:
        return self.url[3]


@dataclass(frozen=True)
class Response:
    """
    Immutable wire-level HTTP response.

    ``headers`` keep the field names as they were received.
    """

    status_code: StatusCode
    headers: Headers = field(default_factory=list)
    http_version: Version = (1, 1)
    stream: Optional[StreamInterface] = None

    def __post_init__(self) -> None:
        if not isinstance(self.status_code, int):
            raise ValueError("status_code must be int")
        for name, value in self.headers:
            if not isinstance(name, bytes) or not isinstance(value, bytes):
                raise ValueError("header names and values must be bytes")

    def get_header(self, name: Union[str, bytes]) -> Optional[bytes]:
        """Get the first value of a header (case-insensitive)."""
        if isinstance(name, str):
            name = name.encode()
        name = name.lower()
        for header_name, header_value in self.headers:
            if header_name.lower() == name:
                return header_value
        return None

    @property
    def header_lines(self) -> List[bytes]:
        """Headers rendered back to raw ``name: value`` lines."""
        return [name + b": " + value for name, value in self.headers]


@dataclass(frozen=True)
class RequestOptions:
    """
    Options handed to the transport for one round trip.

    A transport performs exactly one exchange: it never answers
    challenges and never follows redirects, so neither is an option.
    ``for_hop`` fixes the certificate policy the fetch state machine
    enforces on every hop; ``for_redirect`` applies standard method
    rewriting and drops credentials when a redirect leaves the origin.
    """

    method: str = "GET"
    headers: Tuple[Tuple[str, str], ...] = ()
    body: Optional[bytes] = None
    verify_certificates: bool = False
    timeout: Optional[float] = None

    def __post_init__(self) -> None:
        if not self.method or not self.method.isalpha():
            raise ValueError(f"Invalid HTTP method: {self.method!r}")
        if self.body is not None and not isinstance(self.body, bytes):
            raise ValueError("body must be bytes")

    def merge(self, **changes) -> "RequestOptions":
        return replace(self, **changes)

    def with_header(self, name: str, value: str) -> "RequestOptions":
        """Return options with a header set, replacing earlier values of the same name."""
        kept = tuple(
            (key, val) for key, val in self.headers if key.lower() != name.lower()
        )
        return replace(self, headers=kept + ((name, value),))

    def without_headers(self, *names: str) -> "RequestOptions":
        """Return options with every header of the given names removed."""
        dropped = {name.lower() for name in names}
        kept = tuple((key, val) for key, val in self.headers if key.lower() not in dropped)
        if len(kept) == len(self.headers):
            return self
        return replace(self, headers=kept)

    def header(self, name: str) -> Optional[str]:
        for key, value in self.headers:
            if key.lower() == name.lower():
                return value
        return None

    def for_hop(self) -> "RequestOptions":
        # Certificate policy is fixed to accept-any at this layer.
        return replace(self, verify_certificates=False)

    def for_redirect(self, status: int, source: str, target: str) -> "RequestOptions":
        """
        Options for following a ``status`` redirect from ``source`` to ``target``.

        301/302 turn a POST into a GET and 303 turns anything but HEAD
        into a GET, dropping the body. Credentials and cookies are only
        kept while scheme, host and port stay the same.
        """
        options = self
        if not same_origin(source, target):
            options = options.without_headers(*_CREDENTIAL_HEADERS)
        if options.method == "HEAD":
            return options
        if status == 303 or (status in _SEE_OTHER_STATUSES and options.method == "POST"):
            options = options.without_headers("content-type", "content-length")
            return replace(options, method="GET", body=None)
        return options


@dataclass(frozen=True)
class RawResponse:
    """Result of one transport round trip."""

    status: StatusCode
    header_lines: Tuple[bytes, ...]
    version: Version
    stream: StreamInterface
