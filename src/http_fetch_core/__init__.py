"""
http_fetch_core - resilient HTTP(S) resource opening

Opens a readable byte stream for an http or https URI while following
redirects, retrying error statuses, answering authentication
challenges, decoding compressed bodies and recording every hop in a
communication trail.
"""

__version__ = "0.1.0"
__author__ = "Developer"
__email__ = "dev@example.com"

# Import main components for easy access
from .auth import AuthResolver, BasicAuthResolver, CallbackAuthResolver
from .config import Compression, FetchConfig, FetchState
from .exceptions import (
    HTTPCoreError,
    ConnectionError,
    ProtocolError,
    HeaderParseError,
    StreamError,
    AuthResolutionError,
    ErrorClass,
    TransientCondition,
    FetchError,
    StatusError,
    ClientOrServerError,
    AuthenticationError,
    RedirectError,
    RedirectLoopError,
    RedirectLimitExceeded,
    TransportError,
    TransientTransportError,
    FatalTransportError,
    MalformedHeaderError,
)
from .fetch import (
    Fetcher,
    FetchResult,
    classify_transport_exception,
    fetch,
    http_get,
    http_post,
)
from .headers import (
    group_headers,
    parse_header_line,
    parse_header_line_lenient,
    parse_header_line_strict,
    parse_headers,
)
from .http_primitives import RawResponse, RequestOptions
from .retry import retry_until_success
from .status import (
    StatusClass,
    classify_status,
    is_auth_error,
    is_error,
    is_http_scheme,
    is_redirect,
    status_label,
)
from .streams import ByteStream, DecodingStream, decompress
from .trail import CommunicationTrail, HopMetadata
from .transport import HTTP11Transport, Transport

__all__ = [
    "AuthResolver",
    "BasicAuthResolver",
    "CallbackAuthResolver",
    "Compression",
    "FetchConfig",
    "FetchState",
    "HTTPCoreError",
    "ConnectionError",
    "ProtocolError",
    "HeaderParseError",
    "StreamError",
    "AuthResolutionError",
    "ErrorClass",
    "TransientCondition",
    "FetchError",
    "StatusError",
    "ClientOrServerError",
    "AuthenticationError",
    "RedirectError",
    "RedirectLoopError",
    "RedirectLimitExceeded",
    "TransportError",
    "TransientTransportError",
    "FatalTransportError",
    "MalformedHeaderError",
    "Fetcher",
    "FetchResult",
    "classify_transport_exception",
    "fetch",
    "http_get",
    "http_post",
    "group_headers",
    "parse_header_line",
    "parse_header_line_lenient",
    "parse_header_line_strict",
    "parse_headers",
    "RawResponse",
    "RequestOptions",
    "retry_until_success",
    "StatusClass",
    "classify_status",
    "is_auth_error",
    "is_error",
    "is_http_scheme",
    "is_redirect",
    "status_label",
    "ByteStream",
    "DecodingStream",
    "decompress",
    "CommunicationTrail",
    "HopMetadata",
    "HTTP11Transport",
    "Transport",
]
