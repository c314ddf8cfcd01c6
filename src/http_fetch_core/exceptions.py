"""
Custom exceptions for http_fetch_core.

This module defines the exception hierarchy used throughout
the library. Low-level errors (connection, protocol, stream)
are raised by the transport; ``FetchError`` subclasses are raised
by the fetch state machine and always carry the communication
trail accumulated up to the failure.
"""

from enum import Enum
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .trail import CommunicationTrail


class HTTPCoreError(Exception):
    """Base exception for all http_fetch_core errors."""

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause


class ConnectionError(HTTPCoreError):
    """Raised when there's an error with network connections."""

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(f"Connection error: {message}", cause)


class ProtocolError(HTTPCoreError):
    """Raised when there's an error with HTTP protocol handling."""

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(f"Protocol error: {message}", cause)


class HeaderParseError(ProtocolError):
    """Raised when a raw header line cannot be parsed."""

    def __init__(self, line: bytes, reason: str) -> None:
        super().__init__(f"Malformed header line {line!r}: {reason}")
        self.line = line


class StreamError(HTTPCoreError):
    """Raised when there's an error with stream operations."""

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(f"Stream error: {message}", cause)


class AuthResolutionError(HTTPCoreError):
    """Raised by an auth resolver that cannot answer a challenge."""

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(f"Auth resolution error: {message}", cause)


class ErrorClass(Enum):
    """Classification tag carried by every fetch error."""
    AUTHENTICATION = "authentication"
    CLIENT_OR_SERVER = "client_or_server"
    REDIRECT_LOOP = "redirect_loop"
    REDIRECT_LIMIT_EXCEEDED = "redirect_limit_exceeded"
    TRANSIENT_TRANSPORT = "transient_transport"
    FATAL_TRANSPORT = "fatal_transport"


class TransientCondition(Enum):
    """Low-level transport conditions recognized as transient."""
    CONNECTION_RESET = "connection_reset"
    TIMED_OUT = "timed_out"
    TRY_AGAIN = "try_again"


class FetchError(HTTPCoreError):
    """
    Base class for errors surfaced by a fetch.

    The trail holds every hop attempted before the failure,
    including the hop that triggered it.
    """

    error_class: ErrorClass

    def __init__(
        self,
        message: str,
        trail: "CommunicationTrail",
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message, cause)
        self.trail = trail


class StatusError(FetchError):
    """Base class for failures caused by an HTTP error status."""

    def __init__(self, uri: str, status: int, trail: "CommunicationTrail") -> None:
        from .status import status_label

        label = status_label(status) or "No Label"
        super().__init__(f"HTTP {status} ({label}) for {uri}", trail)
        self.uri = uri
        self.status = status
        self.label = label


class ClientOrServerError(StatusError):
    """A 4xx/5xx status persisted after all retries were spent."""
    error_class = ErrorClass.CLIENT_OR_SERVER


class AuthenticationError(StatusError):
    """A 401 status that could not be resolved."""
    error_class = ErrorClass.AUTHENTICATION


class RedirectError(FetchError):
    """Base class for redirect failures."""

    def __init__(self, uri: str, message: str, trail: "CommunicationTrail") -> None:
        super().__init__(f"Redirect error: {message} ({uri})", trail)
        self.uri = uri


class RedirectLoopError(RedirectError):
    """A redirect target was already visited during the same fetch."""
    error_class = ErrorClass.REDIRECT_LOOP

    def __init__(self, uri: str, trail: "CommunicationTrail") -> None:
        super().__init__(uri, "Redirection loop", trail)


class RedirectLimitExceeded(RedirectError):
    """More redirects were followed than the configured maximum."""
    error_class = ErrorClass.REDIRECT_LIMIT_EXCEEDED

    def __init__(self, uri: str, max_redirects: int, trail: "CommunicationTrail") -> None:
        super().__init__(uri, f"max_redirects ({max_redirects}) limit exceeded", trail)
        self.max_redirects = max_redirects


class TransportError(FetchError):
    """Base class for failures of the transport round trip itself."""

    def __init__(
        self,
        uri: str,
        message: str,
        trail: "CommunicationTrail",
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(f"Transport error: {message} ({uri})", trail, cause)
        self.uri = uri


class TransientTransportError(TransportError):
    """A recognized transient condition, eligible for caller-level retry."""
    error_class = ErrorClass.TRANSIENT_TRANSPORT

    def __init__(
        self,
        uri: str,
        condition: TransientCondition,
        trail: "CommunicationTrail",
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(uri, condition.value, trail, cause)
        self.condition = condition


class FatalTransportError(TransportError):
    """Any transport failure that is not recognized as transient."""
    error_class = ErrorClass.FATAL_TRANSPORT


class MalformedHeaderError(FatalTransportError):
    """The response carried a header line the active parser rejects."""

    def __init__(self, uri: str, trail: "CommunicationTrail", cause: HeaderParseError) -> None:
        super().__init__(uri, cause.message, trail, cause)
