"""
HTTP status classification for http_fetch_core.

The fetch state machine dispatches over ``StatusClass`` instead of
repeating numeric range checks at each call site.
"""

from enum import Enum
from http import HTTPStatus
from typing import Optional

HTTP_SCHEMES = frozenset({"http", "https"})


class StatusClass(Enum):
    """Dispatch classes for HTTP status codes."""
    INFORMATIONAL = "informational"
    SUCCESS = "success"
    REDIRECT = "redirect"
    AUTH_ERROR = "auth_error"
    CLIENT_ERROR = "client_error"
    SERVER_ERROR = "server_error"

    @property
    def is_error(self) -> bool:
        return self in (
            StatusClass.AUTH_ERROR,
            StatusClass.CLIENT_ERROR,
            StatusClass.SERVER_ERROR,
        )


def _check_range(status: int) -> None:
    if not isinstance(status, int) or not 100 <= status <= 599:
        raise ValueError(f"HTTP status must be an int in 100..599, got {status!r}")


def classify_status(status: int) -> StatusClass:
    """
    Map a status code to its dispatch class.

    Raises:
        ValueError: If the code is outside 100..599
    """
    _check_range(status)
    if is_auth_error(status):
        return StatusClass.AUTH_ERROR
    if is_redirect(status):
        return StatusClass.REDIRECT
    if 400 <= status <= 499:
        return StatusClass.CLIENT_ERROR
    if 500 <= status <= 599:
        return StatusClass.SERVER_ERROR
    if status < 200:
        return StatusClass.INFORMATIONAL
    return StatusClass.SUCCESS


def is_auth_error(status: int) -> bool:
    return status == 401


def is_error(status: int) -> bool:
    return 400 <= status <= 599


def is_redirect(status: int) -> bool:
    return 300 <= status <= 399


def status_label(status: int) -> Optional[str]:
    """Return the standard reason phrase for a status, or None if unknown."""
    try:
        return HTTPStatus(status).phrase
    except ValueError:
        return None


def is_http_scheme(scheme: str) -> bool:
    """Check whether a URI scheme is served by this library."""
    return scheme.lower() in HTTP_SCHEMES
