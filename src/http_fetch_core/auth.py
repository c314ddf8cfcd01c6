"""
Authentication challenge resolvers.

When a hop answers 401 the fetch state machine asks its resolver for
revised request options. A resolver that cannot help raises
``AuthResolutionError``, and the 401 is then treated like any other
error status.
"""

import base64
import logging
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Mapping, Tuple

from .exceptions import AuthResolutionError
from .http_primitives import RequestOptions

logger = logging.getLogger(__name__)

ChallengeHeaders = Mapping[str, Tuple[str, ...]]


def challenge_schemes(headers: ChallengeHeaders) -> Tuple[str, ...]:
    """Lower-cased auth schemes offered in the WWW-Authenticate headers."""
    schemes = []
    for value in headers.get("www-authenticate", ()):
        scheme = value.strip().split(" ", 1)[0].rstrip(",").lower()
        if scheme:
            schemes.append(scheme)
    return tuple(schemes)


class AuthResolver(ABC):
    """Interface for answering 401 challenges."""

    @abstractmethod
    async def resolve(
        self, uri: str, headers: ChallengeHeaders, options: RequestOptions
    ) -> RequestOptions:
        """
        Produce options carrying credentials for ``uri``.

        Args:
            uri: The URI that answered 401
            headers: Parsed headers of the 401 response
            options: The options used for the rejected request

        Raises:
            AuthResolutionError: If the challenge cannot be answered
        """
        pass


class BasicAuthResolver(AuthResolver):
    """Answers ``Basic`` challenges with a fixed user name and password."""

    def __init__(self, username: str, password: str) -> None:
        self._username = username
        self._password = password

    async def resolve(
        self, uri: str, headers: ChallengeHeaders, options: RequestOptions
    ) -> RequestOptions:
        schemes = challenge_schemes(headers)
        if "basic" not in schemes:
            raise AuthResolutionError(f"No Basic challenge from {uri} (offered: {schemes})")
        token = base64.b64encode(f"{self._username}:{self._password}".encode("utf-8"))
        logger.debug(f"Answering Basic challenge from {uri} as {self._username!r}")
        return options.with_header("Authorization", f"Basic {token.decode('ascii')}")


class CallbackAuthResolver(AuthResolver):
    """Adapts a coroutine function to the AuthResolver interface."""

    def __init__(
        self,
        callback: Callable[[str, ChallengeHeaders, RequestOptions], Awaitable[RequestOptions]],
    ) -> None:
        self._callback = callback

    async def resolve(
        self, uri: str, headers: ChallengeHeaders, options: RequestOptions
    ) -> RequestOptions:
        return await self._callback(uri, headers, options)
