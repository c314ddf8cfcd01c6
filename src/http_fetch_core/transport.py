"""
Transport primitive for http_fetch_core.

A transport performs exactly one HTTP request/response round trip and
knows nothing about redirects, retries or authentication challenges;
those are decided by the fetch state machine.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import replace
from typing import Optional

from . import __version__
from .http11 import HTTP11Connection
from .http_primitives import RawResponse, Request, RequestOptions, URLComponents
from .network import AsyncioNetworkBackend, NetworkBackend
from .network.utils import create_ssl_context, format_host_header
from .streams import create_request_stream

logger = logging.getLogger(__name__)


class Transport(ABC):
    """Interface for a single HTTP round trip."""

    @abstractmethod
    async def open_once(self, uri: str, options: RequestOptions) -> RawResponse:
        """
        Perform one request and return the response head with an open body stream.

        Raises:
            Exception: Any transport failure; the fetch state machine
                classifies it as transient or fatal.
        """
        pass


class HTTP11Transport(Transport):
    """
    HTTP/1.1 transport built on h11.

    Every round trip uses a fresh connection that is closed once the
    response body has been read or closed.

    Header lines are rebuilt from the fields h11 has already validated,
    so a response with a malformed header never reaches the caller:
    h11 rejects it and the round trip fails. Strict and lenient header
    parsing therefore agree on everything this transport returns.
    """

    DEFAULT_TIMEOUT = 30.0
    DEFAULT_USER_AGENT = f"http_fetch_core/{__version__}"

    def __init__(
        self,
        backend: Optional[NetworkBackend] = None,
        timeout: Optional[float] = None,
        user_agent: Optional[str] = None,
    ) -> None:
        """
        Initialize the transport.

        Args:
            backend: Network backend used to open connections
            timeout: Default connect/read/write timeout in seconds
            user_agent: Value of the User-Agent header
        """
        self._backend = backend or AsyncioNetworkBackend()
        self._timeout = timeout or self.DEFAULT_TIMEOUT
        self._user_agent = user_agent or self.DEFAULT_USER_AGENT

    def _build_request(self, uri: str, options: RequestOptions) -> Request:
        url = URLComponents.from_url(uri)
        host = url.host.decode("ascii")
        request = Request.create(method=options.method, url=url)
        for name, value in options.headers:
            request = request.add_header(name, value)

        if not request.has_header(b"host"):
            request = request.add_header(
                "Host", format_host_header(host, url.port, url.scheme.decode())
            )
        if not request.has_header(b"user-agent"):
            request = request.add_header("User-Agent", self._user_agent)
        request = request.add_header("Connection", "close")

        if options.body is not None:
            stream = create_request_stream(options.body)
            if not request.has_header(b"content-length"):
                request = request.add_header("Content-Length", str(stream.content_length))
            request = replace(request, stream=stream)
        return request

    async def open_once(self, uri: str, options: RequestOptions) -> RawResponse:
        timeout = options.timeout or self._timeout
        request = self._build_request(uri, options)
        host = request.host.decode("ascii")

        stream = await self._backend.connect_tcp(host, request.port, timeout=timeout)
        try:
            if request.scheme == b"https":
                context = create_ssl_context(verify=options.verify_certificates)
                stream = await self._backend.connect_tls(stream, host, context, timeout=timeout)
        except BaseException:
            await stream.aclose()
            raise

        connection = HTTP11Connection(stream, read_timeout=timeout, write_timeout=timeout)
        response = await connection.handle_request(request)
        logger.debug(f"{options.method} {uri} -> {response.status_code}")

        return RawResponse(
            status=response.status_code,
            header_lines=tuple(response.header_lines),
            version=response.http_version,
            stream=response.stream,
        )
