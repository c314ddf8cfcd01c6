"""
HTTP/1.1 connection implementation for http_fetch_core.

This module implements the HTTP11Connection class that drives one
HTTP/1.1 request/response exchange over a NetworkStream using h11.
"""

import asyncio
import logging
import time
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

import h11

from .exceptions import ConnectionError, ProtocolError
from .http_primitives import Request, Response, Version
from .network.stream import NetworkStream
from .streams import ResponseStream

logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    """States of an HTTP/1.1 connection."""
    NEW = "new"           # Connection created, not yet used
    ACTIVE = "active"     # Connection handling a request
    IDLE = "idle"         # Response fully read, connection still open
    CLOSED = "closed"     # Connection closed, cannot be reused


def _parse_http_version(raw: bytes) -> Version:
    major, _, minor = raw.decode("ascii").partition(".")
    return int(major), int(minor or 0)


class HTTP11Connection:
    """
    HTTP/1.1 connection manager.

    The connection owns its NetworkStream. The response body is exposed
    as a ResponseStream; once that stream is exhausted or closed the
    connection is either parked as idle or closed, depending on what h11
    reports about the peer.
    """

    DEFAULT_READ_TIMEOUT = 30.0
    DEFAULT_WRITE_TIMEOUT = 30.0
    READ_CHUNK_SIZE = 65536

    def __init__(
        self,
        stream: NetworkStream,
        read_timeout: Optional[float] = None,
        write_timeout: Optional[float] = None,
    ):
        """
        Initialize HTTP/1.1 connection.

        Args:
            stream: The NetworkStream to use for communication
            read_timeout: Timeout for read operations in seconds
            write_timeout: Timeout for write operations in seconds
        """
        self._stream = stream
        self._h11_connection = h11.Connection(h11.CLIENT)
        self._state = ConnectionState.NEW
        self._state_lock = asyncio.Lock()

        self._read_timeout = read_timeout or self.DEFAULT_READ_TIMEOUT
        self._write_timeout = write_timeout or self.DEFAULT_WRITE_TIMEOUT

        # Metrics
        self._request_count = 0
        self._bytes_sent = 0
        self._bytes_received = 0

        logger.debug("HTTP/1.1 connection initialized")

    async def handle_request(
        self,
        request: Request,
        timeout: Optional[float] = None
    ) -> Response:
        """
        Send a request and receive the response head.

        The body is not read here; it is consumed through the returned
        response's stream.

        Raises:
            ConnectionError: If the connection is unavailable or the network fails
            ProtocolError: If the peer violates HTTP/1.1
            asyncio.TimeoutError: If reading or writing times out
        """
        start_time = time.time()
        self._request_count += 1

        await self._acquire_connection()
        try:
            await self._send_request(request, timeout)
            response = await self._receive_response(timeout)
        except asyncio.TimeoutError:
            logger.error(
                f"Request {self._request_count} timed out after "
                f"{time.time() - start_time:.3f}s"
            )
            await self.close()
            raise
        except h11.ProtocolError as e:
            await self.close()
            raise ProtocolError(str(e), cause=e) from e
        except OSError as e:
            await self.close()
            raise ConnectionError(str(e), cause=e) from e
        except Exception:
            await self.close()
            raise

        logger.debug(
            f"Request {self._request_count}: {request.method!r} {request.target!r} "
            f"-> {response.status_code} ({time.time() - start_time:.3f}s)"
        )
        return response

    async def _send_request(self, request: Request, timeout: Optional[float] = None) -> None:
        write_timeout = timeout or self._write_timeout

        h11_request = h11.Request(
            method=request.method,
            target=request.target,
            headers=request.headers,
        )
        await asyncio.wait_for(self._send_event(h11_request), timeout=write_timeout)

        if request.stream is not None:
            async for chunk in request.stream:
                await asyncio.wait_for(
                    self._send_event(h11.Data(data=chunk)),
                    timeout=write_timeout,
                )

        await asyncio.wait_for(self._send_event(h11.EndOfMessage()), timeout=write_timeout)

    async def _send_event(self, event: h11.Event) -> None:
        data = self._h11_connection.send(event)
        if data:
            await self._stream.write(data)
            self._bytes_sent += len(data)

    async def _next_event(self, timeout: Optional[float] = None) -> Any:
        """Return the next h11 event, reading from the network as needed."""
        read_timeout = timeout or self._read_timeout
        while True:
            event = self._h11_connection.next_event()
            if event is not h11.NEED_DATA:
                return event
            data = await asyncio.wait_for(
                self._stream.read(self.READ_CHUNK_SIZE),
                timeout=read_timeout,
            )
            # An empty read tells h11 the peer closed the connection
            self._h11_connection.receive_data(data)
            self._bytes_received += len(data)

    async def _receive_response(self, timeout: Optional[float] = None) -> Response:
        while True:
            event = await self._next_event(timeout)

            if isinstance(event, h11.InformationalResponse):
                logger.debug(f"Skipping informational response {event.status_code}")
                continue

            if isinstance(event, h11.Response):
                headers: List[Tuple[bytes, bytes]] = list(event.headers.raw_items())
                response_stream = ResponseStream(
                    connection=self,
                    content_length=self._get_content_length(headers),
                    chunked=self._is_chunked(headers),
                )
                return Response(
                    status_code=event.status_code,
                    headers=headers,
                    http_version=_parse_http_version(event.http_version),
                    stream=response_stream,
                )

            if isinstance(event, h11.ConnectionClosed):
                raise ProtocolError("Connection closed by server")

    async def _receive_body_chunk(self, timeout: Optional[float] = None) -> Optional[bytes]:
        """
        Receive a chunk of response body.

        Returns:
            Chunk of data or None at the end of the body
        """
        try:
            while True:
                event = await self._next_event(timeout)
                if isinstance(event, h11.Data):
                    if event.data:
                        return bytes(event.data)
                    continue
                if isinstance(event, h11.EndOfMessage):
                    return None
                if isinstance(event, h11.ConnectionClosed):
                    raise ProtocolError("Connection closed by server")
        except h11.ProtocolError as e:
            raise ProtocolError(str(e), cause=e) from e
        except OSError as e:
            raise ConnectionError(str(e), cause=e) from e

    def _get_content_length(self, headers: List[Tuple[bytes, bytes]]) -> Optional[int]:
        for name, value in headers:
            if name.lower() == b"content-length":
                try:
                    return int(value)
                except ValueError:
                    return None
        return None

    def _is_chunked(self, headers: List[Tuple[bytes, bytes]]) -> bool:
        for name, value in headers:
            if name.lower() == b"transfer-encoding" and value.lower() == b"chunked":
                return True
        return False

    async def _acquire_connection(self) -> None:
        """
        Raises:
            ConnectionError: If connection is closed or busy
        """
        async with self._state_lock:
            if self._state == ConnectionState.CLOSED:
                raise ConnectionError("Connection is closed")
            if self._state == ConnectionState.ACTIVE:
                raise ConnectionError("Connection is busy")
            self._state = ConnectionState.ACTIVE

    async def _release_connection(self) -> None:
        async with self._state_lock:
            if self._state != ConnectionState.ACTIVE:
                return
            if self._can_reuse_connection():
                self._state = ConnectionState.IDLE
                self._h11_connection.start_next_cycle()
            else:
                self._state = ConnectionState.CLOSED
                await self._stream.aclose()

    def _can_reuse_connection(self) -> bool:
        return (
            self._h11_connection.our_state is h11.DONE
            and self._h11_connection.their_state is h11.DONE
        )

    async def _response_closed(self) -> None:
        """Called by the ResponseStream when the body is done with."""
        await self._release_connection()

    async def close(self) -> None:
        async with self._state_lock:
            if self._state != ConnectionState.CLOSED:
                self._state = ConnectionState.CLOSED
                await self._stream.aclose()

        logger.debug(f"Connection closed after {self._request_count} requests")

    @property
    def is_closed(self) -> bool:
        return self._state == ConnectionState.CLOSED

    @property
    def is_idle(self) -> bool:
        return self._state == ConnectionState.IDLE

    @property
    def metrics(self) -> Dict[str, Any]:
        return {
            "request_count": self._request_count,
            "bytes_sent": self._bytes_sent,
            "bytes_received": self._bytes_received,
            "state": self._state.value,
        }
