"""
Mock network implementations for testing.

This module provides in-memory implementations of NetworkStream and
NetworkBackend so the HTTP/1.1 transport can be exercised without
real sockets.
"""

import ssl
from collections import defaultdict, deque
from typing import Any, Deque, Dict, List, Optional, Tuple, Union

from .backend import NetworkBackend
from .stream import NetworkStream

Address = Tuple[str, int]


class MockNetworkStream(NetworkStream):
    """
    Mock network stream for testing.

    Reads are served from a preloaded buffer and writes are recorded.
    """

    def __init__(self, data: bytes = b""):
        self._data = data
        self._position = 0
        self._closed = False
        self._extra_info: Dict[str, Any] = {}
        self._write_buffer: List[bytes] = []

    async def read(self, max_bytes: Optional[int] = None) -> bytes:
        if self._closed:
            raise RuntimeError("Stream is closed")

        if self._position >= len(self._data):
            return b""

        if max_bytes is None:
            end = len(self._data)
        else:
            end = min(self._position + max_bytes, len(self._data))
        result = self._data[self._position:end]
        self._position = end
        return result

    async def write(self, data: bytes) -> None:
        if self._closed:
            raise RuntimeError("Stream is closed")
        self._write_buffer.append(data)

    async def aclose(self) -> None:
        self._closed = True

    def get_extra_info(self, name: str) -> Optional[Any]:
        return self._extra_info.get(name)

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def written_data(self) -> bytes:
        """Get all data that was written to the stream."""
        return b"".join(self._write_buffer)

    def set_extra_info(self, name: str, value: Any) -> None:
        self._extra_info[name] = value

    def add_data(self, data: bytes) -> None:
        """Add data to be available for reading."""
        self._data += data


class MockNetworkBackend(NetworkBackend):
    """
    Mock network backend for testing.

    Every ``connect_tcp`` call opens a fresh stream preloaded with the
    next queued reply for that address. Queuing an exception instead of
    bytes makes the connection attempt fail with it.
    """

    def __init__(self) -> None:
        self._replies: Dict[Address, Deque[Union[bytes, BaseException]]] = defaultdict(deque)
        self.streams: List[MockNetworkStream] = []
        self.tls_hosts: List[str] = []
        self.ssl_contexts: List[ssl.SSLContext] = []

    def add_reply(self, host: str, port: int, reply: Union[bytes, BaseException]) -> None:
        """Queue the raw bytes (or error) served to the next connection."""
        self._replies[(host, port)].append(reply)

    async def connect_tcp(
        self,
        host: str,
        port: int,
        timeout: Optional[float] = None
    ) -> MockNetworkStream:
        queue = self._replies.get((host, port))
        if not queue:
            raise ConnectionRefusedError(f"No mock reply queued for {host}:{port}")

        reply = queue.popleft()
        if isinstance(reply, BaseException):
            raise reply

        stream = MockNetworkStream(reply)
        stream.set_extra_info("peername", (host, port))
        stream.set_extra_info("sockname", ("127.0.0.1", 12345))
        self.streams.append(stream)
        return stream

    async def connect_tls(
        self,
        stream: NetworkStream,
        host: str,
        ssl_context: ssl.SSLContext,
        timeout: Optional[float] = None,
    ) -> NetworkStream:
        if isinstance(stream, MockNetworkStream):
            stream.set_extra_info("ssl_object", True)
        self.tls_hosts.append(host)
        self.ssl_contexts.append(ssl_context)
        return stream

    @property
    def open_streams(self) -> List[MockNetworkStream]:
        return [stream for stream in self.streams if not stream.is_closed]
