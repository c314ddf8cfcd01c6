"""
Streaming framework for http_fetch_core.

This module provides streaming abstractions for HTTP request and response
bodies, an in-memory stream used by scripted transports, and the
decompression wrapper applied to successful responses.
"""

import logging
import zlib
from abc import ABC, abstractmethod
from typing import (
    AsyncIterable,
    AsyncIterator,
    List,
    Optional,
    Union,
    TYPE_CHECKING,
)

from .config import Compression
from .exceptions import StreamError

if TYPE_CHECKING:
    from .http11 import HTTP11Connection  # Forward reference

logger = logging.getLogger(__name__)


class StreamInterface(ABC):
    """
    Base interface for all streams.

    All streams must implement this interface to ensure
    consistent behavior across the library.
    """

    @abstractmethod
    def __aiter__(self) -> "StreamInterface":
        """Return self as async iterator."""
        pass

    @abstractmethod
    async def __anext__(self) -> bytes:
        """Get next chunk of data."""
        pass

    @abstractmethod
    async def aclose(self) -> None:
        """Close the stream and cleanup resources."""
        pass

    @property
    @abstractmethod
    def closed(self) -> bool:
        """Whether the stream has been closed."""
        pass

    async def aread(self) -> bytes:
        """Read entire stream and return as bytes."""
        if self.closed:
            raise StreamError("Cannot read from closed stream")

        chunks = []
        async for chunk in self:
            chunks.append(chunk)

        return b"".join(chunks)


class RequestStream(StreamInterface):
    """
    Stream for HTTP request bodies.

    Request bodies are opaque to this library: they are handed over
    as bytes or an async iterable and forwarded chunk by chunk.
    """

    def __init__(
        self,
        data: Union[bytes, List[bytes], AsyncIterable[bytes]],
        content_length: Optional[int] = None,
    ) -> None:
        """
        Initialize RequestStream.

        Args:
            data: The data to stream. Can be bytes, list of bytes, or async iterable
            content_length: Optional content length for validation
        """
        if content_length is not None and content_length < 0:
            raise ValueError("content_length must be non-negative")

        self._data = data
        self._closed = False
        self._iterator: Optional[AsyncIterator[bytes]] = None

        if isinstance(data, bytes):
            actual = len(data)
        elif isinstance(data, list):
            actual = sum(len(chunk) for chunk in data)
        else:
            actual = None

        if content_length is not None and actual is not None and actual != content_length:
            raise ValueError(
                f"Actual content length ({actual}) "
                f"does not match provided content_length ({content_length})"
            )
        self._content_length = content_length if content_length is not None else actual

    async def _iter_chunks(self) -> AsyncIterator[bytes]:
        if isinstance(self._data, bytes):
            if self._data:
                yield self._data
        elif isinstance(self._data, list):
            for chunk in self._data:
                if chunk:
                    yield chunk
        else:
            async for chunk in self._data:
                yield chunk

    def __aiter__(self) -> "RequestStream":
        if self._closed:
            raise StreamError("Cannot iterate over closed stream")
        self._iterator = self._iter_chunks()
        return self

    async def __anext__(self) -> bytes:
        if self._closed:
            raise StreamError("Cannot read from closed stream")
        if self._iterator is None:
            raise RuntimeError("Stream not initialized for iteration")
        return await self._iterator.__anext__()

    async def aclose(self) -> None:
        self._closed = True
        self._iterator = None

    @property
    def content_length(self) -> Optional[int]:
        """Get the content length of the stream, if known."""
        return self._content_length

    @property
    def closed(self) -> bool:
        return self._closed


class ResponseStream(StreamInterface):
    """
    Stream for HTTP response bodies read from an HTTP/1.1 connection.

    Consumption drives reading from the network. The owning connection
    is released exactly once, when the body is exhausted, when reading
    fails or when the stream is closed early.
    """

    def __init__(
        self,
        connection: "HTTP11Connection",
        content_length: Optional[int] = None,
        chunked: bool = False,
    ) -> None:
        if content_length is not None and content_length < 0:
            raise ValueError("content_length must be non-negative")

        self._connection = connection
        self._content_length = content_length
        self._chunked = chunked
        self._closed = False
        self._released = False
        self._bytes_read = 0

    async def _release(self) -> None:
        if not self._released:
            self._released = True
            await self._connection._response_closed()

    def __aiter__(self) -> "ResponseStream":
        if self._closed:
            raise StreamError("Cannot iterate over closed stream")
        return self

    async def __anext__(self) -> bytes:
        if self._closed:
            raise StreamError("Cannot read from closed stream")
        if self._released:
            raise StopAsyncIteration

        try:
            chunk = await self._connection._receive_body_chunk()
        except Exception as e:
            await self._release()
            raise StreamError(f"Error reading from stream: {e}", cause=e) from e

        if chunk is None:
            await self._release()
            raise StopAsyncIteration

        self._bytes_read += len(chunk)
        if self._content_length is not None and self._bytes_read > self._content_length:
            await self._release()
            raise StreamError(
                f"Read more bytes ({self._bytes_read}) than "
                f"content_length ({self._content_length})"
            )
        return chunk

    async def aclose(self) -> None:
        if not self._closed:
            self._closed = True
            await self._release()

    @property
    def content_length(self) -> Optional[int]:
        return self._content_length

    @property
    def chunked(self) -> bool:
        return self._chunked

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def bytes_read(self) -> int:
        return self._bytes_read


class ByteStream(StreamInterface):
    """In-memory response body, used by scripted transports and tests."""

    def __init__(self, data: Union[bytes, List[bytes]] = b"") -> None:
        self._chunks = [data] if isinstance(data, bytes) else list(data)
        self._index = 0
        self._closed = False

    def __aiter__(self) -> "ByteStream":
        if self._closed:
            raise StreamError("Cannot iterate over closed stream")
        return self

    async def __anext__(self) -> bytes:
        if self._closed:
            raise StreamError("Cannot read from closed stream")
        while self._index < len(self._chunks):
            chunk = self._chunks[self._index]
            self._index += 1
            if chunk:
                return chunk
        raise StopAsyncIteration

    async def aclose(self) -> None:
        self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed


class DecodingStream(StreamInterface):
    """
    Decompressing view over another stream.

    Chunks are inflated incrementally as they are read. Closing the
    decoding stream closes the wrapped stream.
    """

    def __init__(self, stream: StreamInterface, compression: Compression) -> None:
        if compression is Compression.NONE:
            raise ValueError("DecodingStream requires gzip or deflate compression")
        self._stream = stream
        self._compression = compression
        self._decoder = self._new_decoder(raw=False)
        self._first_chunk = True
        self._received = False
        self._eof = False
        self._closed = False

    def _new_decoder(self, raw: bool) -> "zlib._Decompress":
        if self._compression is Compression.GZIP:
            return zlib.decompressobj(16 + zlib.MAX_WBITS)
        # Some servers send raw deflate data without the zlib wrapper
        return zlib.decompressobj(-zlib.MAX_WBITS if raw else zlib.MAX_WBITS)

    def _decode(self, chunk: bytes) -> bytes:
        try:
            data = self._decoder.decompress(chunk)
        except zlib.error:
            if not (self._first_chunk and self._compression is Compression.DEFLATE):
                raise
            self._decoder = self._new_decoder(raw=True)
            data = self._decoder.decompress(chunk)
        self._first_chunk = False
        return data

    def __aiter__(self) -> "DecodingStream":
        if self._closed:
            raise StreamError("Cannot iterate over closed stream")
        return self

    async def __anext__(self) -> bytes:
        if self._closed:
            raise StreamError("Cannot read from closed stream")
        while not self._eof:
            try:
                chunk = await self._stream.__anext__()
            except StopAsyncIteration:
                self._eof = True
                tail = self._decoder.flush()
                if self._received and not self._decoder.eof:
                    raise StreamError(f"Truncated {self._compression.value} data")
                if tail:
                    return tail
                break
            if chunk:
                self._received = True
            try:
                data = self._decode(chunk)
            except zlib.error as e:
                raise StreamError(
                    f"Invalid {self._compression.value} data: {e}", cause=e
                ) from e
            if data:
                return data
        raise StopAsyncIteration

    async def aclose(self) -> None:
        if not self._closed:
            self._closed = True
            await self._stream.aclose()

    @property
    def compression(self) -> Compression:
        return self._compression

    @property
    def closed(self) -> bool:
        return self._closed


def decompress(
    stream: StreamInterface, encoding: Union[str, Compression, None]
) -> StreamInterface:
    """
    Wrap a stream with the decoder for a content encoding.

    Args:
        stream: The raw response body stream
        encoding: ``none``/``identity``, ``gzip``/``x-gzip`` or ``deflate``

    Returns:
        The stream itself for identity encodings, a DecodingStream otherwise

    Raises:
        ValueError: If the encoding is not supported
    """
    compression = Compression.from_value(encoding)
    if compression is Compression.NONE:
        return stream
    logger.debug(f"Decoding response stream as {compression.value}")
    return DecodingStream(stream, compression)


def create_request_stream(
    data: Union[bytes, str, List[bytes], AsyncIterable[bytes]],
    content_length: Optional[int] = None,
) -> RequestStream:
    """
    Factory function to create RequestStream from various data types.

    Strings are encoded as UTF-8.
    """
    if isinstance(data, str):
        data = data.encode("utf-8")

    return RequestStream(data=data, content_length=content_length)


async def read_stream_to_bytes(stream: AsyncIterable[bytes]) -> bytes:
    """Read an entire async byte stream and return it concatenated."""
    chunks = []
    async for chunk in stream:
        chunks.append(chunk)
    return b"".join(chunks)
