"""
Tests for network interfaces and mock implementations.

This module covers the NetworkStream and NetworkBackend interfaces,
their mock implementations, the asyncio backend over loopback and the
shared network utilities.
"""

import asyncio
import ssl

import pytest

from http_fetch_core.network import (
    AsyncioNetworkBackend,
    AsyncioNetworkStream,
    MockNetworkBackend,
    MockNetworkStream,
    NetworkBackend,
    NetworkStream,
    create_ssl_context,
    format_host_header,
)


class TestMockNetworkStream:
    """Test cases for MockNetworkStream."""

    @pytest.mark.asyncio
    async def test_read_write_basic(self):
        stream = MockNetworkStream()

        await stream.write(b"hello world")
        assert stream.written_data == b"hello world"

        stream.add_data(b"hello world")
        assert await stream.read(5) == b"hello"
        assert await stream.read() == b" world"

    @pytest.mark.asyncio
    async def test_read_empty_stream(self):
        stream = MockNetworkStream()

        assert await stream.read() == b""
        assert await stream.read(10) == b""

    @pytest.mark.asyncio
    async def test_read_with_initial_data(self):
        stream = MockNetworkStream(b"initial data")

        assert await stream.read(7) == b"initial"
        assert await stream.read() == b" data"

    @pytest.mark.asyncio
    async def test_write_multiple_chunks(self):
        stream = MockNetworkStream()

        await stream.write(b"chunk1")
        await stream.write(b"chunk2")

        assert stream.written_data == b"chunk1chunk2"

    @pytest.mark.asyncio
    async def test_close(self):
        stream = MockNetworkStream()
        assert not stream.is_closed

        await stream.aclose()

        assert stream.is_closed
        with pytest.raises(RuntimeError):
            await stream.read()
        with pytest.raises(RuntimeError):
            await stream.write(b"data")

    def test_get_extra_info(self):
        stream = MockNetworkStream()
        assert stream.get_extra_info("peername") is None

        stream.set_extra_info("peername", ("127.0.0.1", 8080))
        assert stream.get_extra_info("peername") == ("127.0.0.1", 8080)


class TestMockNetworkBackend:
    """Test cases for MockNetworkBackend."""

    @pytest.mark.asyncio
    async def test_connect_tcp_serves_queued_reply(self):
        backend = MockNetworkBackend()
        backend.add_reply("example.com", 80, b"HTTP/1.1 200 OK\r\n\r\n")

        stream = await backend.connect_tcp("example.com", 80)

        assert isinstance(stream, MockNetworkStream)
        assert await stream.read() == b"HTTP/1.1 200 OK\r\n\r\n"
        assert stream.get_extra_info("peername") == ("example.com", 80)
        assert backend.streams == [stream]

    @pytest.mark.asyncio
    async def test_each_connection_gets_next_reply(self):
        backend = MockNetworkBackend()
        backend.add_reply("example.com", 80, b"first")
        backend.add_reply("example.com", 80, b"second")

        first = await backend.connect_tcp("example.com", 80)
        second = await backend.connect_tcp("example.com", 80)

        assert first is not second
        assert await first.read() == b"first"
        assert await second.read() == b"second"

    @pytest.mark.asyncio
    async def test_replies_are_per_address(self):
        backend = MockNetworkBackend()
        backend.add_reply("a.example", 80, b"a")

        with pytest.raises(ConnectionRefusedError):
            await backend.connect_tcp("b.example", 80)
        with pytest.raises(ConnectionRefusedError):
            await backend.connect_tcp("a.example", 8080)

    @pytest.mark.asyncio
    async def test_queued_exception_is_raised(self):
        backend = MockNetworkBackend()
        backend.add_reply("example.com", 80, ConnectionResetError("reset"))

        with pytest.raises(ConnectionResetError):
            await backend.connect_tcp("example.com", 80)
        assert backend.streams == []

    @pytest.mark.asyncio
    async def test_connect_tls(self):
        backend = MockNetworkBackend()
        backend.add_reply("example.com", 443, b"")
        context = create_ssl_context(verify=False)

        stream = await backend.connect_tcp("example.com", 443)
        tls_stream = await backend.connect_tls(stream, "example.com", context)

        assert tls_stream is stream
        assert tls_stream.get_extra_info("ssl_object") is True
        assert backend.tls_hosts == ["example.com"]
        assert backend.ssl_contexts == [context]

    @pytest.mark.asyncio
    async def test_open_streams(self):
        backend = MockNetworkBackend()
        backend.add_reply("example.com", 80, b"")
        backend.add_reply("example.com", 80, b"")

        first = await backend.connect_tcp("example.com", 80)
        await backend.connect_tcp("example.com", 80)
        await first.aclose()

        assert len(backend.open_streams) == 1
        assert first not in backend.open_streams


class TestNetworkInterfaces:
    """Test the abstract interfaces."""

    def test_interfaces_are_abstract(self):
        with pytest.raises(TypeError):
            NetworkStream()
        with pytest.raises(TypeError):
            NetworkBackend()

    def test_mock_implements_interfaces(self):
        assert isinstance(MockNetworkStream(), NetworkStream)
        assert isinstance(MockNetworkBackend(), NetworkBackend)


class TestAsyncioNetworkBackend:
    """Loopback tests for the asyncio backend."""

    @pytest.mark.asyncio
    async def test_round_trip(self):
        async def echo(reader, writer):
            data = await reader.read(100)
            writer.write(data.upper())
            await writer.drain()
            writer.close()

        server = await asyncio.start_server(echo, "127.0.0.1", 0)
        port = server.sockets[0].getsockname()[1]
        try:
            backend = AsyncioNetworkBackend()
            stream = await backend.connect_tcp("127.0.0.1", port, timeout=5.0)
            assert isinstance(stream, AsyncioNetworkStream)

            await stream.write(b"ping")
            assert await stream.read(100) == b"PING"
            assert stream.get_extra_info("peername")[1] == port

            await stream.aclose()
            await stream.aclose()
            assert stream.is_closed
        finally:
            server.close()
            await server.wait_closed()

    @pytest.mark.asyncio
    async def test_refuses_foreign_streams(self):
        backend = AsyncioNetworkBackend()

        with pytest.raises(TypeError):
            await backend.connect_tls(MockNetworkStream(), "example.com", create_ssl_context())


class TestNetworkUtils:
    """Test SSL context and Host header helpers."""

    def test_verifying_context(self):
        context = create_ssl_context()

        assert context.verify_mode == ssl.CERT_REQUIRED
        assert context.check_hostname
        assert context.minimum_version == ssl.TLSVersion.TLSv1_2

    def test_non_verifying_context(self):
        context = create_ssl_context(verify=False)

        assert context.verify_mode == ssl.CERT_NONE
        assert not context.check_hostname

    @pytest.mark.parametrize(
        "host, port, scheme, expected",
        [
            ("example.com", 80, "http", "example.com"),
            ("example.com", 443, "https", "example.com"),
            ("example.com", 8080, "http", "example.com:8080"),
            ("example.com", 80, "https", "example.com:80"),
            ("::1", 8443, "https", "[::1]:8443"),
        ],
    )
    def test_format_host_header(self, host, port, scheme, expected):
        assert format_host_header(host, port, scheme) == expected
