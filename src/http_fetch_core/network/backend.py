"""
Network backend interface for http_fetch_core.

This module defines the NetworkBackend interface that provides
abstractions for creating network connections.
"""

import ssl
from abc import ABC, abstractmethod
from typing import Optional

from .stream import NetworkStream


class NetworkBackend(ABC):
    """
    Interface for network backend implementations.

    A backend opens TCP connections and upgrades them to TLS. The
    HTTP/1.1 transport only ever talks to a backend through this
    interface, which lets tests substitute in-memory connections.
    """

    @abstractmethod
    async def connect_tcp(
        self,
        host: str,
        port: int,
        timeout: Optional[float] = None
    ) -> NetworkStream:
        """
        Connect to a TCP endpoint.

        Args:
            host: The hostname or IP address to connect to.
            port: The port number to connect to.
            timeout: Optional timeout in seconds for the connection.

        Returns:
            A NetworkStream representing the TCP connection.

        Raises:
            OSError: If the connection fails.
            asyncio.TimeoutError: If the connection times out.
        """
        pass

    @abstractmethod
    async def connect_tls(
        self,
        stream: NetworkStream,
        host: str,
        ssl_context: ssl.SSLContext,
        timeout: Optional[float] = None,
    ) -> NetworkStream:
        """
        Upgrade a TCP stream to TLS.

        Args:
            stream: The existing TCP NetworkStream to upgrade.
            host: The hostname sent as SNI and used for verification.
            ssl_context: Context carrying the certificate policy.
            timeout: Optional timeout in seconds for the TLS handshake.

        Returns:
            A NetworkStream representing the TLS connection.

        Raises:
            OSError: If the TLS handshake fails.
            asyncio.TimeoutError: If the TLS handshake times out.
        """
        pass
