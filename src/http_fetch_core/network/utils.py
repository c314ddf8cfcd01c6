"""
Network utilities for http_fetch_core.

This module provides helpers shared by the transport and the
network backends: SSL context setup and Host header formatting.
"""

import ssl
from typing import Optional


def create_ssl_context(
    verify: bool = True,
    cert_file: Optional[str] = None,
    key_file: Optional[str] = None,
) -> ssl.SSLContext:
    """
    Create an SSL context for client connections.

    Args:
        verify: Verify the peer certificate and hostname. When False any
            certificate is accepted.
        cert_file: Path to certificate file (for client auth)
        key_file: Path to private key file (for client auth)

    Returns:
        Configured SSL context
    """
    context = ssl.create_default_context()
    if not verify:
        # check_hostname must be disabled before verify_mode can be lowered
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE

    context.options |= ssl.OP_NO_COMPRESSION
    context.minimum_version = ssl.TLSVersion.TLSv1_2
    context.set_alpn_protocols(["http/1.1"])

    if cert_file and key_file:
        context.load_cert_chain(cert_file, key_file)

    return context


def format_host_header(host: str, port: int, scheme: str) -> str:
    """
    Format host header for HTTP requests.

    The port is omitted when it is the default for the scheme.
    """
    if ":" in host and not host.startswith("["):
        host = f"[{host}]"
    if (scheme == "https" and port == 443) or (scheme == "http" and port == 80):
        return host
    return f"{host}:{port}"
