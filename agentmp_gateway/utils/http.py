"""HTTP utility functions for making upstream requests."""

import os
from functools import lru_cache
from typing import Union

import httpx

# Default custom certificate path for corporate/enterprise environments
DEFAULT_CUSTOM_CERT_PATH = "/etc/ssl/certs/ca-custom.pem"


@lru_cache(maxsize=1)
def get_ssl_verify() -> Union[str, bool]:
    """
    Get SSL verification setting for HTTP clients.

    Returns:
        Path to a custom CA certificate if one exists at the default location,
        otherwise True for default verification.
    """
    if os.path.exists(DEFAULT_CUSTOM_CERT_PATH):
        return DEFAULT_CUSTOM_CERT_PATH
    return True


def create_http_client(
    timeout: float = 300.0,
    connect_timeout: float = 10.0,
    max_connections: int = 100,
    max_keepalive_connections: int = 20,
    **kwargs
) -> httpx.AsyncClient:
    """
    Create the shared httpx AsyncClient used to reach upstreams.

    Redirects are not followed: a 3xx from an upstream goes back to the
    client untouched.

    Args:
        timeout: Read/write/pool timeout in seconds
        connect_timeout: Connection establishment timeout in seconds
        max_connections: Pool size across all upstreams
        max_keepalive_connections: Idle connections kept open
        **kwargs: Additional arguments passed to AsyncClient (e.g. ``transport``)

    Usage:
        async with create_http_client(timeout=60.0) as client:
            response = await client.get("https://example.com")
    """
    kwargs.setdefault("verify", get_ssl_verify())
    return httpx.AsyncClient(
        timeout=httpx.Timeout(timeout, connect=connect_timeout),
        limits=httpx.Limits(
            max_connections=max_connections,
            max_keepalive_connections=max_keepalive_connections,
        ),
        follow_redirects=False,
        **kwargs
    )
