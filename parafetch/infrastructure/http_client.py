"""
HTTP client construction for download jobs.

Chunk transfers and the connectivity watchdog use separate clients: a chunk
holds its pooled connection for the whole transfer, so a watchdog sharing
that pool would time out waiting for a free slot and report a false outage.
"""

from typing import Optional

import httpx

from ..models import DownloadConfig


def create_client(
    config: DownloadConfig,
    skip_tls_validation: bool = False,
    transport: Optional[httpx.AsyncBaseTransport] = None
) -> httpx.AsyncClient:
    """
    Build the client used for the size probe and chunk transfers.

    Args:
        config: Supplies timeout and connection-pool settings
        skip_tls_validation: Disable certificate validation for this client only
        transport: Custom httpx transport, mainly for tests

    Returns:
        A new AsyncClient owned by the caller
    """
    limits = httpx.Limits(
        max_connections=config.max_connections,
        keepalive_expiry=config.keepalive_expiry
    )
    return httpx.AsyncClient(
        verify=not skip_tls_validation,
        limits=limits,
        timeout=httpx.Timeout(config.timeout),
        follow_redirects=True,
        transport=transport
    )


def create_monitor_client(
    config: DownloadConfig,
    skip_tls_validation: bool = False,
    transport: Optional[httpx.AsyncBaseTransport] = None
) -> httpx.AsyncClient:
    """Build the dedicated small-pool client of the connectivity watchdog."""

    return httpx.AsyncClient(
        verify=not skip_tls_validation,
        limits=httpx.Limits(max_connections=2, keepalive_expiry=config.keepalive_expiry),
        timeout=httpx.Timeout(config.connectivity_timeout),
        transport=transport
    )


__all__ = [
    "create_client",
    "create_monitor_client",
]
