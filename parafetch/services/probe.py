"""
Resource size discovery.
"""

import httpx

from ..infrastructure.error_handler import (
    TransferError, SizeDiscoveryError, handle_http_error
)
from ..infrastructure.retry_manager import RetryManager
from parafetch.infrastructure.logger import logger


class SizeProber:
    """Discovers the total byte length of a resource with a HEAD request."""

    def __init__(self, client: httpx.AsyncClient, retry_manager: RetryManager):
        self.client = client
        self.retry_manager = retry_manager

    @handle_http_error
    async def _request_size(self, url: str) -> int:
        response = await self.client.head(url, follow_redirects=True)
        if response.status_code != httpx.codes.OK:
            raise TransferError(f"HEAD {url} returned status {response.status_code}")

        length = response.headers.get("Content-Length")
        try:
            size = int(length)
        except (TypeError, ValueError):
            raise TransferError(f"HEAD {url} returned no usable Content-Length: {length!r}")

        if response.headers.get("Accept-Ranges", "").lower() != "bytes":
            logger.debug(f"{url} does not advertise byte range support")
        return size

    async def probe(self, url: str) -> int:
        """
        Return the resource size in bytes.

        Raises:
            SizeDiscoveryError: If every attempt failed or the resource is empty
        """

        try:
            size = await self.retry_manager.execute(self._request_size, url)
        except TransferError as e:
            raise SizeDiscoveryError(f"Could not determine the size of {url}", e) from e

        if size <= 0:
            raise SizeDiscoveryError(f"{url} reported an empty resource")

        logger.debug(f"{url} is {size} bytes")
        return size


__all__ = [
    "SizeProber",
]
