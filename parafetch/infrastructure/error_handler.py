"""
Error types and HTTP error translation for ParaFetch.
"""

import functools
from typing import Any, Awaitable, Callable, Optional, TypeVar

import httpx

from .logger import logger


T = TypeVar("T")


####
##      EXCEPTION HIERARCHY
#####
class DownloadError(Exception):
    """Base exception for download errors."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        self.message = message
        self.original_error = original_error
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.original_error:
            return f"{self.message} (Original: {self.original_error})"
        return self.message


class TransferError(DownloadError):
    """A single HTTP exchange failed (transport error or unexpected status)."""


class ChunkTransientError(TransferError):
    """A chunk fetch did not answer with partial content."""


class SizeDiscoveryError(DownloadError):
    """The resource size could not be determined."""


class ChunkFatalError(DownloadError):
    """A chunk exhausted its local attempts."""


class ConnectivityLostError(DownloadError):
    """The reachability check failed."""


class ChunkCancelledError(DownloadError):
    """A worker saw the attempt cancelled before starting a local attempt."""


####
##      HTTP ERROR TRANSLATION
#####
def handle_http_error(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
    """
    Decorator translating httpx failures into TransferError.

    Errors already in the DownloadError hierarchy pass through untouched.
    """

    @functools.wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> T:
        try:
            return await func(*args, **kwargs)
        except DownloadError:
            raise
        except httpx.HTTPError as e:
            logger.debug(f"HTTP error in {func.__name__}: {e!r}")
            raise TransferError(f"HTTP request failed: {type(e).__name__}", e) from e

    return wrapper


__all__ = [
    "DownloadError",
    "TransferError",
    "ChunkTransientError",
    "SizeDiscoveryError",
    "ChunkFatalError",
    "ConnectivityLostError",
    "ChunkCancelledError",
    "handle_http_error",
]
