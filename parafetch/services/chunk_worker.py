"""
Ranged download of a single chunk.
"""

from pathlib import Path
from typing import Optional

import httpx

from ..models import ByteRange, ErrorKind
from ..core.attempt import AttemptContext
from ..core.progress import ProgressAggregator
from ..infrastructure.error_handler import (
    TransferError, ChunkTransientError, ChunkFatalError, ChunkCancelledError,
    handle_http_error
)
from ..infrastructure.retry_manager import RetryManager
from .download import DownloadService
from parafetch.infrastructure.logger import logger


class ChunkWorker:
    """
    Downloads one byte range into its holding file.

    Local failures are retried by the retry manager; each retry restarts the
    chunk from its first byte. When the local budget is exhausted the worker
    aborts the whole attempt with FATAL_CONNECTION_ERROR instead of raising.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        url: str,
        index: int,
        byte_range: ByteRange,
        aggregator: ProgressAggregator,
        download_service: DownloadService,
        retry_manager: RetryManager,
        buffer_size: int
    ):
        self.client = client
        self.url = url
        self.index = index
        self.byte_range = byte_range
        self.aggregator = aggregator
        self.download_service = download_service
        self.retry_manager = retry_manager
        self.buffer_size = buffer_size

    async def run(self, context: AttemptContext) -> None:
        if await self.aggregator.is_finished(self.index):
            return

        try:
            await self.retry_manager.execute(self._download, context)
        except ChunkCancelledError:
            logger.debug(f"Chunk {self.index} skipped, attempt {context.number} was cancelled")
        except TransferError as e:
            attempts = self.retry_manager.max_retries + 1
            error = ChunkFatalError(f"Chunk {self.index} failed after {attempts} attempts", e)
            logger.error(str(error))
            context.abort(ErrorKind.FATAL_CONNECTION_ERROR, error)
        except Exception as e:
            # Stop the sibling workers before the error reaches the barrier
            context.abort(ErrorKind.FATAL_CONNECTION_ERROR, e)
            raise

    @handle_http_error
    async def _download(self, context: AttemptContext) -> None:
        """One local attempt; returns early without finishing if cancelled."""

        if context.cancelled:
            raise ChunkCancelledError(f"Attempt {context.number} cancelled")

        await self.aggregator.reset(self.index)

        headers = {"Range": self.byte_range.header}
        async with self.client.stream("GET", self.url, headers=headers) as response:
            if response.status_code != httpx.codes.PARTIAL_CONTENT:
                raise ChunkTransientError(
                    f"Chunk {self.index} ({self.byte_range.header}) "
                    f"returned status {response.status_code}"
                )

            try:
                holding_path = await self.aggregator.holding_path(
                    self.index, self.download_service.create_holding_file
                )
                received = await self._write_body(response, holding_path, context)
            except OSError as e:
                raise ChunkTransientError(f"Chunk {self.index} could not be stored", e) from e

        if received is None:
            return

        length = self.byte_range.length
        if received != length:
            raise ChunkTransientError(
                f"Chunk {self.index} ended after {received} of {length} bytes"
            )

        await self.aggregator.mark_finished(self.index)
        logger.debug(f"Chunk {self.index} finished ({received} bytes)")

    async def _write_body(
        self,
        response: httpx.Response,
        holding_path: Path,
        context: AttemptContext
    ) -> Optional[int]:
        """Stream the body into the holding file; None when stopped by cancellation."""

        received = 0
        length = self.byte_range.length
        with open(holding_path, "wb") as holding_file:
            async for data in response.aiter_bytes(self.buffer_size):
                holding_file.write(data)
                received += len(data)
                await self.aggregator.update(self.index, received * 100 // length)

                if context.cancelled:
                    logger.debug(f"Chunk {self.index} stopped at {received}/{length} bytes")
                    return None

        return received


__all__ = [
    "ChunkWorker",
]
