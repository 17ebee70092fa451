"""
Public Python API for ParaFetch.
"""

import asyncio
import logging
from pathlib import Path
from typing import Optional, Union

import httpx

from ..core.orchestrator import DownloadOrchestrator
from ..models import DownloadConfig, DownloadRequest, DownloadResult, ProgressCallback
from ..services import DownloadService
from parafetch.infrastructure.logger import logger


class ParallelDownloader:
    """
    High-level entry point for parallel ranged downloads.

    Example:
        >>> downloader = ParallelDownloader()
        >>> ok = await downloader.download_file(
        ...     "https://example.com/big.iso", Path("big.iso"), parallelism=4
        ... )
    """

    def __init__(
        self,
        config: Optional[DownloadConfig] = None,
        verbose: bool = False,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Args:
            config: Download configuration, defaults when omitted
            verbose: Enable DEBUG logging
            transport: Custom httpx transport for the clients built per download
        """
        self.config = config or DownloadConfig()
        self.verbose = verbose
        self.transport = transport
        self.download_service = DownloadService(self.config.temp_dir)
        self.orchestrator: Optional[DownloadOrchestrator] = None

        logger.setLevel(logging.DEBUG if verbose else logging.INFO)

    def set_verbose(self, verbose: bool) -> None:
        self.verbose = verbose
        logger.setLevel(logging.DEBUG if verbose else logging.INFO)

    async def download(
        self,
        url: str,
        destination: Union[str, Path],
        parallelism: int = 0,
        progress_callback: Optional[ProgressCallback] = None,
        skip_tls_validation: bool = False
    ) -> DownloadResult:
        """
        Download ``url`` to ``destination`` and report the details.

        Args:
            url: Resource URL; the server must answer ranged GETs with 206
            destination: Final file path
            parallelism: Requested chunk count, ``<= 0`` for one per CPU
            progress_callback: Called with the aggregate percentage (0..100);
                runs on the event loop and must return quickly
            skip_tls_validation: Disable certificate validation

        Returns:
            DownloadResult describing the job
        """
        request = DownloadRequest(
            url=url,
            destination=Path(destination),
            parallelism=parallelism,
            progress_callback=progress_callback,
            skip_tls_validation=skip_tls_validation
        )
        if skip_tls_validation:
            logger.warning(f"TLS certificate validation disabled for {url}")

        self.orchestrator = DownloadOrchestrator(
            config=self.config,
            download_service=self.download_service,
            transport=self.transport
        )
        try:
            return await self.orchestrator.execute_download(request)
        finally:
            self.orchestrator = None

    async def download_file(
        self,
        url: str,
        destination: Union[str, Path],
        parallelism: int = 0,
        progress_callback: Optional[ProgressCallback] = None,
        skip_tls_validation: bool = False
    ) -> bool:
        """
        Download ``url`` to ``destination``.

        Returns:
            True only if the destination file was fully assembled
        """
        result = await self.download(
            url, destination, parallelism, progress_callback, skip_tls_validation
        )
        return result.is_successful

    def cancel_current_download(self) -> Optional[DownloadResult]:
        if self.orchestrator is None:
            logger.warning("No active download to cancel")
            return None
        return self.orchestrator.cancel()

    def get_download_progress(self) -> Optional[int]:
        if self.orchestrator is None:
            return None
        return self.orchestrator.get_current_progress()


def download_file(
    url: str,
    destination: Union[str, Path],
    parallelism: int = 0,
    progress_callback: Optional[ProgressCallback] = None,
    skip_tls_validation: bool = False,
    config: Optional[DownloadConfig] = None
) -> bool:
    """Blocking wrapper around :meth:`ParallelDownloader.download_file`."""

    downloader = ParallelDownloader(config)
    return asyncio.run(
        downloader.download_file(
            url, destination, parallelism, progress_callback, skip_tls_validation
        )
    )


__all__ = [
    "ParallelDownloader",
    "download_file",
]
