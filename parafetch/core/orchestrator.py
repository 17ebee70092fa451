"""
Orchestrator for a parallel ranged download: probing, planning, attempts
with job-level retry, merging and cleanup.
"""

import asyncio
from contextlib import AsyncExitStack
from typing import List, Optional

import httpx

from ..models import (
    AttemptResult, ByteRange, DownloadConfig, DownloadRequest,
    DownloadResult, DownloadStatus, ErrorKind
)
from ..services import ChunkWorker, DownloadService, SizeProber
from ..infrastructure.connectivity import ConnectivityMonitor
from ..infrastructure.error_handler import SizeDiscoveryError
from ..infrastructure.http_client import create_client, create_monitor_client
from ..infrastructure.retry_manager import RetryManager
from .attempt import AttemptContext
from .planner import RangePlanner
from .progress import ProgressAggregator

from parafetch.infrastructure.logger import logger



####
##      DOWNLOAD ORCHESTRATOR
#####
class DownloadOrchestrator:
    """
    Runs one download job at a time: probe, plan, up to
    ``config.job_attempts`` parallel passes, merge and cleanup.

    Clients not supplied are built per job from ``config`` and the request's
    ``skip_tls_validation`` flag, and closed when the job ends. A supplied
    ``client`` or ``monitor`` is used as built, so its certificate policy is
    the caller's responsibility. The watchdog never shares the transfer
    client's connection pool.
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        config: Optional[DownloadConfig] = None,
        download_service: Optional[DownloadService] = None,
        monitor: Optional[ConnectivityMonitor] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.client = client
        self.config = config or DownloadConfig()
        self.download_service = download_service or DownloadService(self.config.temp_dir)
        self.monitor = monitor
        self.transport = transport
        self.planner = RangePlanner(self.config.parallel_threshold)
        self.probe_retry_manager = RetryManager.fixed(
            self.config.probe_attempts, self.config.probe_retry_delay
        )
        self.chunk_retry_manager = RetryManager.fixed(
            self.config.chunk_attempts, self.config.chunk_retry_delay
        )

        # State tracking for control methods
        self._is_cancelled = False
        self._cancel_event = asyncio.Event()
        self._current_result: Optional[DownloadResult] = None
        self._aggregator: Optional[ProgressAggregator] = None
        self._context: Optional[AttemptContext] = None
        self._client: Optional[httpx.AsyncClient] = None
        self._monitor: Optional[ConnectivityMonitor] = None

    async def execute_download(self, request: DownloadRequest) -> DownloadResult:
        """
        Execute a complete download job.

        Args:
            request: Download request

        Returns:
            DownloadResult; ``is_successful`` only when the destination
            file was fully assembled
        """
        if self._current_result is not None:
            raise RuntimeError("A download is already running on this orchestrator")

        logger.debug(f"Starting download of {request.url} to {request.destination}")

        result = DownloadResult(request=request)
        self._current_result = result

        async with AsyncExitStack() as clients:
            self._client = self.client
            if self._client is None:
                self._client = await clients.enter_async_context(
                    create_client(self.config, request.skip_tls_validation, self.transport)
                )
            self._monitor = self.monitor
            if self._monitor is None:
                monitor_client = await clients.enter_async_context(
                    create_monitor_client(self.config, request.skip_tls_validation, self.transport)
                )
                self._monitor = ConnectivityMonitor(
                    monitor_client,
                    self.config.connectivity_url,
                    interval=self.config.connectivity_interval,
                    timeout=self.config.connectivity_timeout
                )

            return await self._execute(request, result)

    async def _execute(self, request: DownloadRequest, result: DownloadResult) -> DownloadResult:
        monitor = self._monitor
        monitor.start()

        try:
            if self.download_service.discard(request.destination):
                logger.debug(f"Removed existing file at {request.destination}")

            result.status = DownloadStatus.PROBING
            prober = SizeProber(self._client, self.probe_retry_manager)
            try:
                result.total_size = await prober.probe(request.url)
            except SizeDiscoveryError as e:
                logger.error(f"Download aborted: {e}")
                result.mark_completed(DownloadStatus.FAILED, str(e))
                return result

            result.status = DownloadStatus.PLANNING
            ranges = self.planner.plan(result.total_size, request.parallelism)
            result.chunk_count = len(ranges)
            self._aggregator = ProgressAggregator(len(ranges), request.progress_callback)

            await self._run_attempts(request, ranges, result)
            return result

        except Exception as e:
            logger.error(f"Download failed: {e}")
            result.mark_completed(DownloadStatus.FAILED, str(e))
            return result

        finally:
            # Clean up regardless of success or failure
            if self._aggregator is not None:
                async with self._aggregator.lock:
                    removed = self.download_service.cleanup(self._aggregator.chunks)
                if removed:
                    logger.debug(f"Removed {removed} holding file(s)")
            await monitor.stop()
            self.reset_state()

    async def _run_attempts(
        self,
        request: DownloadRequest,
        ranges: List[ByteRange],
        result: DownloadResult
    ) -> None:
        """Job-level retry loop; leaves the final status on ``result``."""

        attempts = self.config.job_attempts

        for number in range(1, attempts + 1):
            if self._is_cancelled:
                break

            result.attempts = number

            if not await self._monitor.check():
                logger.warning(f"No connectivity, skipping attempt {number}/{attempts}")
                result.last_error = ErrorKind.CONNECTIVITY_LOST
            else:
                outcome = await self._run_attempt(number, request, ranges)
                result.last_error = outcome.error

                if outcome.completed:
                    if await self._merge(request, result):
                        return
                elif not outcome.is_retryable:
                    break

                if outcome.cause is not None:
                    logger.warning(f"Attempt {number}/{attempts} failed: {outcome.cause}")

            if number < attempts and not self._is_cancelled:
                result.status = DownloadStatus.BACKING_OFF
                logger.info(f"Retrying download in {self.config.job_retry_delay}s")
                await self._backoff(self.config.job_retry_delay)

        if self._is_cancelled or result.last_error is ErrorKind.CANCELLED:
            result.mark_completed(DownloadStatus.CANCELLED, "Download cancelled by user")
            return

        message = f"Download of {request.url} failed after {result.attempts} attempt(s)"
        if result.last_error is ErrorKind.FATAL_CONNECTION_ERROR:
            message = f"Download of {request.url} aborted: a chunk could not be downloaded"
        logger.error(message)
        result.mark_completed(DownloadStatus.FAILED, message)

    async def _backoff(self, delay: float) -> None:
        """Sleep between attempts, waking early if the job is cancelled."""

        try:
            await asyncio.wait_for(self._cancel_event.wait(), timeout=delay)
        except asyncio.TimeoutError:
            pass

    async def _run_attempt(
        self,
        number: int,
        request: DownloadRequest,
        ranges: List[ByteRange]
    ) -> AttemptResult:
        """
        One parallel pass over the unfinished chunks.

        Returns after every worker has returned (the barrier).
        """

        context = AttemptContext(number)
        self._context = context
        self._current_result.status = DownloadStatus.DOWNLOADING
        self._monitor.attach(context)

        pending = self._aggregator.unfinished_indexes()
        logger.info(
            f"Attempt {number}/{self.config.job_attempts}: "
            f"downloading {len(pending)} of {len(ranges)} chunk(s)"
        )

        semaphore = asyncio.Semaphore(len(ranges))
        workers = [
            ChunkWorker(
                client=self._client,
                url=request.url,
                index=index,
                byte_range=ranges[index],
                aggregator=self._aggregator,
                download_service=self.download_service,
                retry_manager=self.chunk_retry_manager,
                buffer_size=self.config.buffer_size
            )
            for index in pending
        ]

        try:
            results = await asyncio.gather(
                *(self._run_worker_with_semaphore(worker, context, semaphore) for worker in workers),
                return_exceptions=True
            )
        finally:
            self._monitor.detach()

        for outcome in results:
            if isinstance(outcome, BaseException):
                raise outcome

        async with self._aggregator.lock:
            completed = self._aggregator.all_finished()
        return context.result(completed)

    async def _run_worker_with_semaphore(
        self,
        worker: ChunkWorker,
        context: AttemptContext,
        semaphore: asyncio.Semaphore
    ) -> None:
        async with semaphore:
            await worker.run(context)

    async def _merge(self, request: DownloadRequest, result: DownloadResult) -> bool:
        """Merge chunks if every one finished; checked under the table lock."""

        async with self._aggregator.lock:
            if not self._aggregator.all_finished():
                return False

            result.status = DownloadStatus.MERGING
            result.bytes_written = await self.download_service.merge(
                self._aggregator.chunks, request.destination
            )

        result.mark_completed(DownloadStatus.COMPLETED)
        logger.info(
            f"Downloaded {request.url} to {request.destination} "
            f"({result.bytes_written} bytes in {result.attempts} attempt(s))"
        )
        return True

    def cancel(self) -> Optional[DownloadResult]:
        """
        Cancel the current download job.

        Returns:
            Current DownloadResult, or None if no download is active
        """
        if self._current_result is None:
            logger.warning("No active download to cancel")
            return None

        self._is_cancelled = True
        self._cancel_event.set()
        if self._context is not None:
            self._context.abort(ErrorKind.CANCELLED)

        logger.info("Download cancelled by user")
        return self._current_result

    def get_current_progress(self) -> Optional[int]:
        """Aggregate percentage of the active job, or None if idle."""

        if self._current_result is None or self._aggregator is None:
            return None
        return self._aggregator.percentage

    def reset_state(self) -> None:
        """Reset the orchestrator state after a job completes."""

        self._current_result = None
        self._aggregator = None
        self._context = None
        self._client = None
        self._monitor = None
        self._is_cancelled = False
        self._cancel_event.clear()


__all__ = [
    "DownloadOrchestrator",
]
