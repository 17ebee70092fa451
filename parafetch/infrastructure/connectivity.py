"""
Background connectivity watchdog.

Polls a highly available endpoint and cancels the attached attempt as soon as
a check fails. The monitor outlives individual attempts; the orchestrator
attaches each new attempt context and stops the monitor when the job ends.
"""

import asyncio
from typing import Optional

import httpx

from ..models import ErrorKind
from .error_handler import ConnectivityLostError
from .logger import logger


class ConnectivityMonitor:
    """Reachability poller that aborts the current attempt on loss."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        url: str,
        interval: float = 0.1,
        timeout: Optional[float] = 5.0
    ):
        self.client = client
        self.url = url
        self.interval = interval
        self.timeout = timeout
        self.is_online = True
        self._context = None
        self._task: Optional[asyncio.Task] = None
        self._stop_event = asyncio.Event()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def check(self) -> bool:
        """Run one reachability check; any failure counts as unreachable."""

        try:
            response = await self.client.get(self.url, timeout=self.timeout)
            response.raise_for_status()
        except httpx.HTTPError as e:
            if self.is_online:
                logger.warning(f"Connectivity check against {self.url} failed: {e!r}")
            self.is_online = False
            return False

        if not self.is_online:
            logger.info("Connectivity restored")
        self.is_online = True
        return True

    def attach(self, context) -> None:
        """Make ``context`` the attempt cancelled on connectivity loss."""
        self._context = context

    def detach(self) -> None:
        self._context = None

    def start(self) -> None:
        if self.running:
            return
        self._stop_event.clear()
        self._task = asyncio.create_task(self._run())
        logger.debug(f"Connectivity monitor started (every {self.interval}s)")

    async def stop(self) -> None:
        if self._task is None:
            return

        self._stop_event.set()
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        self.detach()
        logger.debug("Connectivity monitor stopped")

    async def _run(self) -> None:
        while not self._stop_event.is_set():
            if not await self.check():
                context = self._context
                if context is not None and not context.cancelled:
                    context.abort(
                        ErrorKind.CONNECTIVITY_LOST,
                        ConnectivityLostError(f"{self.url} is unreachable")
                    )

            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                pass


__all__ = [
    "ConnectivityMonitor",
]
