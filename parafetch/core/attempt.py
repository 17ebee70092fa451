"""
Per-attempt cancellation context shared by the workers and the watchdog.
"""

import asyncio
from typing import Optional

from ..models import AttemptResult, ErrorKind
from parafetch.infrastructure.logger import logger


class AttemptContext:
    """
    Cancellation signal and error slot for one parallel pass.

    A fresh context is created for every attempt. The first abort wins:
    later aborts still cancel but keep the original reason.
    """

    def __init__(self, number: int):
        self.number = number
        self.error = ErrorKind.OK
        self.cause: Optional[Exception] = None
        self._cancel_event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._cancel_event.is_set()

    def abort(self, error: ErrorKind, cause: Optional[Exception] = None) -> None:
        """Raise the cancellation signal, recording why if nothing was recorded yet."""

        if self.error is ErrorKind.OK:
            self.error = error
            self.cause = cause
            logger.debug(f"Attempt {self.number} aborted: {error.value}")
        self._cancel_event.set()

    async def wait(self) -> None:
        await self._cancel_event.wait()

    def result(self, completed: bool) -> AttemptResult:
        return AttemptResult(
            attempt=self.number,
            completed=completed,
            error=self.error,
            cause=self.cause
        )


__all__ = [
    "AttemptContext",
]
