"""
Retry policy shared by the size prober and the chunk workers.
"""

import asyncio
import random
from typing import Any, Awaitable, Callable, Optional, Tuple, Type, TypeVar

from .error_handler import TransferError
from .logger import logger


T = TypeVar("T")


class RetryManager:
    """
    Re-runs an async operation on retryable errors with a computed delay.

    With ``exponential_base=1.0`` and ``jitter=False`` the delay is fixed at
    ``base_delay``, which is how the download engine uses it.
    """

    def __init__(
        self,
        max_retries: int = 3,
        base_delay: float = 1.0,
        max_delay: float = 30.0,
        exponential_base: float = 2.0,
        jitter: bool = True,
        retryable_errors: Tuple[Type[BaseException], ...] = (TransferError,)
    ):
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.exponential_base = exponential_base
        self.jitter = jitter
        self.retryable_errors = retryable_errors

    @classmethod
    def fixed(cls, attempts: int, delay: float) -> "RetryManager":
        """Build a manager making ``attempts`` tries separated by ``delay`` seconds."""

        return cls(
            max_retries=attempts - 1,
            base_delay=delay,
            max_delay=delay,
            exponential_base=1.0,
            jitter=False
        )

    def _calculate_delay(self, attempt: int) -> float:
        """Delay before retry number ``attempt + 1`` (attempt is zero-based)."""

        delay = min(self.base_delay * (self.exponential_base ** attempt), self.max_delay)
        if self.jitter:
            delay *= random.uniform(0.8, 1.2)
        return delay

    async def execute(
        self,
        func: Callable[..., Awaitable[T]],
        *args: Any,
        exceptions: Optional[Tuple[Type[BaseException], ...]] = None,
        max_retries: Optional[int] = None,
        **kwargs: Any
    ) -> T:
        """
        Execute ``func`` with retries.

        Args:
            func: Coroutine function to run
            exceptions: Exception types that trigger a retry
            max_retries: Override of the manager's retry count

        Returns:
            Whatever ``func`` returns on its first successful call

        Raises:
            The last retryable exception once all attempts are used, or any
            non-retryable exception immediately.
        """

        retryable = exceptions or self.retryable_errors
        retries = self.max_retries if max_retries is None else max_retries

        for attempt in range(retries + 1):
            try:
                return await func(*args, **kwargs)
            except retryable as e:
                if attempt >= retries:
                    logger.error(f"All {retries + 1} attempts failed, giving up")
                    raise

                delay = self._calculate_delay(attempt)
                logger.warning(f"Attempt {attempt + 1} failed: {e}. Retrying in {delay:.2f}s")
                await asyncio.sleep(delay)

        raise RuntimeError(f"No attempts made (max_retries={retries})")


__all__ = [
    "RetryManager",
]
