"""
Unit tests for RetryManager in parafetch.infrastructure.retry_manager.
"""

import pytest
import asyncio

from parafetch.infrastructure.error_handler import TransferError, ChunkTransientError
from parafetch.infrastructure.retry_manager import RetryManager


# ---- Helpers ---------------------------------------------------------------

class MockAsyncFunction:
    """Helper class to create async functions with controllable behavior."""

    def __init__(self):
        self.call_count = 0
        self.side_effects = []
        self.return_value = "success"

    def set_side_effects(self, effects):
        """Set a list of exceptions to raise on each call, followed by success."""
        self.side_effects = effects

    async def __call__(self):
        self.call_count += 1

        if self.side_effects and self.call_count <= len(self.side_effects):
            effect = self.side_effects[self.call_count - 1]
            if isinstance(effect, Exception):
                raise effect
            return effect

        return self.return_value


# ---- Initialization tests --------------------------------------------------

def test_retry_manager_default_initialization():
    """Test RetryManager initialization with default values."""
    manager = RetryManager()

    assert manager.max_retries == 3
    assert manager.base_delay == 1.0
    assert manager.max_delay == 30.0
    assert manager.exponential_base == 2.0
    assert manager.jitter is True
    assert manager.retryable_errors == (TransferError,)


def test_fixed_retry_manager():
    """fixed() makes N attempts with a constant delay."""
    manager = RetryManager.fixed(3, 5.0)

    assert manager.max_retries == 2
    assert manager.jitter is False
    assert [manager._calculate_delay(attempt) for attempt in range(4)] == [5.0] * 4


# ---- Successful operation tests --------------------------------------------

@pytest.mark.asyncio
async def test_successful_operation_without_retries():
    """Test that successful operation on first try requires no retries."""
    manager = RetryManager()
    mock_func = MockAsyncFunction()
    mock_func.return_value = "success_result"

    result = await manager.execute(mock_func)

    assert result == "success_result"
    assert mock_func.call_count == 1


@pytest.mark.asyncio
async def test_successful_operation_after_retries():
    """Test successful operation after some failed attempts."""
    manager = RetryManager(max_retries=3, base_delay=0.01)
    mock_func = MockAsyncFunction()

    mock_func.set_side_effects([
        TransferError("Network error"),
        ChunkTransientError("Status 500")
    ])
    mock_func.return_value = "success_after_retries"

    result = await manager.execute(mock_func)

    assert result == "success_after_retries"
    assert mock_func.call_count == 3


@pytest.mark.asyncio
async def test_passes_arguments_through():
    manager = RetryManager()

    async def add(a, b, scale=1):
        return (a + b) * scale

    assert await manager.execute(add, 1, 2, scale=10) == 30


# ---- Max attempts tests ---------------------------------------------------

@pytest.mark.asyncio
async def test_stops_retrying_after_max_attempts():
    """Stops after max attempts and raises the last exception."""
    manager = RetryManager(max_retries=2, base_delay=0.01)
    mock_func = MockAsyncFunction()

    mock_func.set_side_effects([TransferError("Persistent failure")] * 3)

    with pytest.raises(TransferError, match="Persistent failure"):
        await manager.execute(mock_func)

    # 1 initial + 2 retries
    assert mock_func.call_count == 3


@pytest.mark.asyncio
async def test_max_retries_override():
    """max_retries parameter overrides the manager's default."""
    manager = RetryManager(max_retries=5, base_delay=0.01)
    mock_func = MockAsyncFunction()
    mock_func.set_side_effects([TransferError("Always fails")] * 10)

    with pytest.raises(TransferError):
        await manager.execute(mock_func, max_retries=1)

    assert mock_func.call_count == 2


# ---- Non-retryable exception tests ----------------------------------------

@pytest.mark.asyncio
async def test_non_retryable_exception_raised_immediately():
    """Exceptions outside the retryable set are raised without retries."""
    manager = RetryManager(max_retries=3, base_delay=0.01)
    mock_func = MockAsyncFunction()
    mock_func.set_side_effects([ValueError("Non-retryable error")])

    with pytest.raises(ValueError, match="Non-retryable error"):
        await manager.execute(mock_func)

    assert mock_func.call_count == 1


@pytest.mark.asyncio
async def test_custom_exception_set():
    manager = RetryManager(max_retries=3, base_delay=0.01)
    mock_func = MockAsyncFunction()
    mock_func.set_side_effects([KeyError("first"), TransferError("second")])

    with pytest.raises(TransferError):
        await manager.execute(mock_func, exceptions=(KeyError,))

    assert mock_func.call_count == 2


# ---- Backoff tests --------------------------------------------------------

def test_calculate_delay_exponential_growth():
    manager = RetryManager(base_delay=1.0, exponential_base=2.0, max_delay=100.0, jitter=False)

    assert manager._calculate_delay(0) == 1.0
    assert manager._calculate_delay(1) == 2.0
    assert manager._calculate_delay(2) == 4.0
    assert manager._calculate_delay(3) == 8.0


def test_calculate_delay_respects_max_delay():
    manager = RetryManager(base_delay=10.0, exponential_base=3.0, max_delay=15.0, jitter=False)

    assert manager._calculate_delay(0) == 10.0
    assert manager._calculate_delay(1) == 15.0
    assert manager._calculate_delay(2) == 15.0


def test_calculate_delay_with_jitter():
    """Jitter keeps the delay within 20% of the computed value."""
    manager = RetryManager(base_delay=10.0, exponential_base=2.0, max_delay=100.0, jitter=True)

    delays = [manager._calculate_delay(0) for _ in range(100)]

    assert all(8.0 <= delay <= 12.0 for delay in delays)
    assert len(set(delays)) > 1


@pytest.mark.asyncio
async def test_real_delay_timing():
    """Fixed delays are actually slept between attempts."""
    manager = RetryManager.fixed(3, 0.05)
    mock_func = MockAsyncFunction()
    mock_func.set_side_effects([TransferError("First"), TransferError("Second")])

    start_time = asyncio.get_running_loop().time()
    result = await manager.execute(mock_func)
    elapsed = asyncio.get_running_loop().time() - start_time

    assert elapsed >= 0.09
    assert result == "success"


# ---- Logging tests --------------------------------------------------------

@pytest.mark.asyncio
async def test_logging_behavior(caplog):
    manager = RetryManager(max_retries=1, base_delay=0.01)
    mock_func = MockAsyncFunction()
    mock_func.set_side_effects([TransferError("Test error")])

    with caplog.at_level("WARNING"):
        result = await manager.execute(mock_func)

    assert result == "success"
    assert "Attempt 1 failed: Test error" in caplog.text
    assert "Retrying in" in caplog.text


@pytest.mark.asyncio
async def test_logging_on_final_failure(caplog):
    manager = RetryManager(max_retries=1, base_delay=0.01)
    mock_func = MockAsyncFunction()
    mock_func.set_side_effects([TransferError("Failure 1"), TransferError("Failure 2")])

    with caplog.at_level("ERROR"):
        with pytest.raises(TransferError):
            await manager.execute(mock_func)

    assert "All 2 attempts failed, giving up" in caplog.text
