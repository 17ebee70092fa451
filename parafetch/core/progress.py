"""
Shared chunk table and progress aggregation.
"""

import asyncio
from pathlib import Path
from typing import Callable, List, Optional

from ..models import ChunkState, ProgressCallback


class ProgressAggregator:
    """
    Owns the per-chunk state table of a job and the single lock guarding it.

    Every progress change publishes the unweighted mean of all chunk
    percentages to the caller's callback while the lock is held, so callbacks
    are serialized. The mean ignores range lengths and is an approximation of
    byte progress when the last range is longer than the others.
    """

    def __init__(self, chunk_count: int, callback: Optional[ProgressCallback] = None):
        if chunk_count <= 0:
            raise ValueError("chunk_count must be positive")

        self.chunks: List[ChunkState] = [ChunkState() for _ in range(chunk_count)]
        self.callback = callback
        self.lock = asyncio.Lock()

    @property
    def percentage(self) -> int:
        return sum(chunk.progress for chunk in self.chunks) // len(self.chunks)

    def _publish(self) -> None:
        # Caller holds self.lock
        if self.callback is not None:
            self.callback(self.percentage)

    async def update(self, index: int, percent: int) -> None:
        async with self.lock:
            self.chunks[index].progress = max(0, min(100, percent))
            self._publish()

    async def reset(self, index: int) -> None:
        async with self.lock:
            self.chunks[index].progress = 0

    async def mark_finished(self, index: int) -> None:
        async with self.lock:
            chunk = self.chunks[index]
            chunk.finished = True
            chunk.progress = 100
            self._publish()

    async def is_finished(self, index: int) -> bool:
        async with self.lock:
            return self.chunks[index].finished

    async def holding_path(self, index: int, factory: Callable[[], Path]) -> Path:
        """Return the chunk's holding path, creating it on first use only."""

        async with self.lock:
            chunk = self.chunks[index]
            if chunk.holding_path is None:
                chunk.holding_path = factory()
            return chunk.holding_path

    def all_finished(self) -> bool:
        # Caller holds self.lock
        return all(chunk.finished for chunk in self.chunks)

    def unfinished_indexes(self) -> List[int]:
        return [index for index, chunk in enumerate(self.chunks) if not chunk.finished]


__all__ = [
    "ProgressAggregator",
]
