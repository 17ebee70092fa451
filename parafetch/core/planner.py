"""
Range planning for parallel downloads.
"""

import os
from typing import List, Optional

from ..models import ByteRange, MIB
from parafetch.infrastructure.logger import logger


class RangePlanner:
    """
    Decides how many chunks a resource is split into and computes
    their byte ranges.
    """

    def __init__(self, parallel_threshold: int = 100 * MIB, cpu_count: Optional[int] = None):
        self.parallel_threshold = parallel_threshold
        self.cpu_count = cpu_count or os.cpu_count() or 1

    def chunk_count(self, total_size: int, parallelism: int) -> int:
        """
        Number of chunks for a resource.

        Resources below the parallel threshold always use a single chunk.
        A non-positive parallelism means one chunk per processing unit.
        """

        if total_size < self.parallel_threshold:
            count = 1
        elif parallelism <= 0:
            count = self.cpu_count
        else:
            count = parallelism

        # Never plan empty ranges
        return max(1, min(count, total_size))

    @staticmethod
    def split(total_size: int, count: int) -> List[ByteRange]:
        """
        Split ``[0, total_size)`` into ``count`` contiguous ranges.

        All ranges but the last hold ``total_size // count`` bytes; the last
        one absorbs the remainder.
        """

        if total_size < 1:
            raise ValueError("total_size must be at least 1")
        if not 1 <= count <= total_size:
            raise ValueError(f"count must be between 1 and {total_size}, got {count}")

        size = total_size // count
        ranges = [
            ByteRange(start=index * size, end=(index + 1) * size - 1)
            for index in range(count - 1)
        ]
        last_start = ranges[-1].end + 1 if ranges else 0
        ranges.append(ByteRange(start=last_start, end=total_size - 1))
        return ranges

    def plan(self, total_size: int, parallelism: int) -> List[ByteRange]:
        count = self.chunk_count(total_size, parallelism)
        ranges = self.split(total_size, count)
        logger.debug(
            f"Planned {count} chunk(s) for {total_size} bytes "
            f"(requested parallelism {parallelism})"
        )
        return ranges


__all__ = [
    "RangePlanner",
]
