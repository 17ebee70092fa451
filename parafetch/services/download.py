"""
Holding-file management and chunk merging.
"""

import asyncio
import os
import shutil
import tempfile
from pathlib import Path
from typing import List, Optional

from ..models import ChunkState
from parafetch.infrastructure.logger import logger


class DownloadService:
    """Filesystem side of a download: holding files, merge and cleanup."""

    def __init__(self, temp_dir: Optional[Path] = None):
        self.temp_dir = temp_dir

    def create_holding_file(self) -> Path:
        """Create an empty holding file in the temp directory."""

        fd, path = tempfile.mkstemp(prefix="parafetch-", suffix=".part", dir=self.temp_dir)
        os.close(fd)
        return Path(path)

    async def ensure_directory(self, path: Path) -> None:
        path.mkdir(parents=True, exist_ok=True)

    async def merge(self, chunks: List[ChunkState], destination: Path) -> int:
        """
        Concatenate finished chunks into ``destination`` in range order.

        Each holding file is deleted once consumed. A failed merge removes the
        partial destination before the error propagates.

        Args:
            chunks: Chunk states in range order, all finished
            destination: Final file path

        Returns:
            Number of bytes written
        """

        unfinished = [index for index, chunk in enumerate(chunks) if not chunk.finished]
        if unfinished:
            raise ValueError(f"Cannot merge unfinished chunks: {unfinished}")

        await self.ensure_directory(destination.parent)
        try:
            written = await asyncio.to_thread(self._merge_files, chunks, destination)
        except BaseException:
            destination.unlink(missing_ok=True)
            raise

        logger.debug(f"Merged {len(chunks)} chunk(s) into {destination} ({written} bytes)")
        return written

    @staticmethod
    def _merge_files(chunks: List[ChunkState], destination: Path) -> int:
        written = 0
        with open(destination, "wb") as target:
            for chunk in chunks:
                with open(chunk.holding_path, "rb") as source:
                    shutil.copyfileobj(source, target)
                    written += source.tell()
                chunk.holding_path.unlink()
                chunk.holding_path = None
        return written

    def discard(self, destination: Path) -> bool:
        """Delete a file left at ``destination`` by an earlier run."""

        try:
            destination.unlink()
        except FileNotFoundError:
            return False
        return True

    def cleanup(self, chunks: List[ChunkState]) -> int:
        """Delete every remaining holding file; returns how many were removed."""

        removed = 0
        for chunk in chunks:
            if chunk.holding_path is None:
                continue
            try:
                chunk.holding_path.unlink()
                removed += 1
            except FileNotFoundError:
                pass
            chunk.holding_path = None
        return removed


__all__ = [
    "DownloadService",
]
