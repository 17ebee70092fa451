"""
Configuration models for ParaFetch downloads.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional


MIB = 1024 * 1024


@dataclass
class DownloadConfig:
    """
    Unified configuration for parallel downloads.

    Groups the buffer, planning, retry, connectivity and connection-pool
    settings consumed by the orchestrator and its workers.
    """

    # Transfer settings
    buffer_size: int = 10 * MIB
    parallel_threshold: int = 100 * MIB  # Smaller resources use one chunk

    # Retry settings
    chunk_attempts: int = 3
    chunk_retry_delay: float = 5.0
    probe_attempts: int = 3
    probe_retry_delay: float = 5.0
    job_attempts: int = 3
    job_retry_delay: float = 30.0

    # Connectivity watchdog
    connectivity_url: str = "http://google.com/generate_204"
    connectivity_interval: float = 0.1
    connectivity_timeout: float = 5.0

    # HTTP client settings
    timeout: Optional[float] = None  # No read timeout on chunk transfers
    max_connections: int = 100
    keepalive_expiry: float = 1.0

    # Holding files, platform temp directory when unset
    temp_dir: Optional[Path] = None

    def __post_init__(self) -> None:
        if self.buffer_size <= 0:
            raise ValueError("buffer_size must be positive")
        if self.parallel_threshold < 0:
            raise ValueError("parallel_threshold cannot be negative")
        for name in ("chunk_attempts", "probe_attempts", "job_attempts"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")
        for name in ("chunk_retry_delay", "probe_retry_delay", "job_retry_delay"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} cannot be negative")
        if self.connectivity_interval <= 0:
            raise ValueError("connectivity_interval must be positive")


__all__ = [
    "MIB",
    "DownloadConfig",
]
