"""
Core download engine for ParaFetch.
"""

from .attempt import AttemptContext
from .planner import RangePlanner
from .progress import ProgressAggregator
from .orchestrator import DownloadOrchestrator

__all__ = [
    "AttemptContext",
    "RangePlanner",
    "ProgressAggregator",
    "DownloadOrchestrator",
]
