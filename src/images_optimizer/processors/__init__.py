"""Batch processing on a bounded worker pool."""

from .common import create_tasks
from .orchestrator import run_batch
from .progress import ProgressTracker, build_snapshot

__all__ = [
    "ProgressTracker",
    "build_snapshot",
    "create_tasks",
    "run_batch",
]
