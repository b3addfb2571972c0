"""Shared data models for the images optimizer."""

from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class TaskState(str, Enum):
    """Lifecycle of a single task inside a batch. Terminal states are final."""

    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class SourceFile(BaseModel):
    """A file handed over by the discovery collaborator."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    path: str
    relative_path: str = Field(alias="relativePath")
    size: int = 0


class ProcessingTask(BaseModel):
    """One file slated for transformation."""

    model_config = ConfigDict(frozen=True)

    input_path: str
    output_path: str
    relative_path: str = ""


class TransformResult(BaseModel):
    """Outcome of applying an engine to a single task."""

    success: bool = False
    error_message: str = ""
    original_size: int = 0
    optimized_size: int = 0
    resized: bool = False
    output_width: int = 0
    output_height: int = 0
    engine_used: str = ""


class ProcessingResult(TransformResult):
    """Transform outcome as observed by the worker that ran it."""

    file_name: str
    worker_id: str = ""
    duration: float = 0.0

    @property
    def state(self) -> TaskState:
        return TaskState.SUCCEEDED if self.success else TaskState.FAILED


class ProgressSnapshot(BaseModel):
    """Point-in-time view of batch progress. Purely informational."""

    model_config = ConfigDict(frozen=True)

    percent_complete: float
    processed: int
    total: int
    current_file: str = ""
    elapsed: float = 0.0
    estimated_remaining: float = 0.0
    rate: float = 0.0


class BatchAggregate(BaseModel):
    """
    Summary of a completed batch run.

    ``memory_delta_mb`` is the growth of the process's peak resident set size
    while the pool ran, not the change in current usage; it is never negative
    and is 0.0 where peak RSS cannot be read.
    """

    model_config = ConfigDict(frozen=True)

    total_processed: int = 0
    success_count: int = 0
    error_count: int = 0
    worker_ids_used: Tuple[str, ...] = ()
    total_duration: float = 0.0
    average_duration: float = 0.0
    memory_delta_mb: float = 0.0
    wall_time: float = 0.0
    engine_used: Optional[str] = None
    results: Tuple[ProcessingResult, ...] = ()
    errors: Tuple[str, ...] = ()

    @property
    def total_original_size(self) -> int:
        return sum(r.original_size for r in self.results if r.success)

    @property
    def total_optimized_size(self) -> int:
        return sum(r.optimized_size for r in self.results if r.success)

    @property
    def bytes_saved(self) -> int:
        return self.total_original_size - self.total_optimized_size

    @property
    def percent_saved(self) -> float:
        if self.total_original_size <= 0:
            return 0.0
        return self.bytes_saved / self.total_original_size * 100

    def failed_results(self) -> List[ProcessingResult]:
        """Results of tasks that ended in the failed state."""
        return [r for r in self.results if not r.success]
