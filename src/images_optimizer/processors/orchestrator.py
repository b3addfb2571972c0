"""Parallel batch orchestrator - runs one transform per task on a thread pool."""

import sys
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import List, Optional, Sequence

from ..core import (
    BatchAggregate,
    Configuration,
    ConfigurationError,
    EngineUnavailableError,
    ProcessingResult,
    ProcessingTask,
    TaskState,
    TransformResult,
    get_logger,
)
from ..core.error_handling import BatchOperationContextManager
from ..core.logging_config import current_worker_id
from ..core.protocols import (
    ProgressSinkProtocol,
    TransformEngineProtocol,
    TransformFunction,
)
from ..engines import EngineKind, probe_engines, transform
from .common import count_results, log_configuration, log_final_statistics
from .progress import ProgressTracker

if sys.platform != "win32":
    import resource
else:
    resource = None

WORKER_NAME_PREFIX = "worker"


def memory_usage_mb() -> float:
    """Peak resident set size of this process in MB; 0.0 where unavailable.

    The peak only grows, so differences between two readings measure growth
    of the peak rather than of current usage.
    """
    if resource is None:
        return 0.0
    peak = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss
    # ru_maxrss is reported in bytes on macOS and KiB elsewhere
    divisor = 1024 * 1024 if sys.platform == "darwin" else 1024
    return peak / divisor


def _task_name(task: ProcessingTask) -> str:
    if task.relative_path:
        return task.relative_path
    return task.input_path.replace("\\", "/").rsplit("/", 1)[-1]


def _process_task(
    task: ProcessingTask,
    configuration: Configuration,
    engine: TransformEngineProtocol,
    tracker: ProgressTracker,
    transform_fn: TransformFunction,
) -> ProcessingResult:
    """Worker body: run one task to a terminal state and count it."""
    logger = get_logger("images-optimizer.orchestrator")
    worker_id = current_worker_id()
    file_name = _task_name(task)
    logger.debug(f"[{file_name}] {TaskState.RUNNING.value} on {worker_id}")

    started = time.perf_counter()
    try:
        outcome = transform_fn(task, configuration, engine)
    except Exception as exc:  # noqa: BLE001
        logger.error(f"[{file_name}] Transform raised: {exc}", exc_info=True)
        outcome = TransformResult(
            success=False,
            error_message=str(exc) or type(exc).__name__,
            engine_used=engine.name,
        )
    duration = time.perf_counter() - started

    result = ProcessingResult(
        **outcome.model_dump(),
        file_name=file_name,
        worker_id=worker_id,
        duration=duration,
    )
    logger.debug(f"[{file_name}] {result.state.value} in {duration:.3f}s")
    tracker.advance(file_name)
    return result


def _aggregate(
    results: List[ProcessingResult],
    errors: List[str],
    wall_time: float,
    memory_delta_mb: float,
    engine_name: str,
) -> BatchAggregate:
    success_count, error_count = count_results(results)
    total_duration = sum(result.duration for result in results)
    return BatchAggregate(
        total_processed=len(results),
        success_count=success_count,
        error_count=error_count,
        worker_ids_used=tuple(sorted({r.worker_id for r in results if r.worker_id})),
        total_duration=total_duration,
        average_duration=total_duration / len(results) if results else 0.0,
        memory_delta_mb=round(memory_delta_mb, 2),
        wall_time=wall_time,
        engine_used=engine_name,
        results=tuple(results),
        errors=tuple(errors),
    )


def run_batch(
    tasks: Sequence[ProcessingTask],
    configuration: Configuration,
    throttle_limit: Optional[int] = None,
    progress_sink: Optional[ProgressSinkProtocol] = None,
    engine: Optional[TransformEngineProtocol] = None,
    transform_fn: TransformFunction = transform,
) -> BatchAggregate:
    """
    Transform every task on a bounded worker pool and summarize the outcome.

    Every task yields exactly one result. Per-task failures, including
    exceptions raised by ``transform_fn``, are recorded as failed results and
    never stop sibling tasks.

    Args:
        tasks: Tasks to run; completion order is not guaranteed
        configuration: Resolved configuration shared by all workers
        throttle_limit: Maximum concurrent workers (defaults to
            ``processing.max_threads``)
        progress_sink: Optional callable receiving ``ProgressSnapshot``s on
            the calling thread
        engine: Engine to use; probed once for this batch when omitted
        transform_fn: Single-task entry point, ``transform`` by default

    Returns:
        The batch's ``BatchAggregate``

    Raises:
        ConfigurationError: If ``throttle_limit`` is below 1
        EngineUnavailableError: If no engine can run, before any task starts
    """
    logger = get_logger("images-optimizer.orchestrator")
    tasks = list(tasks)

    if throttle_limit is None:
        throttle_limit = configuration.processing.max_threads
    if throttle_limit < 1:
        raise ConfigurationError(f"Throttle limit must be at least 1, got {throttle_limit}")

    if not tasks:
        logger.info("No files to process")
        return BatchAggregate()

    if engine is None:
        engine = probe_engines()
    if engine.kind is EngineKind.UNAVAILABLE:
        raise EngineUnavailableError(
            "No transformation engine available: install ImageMagick or Pillow"
        )

    max_workers = min(throttle_limit, len(tasks))
    log_configuration(configuration, engine.name, len(tasks), max_workers)

    tracker = ProgressTracker(len(tasks), keep_snapshots=progress_sink is not None)
    results: List[ProcessingResult] = []

    with BatchOperationContextManager(
        operation_name=f"Batch of {len(tasks)} files via {engine.name}"
    ) as batch_errors:
        memory_before = memory_usage_mb()
        started = time.perf_counter()

        with ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix=WORKER_NAME_PREFIX
        ) as executor:
            future_to_task = {
                executor.submit(
                    _process_task, task, configuration, engine, tracker, transform_fn
                ): task
                for task in tasks
            }

            for future in as_completed(future_to_task):
                try:
                    result = future.result()
                except Exception as exc:  # noqa: BLE001
                    task = future_to_task[future]
                    result = ProcessingResult(
                        file_name=_task_name(task),
                        success=False,
                        error_message=str(exc) or type(exc).__name__,
                        engine_used=engine.name,
                    )
                    tracker.advance(result.file_name)

                results.append(result)
                if not result.success:
                    batch_errors.add_error(result.error_message, result.file_name)
                if progress_sink is not None:
                    tracker.drain(progress_sink)

        wall_time = time.perf_counter() - started
        memory_after = memory_usage_mb()

    if progress_sink is not None:
        tracker.drain(progress_sink)

    aggregate = _aggregate(
        results,
        batch_errors.messages(),
        wall_time,
        memory_after - memory_before,
        engine.name,
    )
    log_final_statistics(aggregate)
    return aggregate
