"""Functions shared by the batch orchestrator."""

import os
from typing import Iterable, List, Tuple

from ..core import (
    BatchAggregate,
    Configuration,
    ConfigurationError,
    OutputSettings,
    ProcessingResult,
    ProcessingTask,
    SourceFile,
    build_output_relative_path,
    get_logger,
)


def create_tasks(
    files: Iterable[SourceFile], output_root: str, output_settings: OutputSettings
) -> List[ProcessingTask]:
    """
    Create one task per discovered file.

    Args:
        files: Files from the discovery collaborator
        output_root: Directory receiving the optimized files
        output_settings: Naming and overwrite policy

    Returns:
        Tasks in the order the files were given

    Raises:
        ConfigurationError: If two files would be written to the same output path
    """
    tasks: List[ProcessingTask] = []
    seen_outputs = {}

    for source in files:
        if output_settings.overwrite_original:
            output_path = source.path
        else:
            relative_output = build_output_relative_path(
                source.relative_path,
                output_settings.naming_pattern,
                output_settings.preserve_structure,
            )
            output_path = os.path.join(output_root, *relative_output.split("/"))

        key = os.path.normcase(os.path.abspath(output_path))
        if key in seen_outputs:
            raise ConfigurationError(
                f"Output path collision: {source.relative_path} and "
                f"{seen_outputs[key]} both map to {output_path}"
            )
        seen_outputs[key] = source.relative_path

        tasks.append(
            ProcessingTask(
                input_path=source.path,
                output_path=output_path,
                relative_path=source.relative_path,
            )
        )
    return tasks


def count_results(results: List[ProcessingResult]) -> Tuple[int, int]:
    """
    Count successful and failed results.

    Returns:
        Tuple of (success_count, error_count)
    """
    success_count = sum(1 for result in results if result.success)
    return success_count, len(results) - success_count


def log_configuration(
    configuration: Configuration, engine_name: str, task_count: int, workers: int
) -> None:
    """Log the settings a batch runs with."""
    logger = get_logger("images-optimizer.orchestrator")
    bounds = configuration.processing.max_dimensions
    logger.info("=" * 80)
    logger.info("BATCH IMAGE OPTIMIZER")
    logger.info("=" * 80)
    logger.info(f"  Files:          {task_count}")
    logger.info(f"  Engine:         {engine_name}")
    logger.info(f"  Workers:        {workers}")
    logger.info(f"  Max dimensions: {bounds.width}x{bounds.height}")
    for image_format in ("jpeg", "png", "webp", "avif"):
        settings = configuration.format_settings(image_format)
        quality = "-" if settings.quality is None else settings.quality
        logger.info(
            f"  {image_format.upper():<5} quality={quality} "
            f"strip_metadata={settings.strip_metadata}"
        )
    logger.info("=" * 80)


def log_final_statistics(aggregate: BatchAggregate) -> None:
    """Log final batch statistics."""
    logger = get_logger("images-optimizer.orchestrator")
    overall_rate = (
        aggregate.total_processed / aggregate.wall_time if aggregate.wall_time > 0 else 0
    )

    logger.info("=" * 80)
    logger.info("PROCESSING COMPLETED")
    logger.info("=" * 80)
    logger.info(f"Total execution time: {aggregate.wall_time:.1f}s")
    logger.info(f"Overall processing rate: {overall_rate:.1f} files/sec")
    logger.info(f"Successfully processed: {aggregate.success_count}")
    logger.info(f"Errors encountered: {aggregate.error_count}")
    logger.info(f"Workers used: {len(aggregate.worker_ids_used)}")
    logger.info(
        f"Space saved: {aggregate.bytes_saved} bytes ({aggregate.percent_saved:.1f}%)"
    )
    logger.info(f"Memory delta: {aggregate.memory_delta_mb:.1f} MB")
    logger.info("=" * 80)
