"""Single-task transformation entry point.

``transform`` is the boundary between the engines, which raise typed
errors, and callers, which only ever see a :class:`TransformResult`.
"""

import os
import uuid

from ..core.config import Configuration, FormatSettings
from ..core.exceptions import (
    EngineUnavailableError,
    ImagesOptimizerError,
    TaskIOError,
    TransformFailure,
)
from ..core.image_utils import calculate_target_dimensions, file_size, format_for_path
from ..core.logging_config import get_logger
from ..core.models import ProcessingTask, TransformResult
from ..core.protocols import TransformEngineProtocol
from .base import EngineKind


def _check_quality(settings: FormatSettings, image_format: str) -> None:
    quality = settings.quality
    if quality is not None and not 0 <= quality <= 100:
        raise TransformFailure(
            f"Invalid quality {quality} for {image_format}: must be between 0 and 100"
        )


def _same_file(first: str, second: str) -> bool:
    return os.path.normcase(os.path.abspath(first)) == os.path.normcase(
        os.path.abspath(second)
    )


def _temporary_path(output_path: str) -> str:
    directory, name = os.path.split(output_path)
    return os.path.join(directory, f".{name}.{uuid.uuid4().hex}.partial")


def _remove_quietly(path: str) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    except OSError as exc:
        get_logger("images-optimizer.engine").warning(
            f"Could not remove temporary file {path}: {exc}"
        )


def _run_transform(
    task: ProcessingTask,
    configuration: Configuration,
    engine: TransformEngineProtocol,
    result: TransformResult,
) -> None:
    format_for_path(task.input_path)
    if not os.path.isfile(task.input_path):
        raise TaskIOError(f"Input file not found: {task.input_path}")

    # An explicit output extension wins over the input format
    target_format = format_for_path(task.output_path)

    if engine.kind is EngineKind.UNAVAILABLE:
        raise EngineUnavailableError("No transformation engine available")

    settings = configuration.format_settings(target_format)
    _check_quality(settings, target_format)

    if _same_file(task.input_path, task.output_path) and not configuration.output.overwrite_original:
        raise TaskIOError(
            f"Refusing to overwrite original file {task.input_path}: overwriteOriginal is disabled"
        )

    result.original_size = os.path.getsize(task.input_path)

    timeout = configuration.processing.task_timeout_seconds or None
    width, height = engine.read_dimensions(task.input_path, timeout=timeout)
    bounds = configuration.processing.max_dimensions
    out_width, out_height, resized = calculate_target_dimensions(
        width, height, bounds.width, bounds.height
    )

    output_dir = os.path.dirname(task.output_path)
    if output_dir:
        try:
            os.makedirs(output_dir, exist_ok=True)
        except OSError as exc:
            raise TaskIOError(f"Cannot create output directory {output_dir}: {exc}") from exc

    temp_path = _temporary_path(task.output_path)
    committed = False
    try:
        engine.transform_file(
            task.input_path,
            temp_path,
            target_format,
            settings,
            (out_width, out_height),
            resized,
            timeout=timeout,
        )

        written = file_size(temp_path)
        if written is None:
            raise TaskIOError(f"Output file was not produced: {task.output_path}")
        if written == 0:
            raise TaskIOError(f"Output file is empty: {task.output_path}")

        try:
            os.replace(temp_path, task.output_path)
        except OSError as exc:
            raise TaskIOError(f"Cannot write output file {task.output_path}: {exc}") from exc
        committed = True
    finally:
        if not committed:
            _remove_quietly(temp_path)

    result.optimized_size = written
    result.resized = resized
    result.output_width = out_width
    result.output_height = out_height
    result.success = True


def transform(
    task: ProcessingTask,
    configuration: Configuration,
    engine: TransformEngineProtocol,
) -> TransformResult:
    """
    Transform one file with ``engine`` and report the outcome.

    Never raises: every failure is returned as ``success=False`` with a
    human-readable ``error_message``. On failure nothing is left at
    ``task.output_path``.

    Args:
        task: Input/output paths for the file
        configuration: Resolved batch configuration
        engine: Engine selected by the batch's capability probe

    Returns:
        The task's ``TransformResult``
    """
    logger = get_logger("images-optimizer.engine")
    result = TransformResult(engine_used=engine.name)

    try:
        _run_transform(task, configuration, engine, result)
    except ImagesOptimizerError as exc:
        result.success = False
        result.error_message = str(exc)
    except Exception as exc:  # noqa: BLE001
        logger.debug(f"Unexpected error transforming {task.input_path}", exc_info=True)
        result.success = False
        result.error_message = str(exc) or type(exc).__name__

    if result.success:
        logger.debug(
            f"[{task.input_path}] {result.original_size} -> {result.optimized_size} bytes, "
            f"{result.output_width}x{result.output_height} via {engine.name}"
        )
    else:
        logger.warning(f"[{task.input_path}] {result.error_message}")
    return result
