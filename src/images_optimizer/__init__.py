"""Batch image optimization on a bounded worker pool."""

from .core import (
    DEFAULT_SETTINGS,
    BatchAggregate,
    Configuration,
    ConfigurationError,
    EngineUnavailableError,
    ImagesOptimizerError,
    ProcessingResult,
    ProcessingTask,
    ProgressSnapshot,
    SourceFile,
    TaskIOError,
    TransformFailure,
    TransformResult,
    UnsupportedFormatError,
    load_configuration_file,
    resolve_configuration,
)
from .engines import EngineKind, probe_engines, transform
from .processors import create_tasks, run_batch

__version__ = "0.1.0"

__all__ = [
    "DEFAULT_SETTINGS",
    "BatchAggregate",
    "Configuration",
    "ConfigurationError",
    "EngineKind",
    "EngineUnavailableError",
    "ImagesOptimizerError",
    "ProcessingResult",
    "ProcessingTask",
    "ProgressSnapshot",
    "SourceFile",
    "TaskIOError",
    "TransformFailure",
    "TransformResult",
    "UnsupportedFormatError",
    "create_tasks",
    "load_configuration_file",
    "probe_engines",
    "resolve_configuration",
    "run_batch",
    "transform",
]
