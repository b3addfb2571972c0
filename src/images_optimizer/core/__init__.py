"""Core utilities and shared components for the images optimizer."""

from .config import (
    DEFAULT_SETTINGS,
    SUPPORTED_FORMATS,
    Configuration,
    Dimensions,
    FormatSettings,
    OutputSettings,
    ProcessingSettings,
    deep_merge,
    load_configuration_file,
    resolve_configuration,
)
from .exceptions import (
    ConfigurationError,
    EngineUnavailableError,
    ImagesOptimizerError,
    TaskIOError,
    TransformFailure,
    UnsupportedFormatError,
    with_error_handling,
)
from .image_utils import (
    EXTENSION_FORMATS,
    build_output_relative_path,
    calculate_target_dimensions,
    format_for_path,
)
from .logging_config import get_logger, setup_logger
from .models import (
    BatchAggregate,
    ProcessingResult,
    ProcessingTask,
    ProgressSnapshot,
    SourceFile,
    TaskState,
    TransformResult,
)

__all__ = [
    "DEFAULT_SETTINGS",
    "SUPPORTED_FORMATS",
    "Configuration",
    "Dimensions",
    "FormatSettings",
    "OutputSettings",
    "ProcessingSettings",
    "deep_merge",
    "load_configuration_file",
    "resolve_configuration",
    "ConfigurationError",
    "EngineUnavailableError",
    "ImagesOptimizerError",
    "TaskIOError",
    "TransformFailure",
    "UnsupportedFormatError",
    "with_error_handling",
    "EXTENSION_FORMATS",
    "build_output_relative_path",
    "calculate_target_dimensions",
    "format_for_path",
    "get_logger",
    "setup_logger",
    "BatchAggregate",
    "ProcessingResult",
    "ProcessingTask",
    "ProgressSnapshot",
    "SourceFile",
    "TaskState",
    "TransformResult",
]
