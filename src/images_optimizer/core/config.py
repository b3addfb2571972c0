"""Configuration models and the layered settings resolver.

Settings arrive as three JSON-shaped layers (built-in defaults, a user
document and call-time overrides). ``resolve_configuration`` deep-merges
them with call > user > defaults priority, validates the merged tree and
returns a frozen :class:`Configuration` that workers share by reference.
"""

import copy
import json
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from .exceptions import ConfigurationError
from .logging_config import get_logger

SUPPORTED_FORMATS = ("jpeg", "png", "webp", "avif")

REQUIRED_KEYS = (
    "defaultSettings",
    "defaultSettings.jpeg",
    "defaultSettings.png",
    "defaultSettings.webp",
    "defaultSettings.avif",
    "processing",
    "processing.maxThreads",
    "processing.minFileSizeKB",
    "processing.maxDimensions",
    "output",
)

DEFAULT_SETTINGS: Dict[str, Any] = {
    "defaultSettings": {
        "jpeg": {"quality": 85, "progressive": True, "stripMetadata": True},
        "png": {"compressionLevel": 9, "stripMetadata": True},
        "webp": {"quality": 80, "lossless": False, "method": 4, "stripMetadata": True},
        "avif": {"quality": 60, "speed": 6, "stripMetadata": True},
    },
    "processing": {
        "maxThreads": 4,
        "maxDimensions": {"width": 2048, "height": 2048},
        "minFileSizeKB": 10,
        "retryAttempts": 3,
        "taskTimeoutSeconds": 300,
    },
    "output": {
        "preserveStructure": True,
        "namingPattern": "{name}{ext}",
        "createBackup": False,
        "overwriteOriginal": False,
    },
}


class _FrozenModel(BaseModel):
    model_config = ConfigDict(
        frozen=True, populate_by_name=True, alias_generator=to_camel, extra="forbid"
    )


class FormatSettings(_FrozenModel):
    """Encoder settings for one output format."""

    quality: Optional[int] = Field(default=None, ge=0, le=100)
    progressive: bool = False
    strip_metadata: bool = True
    compression_level: Optional[int] = Field(default=None, ge=0, le=9)
    lossless: bool = False
    method: Optional[int] = Field(default=None, ge=0, le=6)
    speed: Optional[int] = Field(default=None, ge=0, le=10)


class FormatTable(_FrozenModel):
    """Per-format settings for every supported output format."""

    jpeg: FormatSettings
    png: FormatSettings
    webp: FormatSettings
    avif: FormatSettings


class Dimensions(_FrozenModel):
    width: int = Field(ge=1)
    height: int = Field(ge=1)


class ProcessingSettings(_FrozenModel):
    """Processing bounds shared by every task of a batch."""

    max_threads: int = Field(ge=1)
    max_dimensions: Dimensions
    min_file_size_kb: float = Field(ge=0, alias="minFileSizeKB")
    # Parsed for compatibility with existing settings files; nothing retries.
    retry_attempts: int = Field(default=0, ge=0)
    task_timeout_seconds: Optional[float] = Field(default=300, ge=0)


class OutputSettings(_FrozenModel):
    """Where and how optimized files are written."""

    preserve_structure: bool = True
    naming_pattern: str = "{name}{ext}"
    create_backup: bool = False
    overwrite_original: bool = False

    @field_validator("naming_pattern")
    @classmethod
    def check_naming_pattern(cls, pattern: str) -> str:
        try:
            sample = pattern.format(name="photo", ext=".jpg")
        except (KeyError, IndexError, ValueError) as exc:
            raise ValueError(
                f"naming pattern may only use {{name}} and {{ext}} placeholders: {exc}"
            ) from exc
        if not sample.strip() or sample.endswith(("/", "\\")):
            raise ValueError("naming pattern must produce a file name")
        return pattern


class Configuration(_FrozenModel):
    """Resolved, validated and immutable settings for one batch."""

    default_settings: FormatTable
    processing: ProcessingSettings
    output: OutputSettings

    def format_settings(self, image_format: str) -> FormatSettings:
        """Settings for ``image_format`` (one of ``SUPPORTED_FORMATS``)."""
        if image_format not in SUPPORTED_FORMATS:
            raise KeyError(f"No settings for format: {image_format}")
        return getattr(self.default_settings, image_format)

    def to_dict(self) -> Dict[str, Any]:
        """Dump back to the JSON-shaped layer format."""
        return self.model_dump(by_alias=True)


def deep_merge(base: Dict[str, Any], override: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Merge ``override`` into a copy of ``base``.

    Nested mappings merge key by key; scalars and lists from ``override``
    replace the base value wholesale. ``None`` values in ``override`` mean
    "not set" and keep the base value.

    Args:
        base: Lower-priority tree. Not modified.
        override: Higher-priority tree. Not modified.

    Returns:
        A new merged tree sharing no mutable state with either input.
    """
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if value is None:
            continue
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, Mapping):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def _check_required_keys(tree: Mapping[str, Any]) -> None:
    for dotted in REQUIRED_KEYS:
        node: Any = tree
        for part in dotted.split("."):
            if not isinstance(node, Mapping) or part not in node:
                raise ConfigurationError(f"Missing required configuration key: {dotted}")
            node = node[part]


def _describe_validation_error(exc: ValidationError) -> str:
    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"])
        problems.append(f"{location}: {error['msg']}")
    return "Invalid configuration value at " + "; ".join(problems)


def resolve_configuration(
    defaults: Optional[Mapping[str, Any]] = None,
    user_overrides: Optional[Mapping[str, Any]] = None,
    call_overrides: Optional[Mapping[str, Any]] = None,
) -> Configuration:
    """
    Merge the settings layers and validate the result.

    Args:
        defaults: Base layer (defaults to ``DEFAULT_SETTINGS``)
        user_overrides: Layer loaded from the user's settings document
        call_overrides: Layer supplied by the caller for this batch only

    Returns:
        Frozen configuration for one batch

    Raises:
        ConfigurationError: If a layer is not a mapping, a required section is
            missing, or a value is out of range
    """
    logger = get_logger("images-optimizer.config")
    layers = [
        ("defaults", DEFAULT_SETTINGS if defaults is None else defaults),
        ("user overrides", user_overrides or {}),
        ("call overrides", call_overrides or {}),
    ]

    merged: Dict[str, Any] = {}
    for layer_name, layer in layers:
        if not isinstance(layer, Mapping):
            raise ConfigurationError(
                f"Configuration {layer_name} must be a mapping, got {type(layer).__name__}"
            )
        merged = deep_merge(merged, layer)

    _check_required_keys(merged)

    try:
        configuration = Configuration.model_validate(merged)
    except ValidationError as exc:
        raise ConfigurationError(_describe_validation_error(exc)) from exc

    logger.debug(
        f"Resolved configuration: max_threads={configuration.processing.max_threads}, "
        f"max_dimensions={configuration.processing.max_dimensions.width}x"
        f"{configuration.processing.max_dimensions.height}"
    )
    return configuration


def load_configuration_file(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Read a JSON settings document to use as a merge layer.

    Raises:
        ConfigurationError: If the file cannot be read, is not valid JSON, or
            does not contain a JSON object
    """
    config_path = Path(path)
    try:
        with config_path.open("r", encoding="utf-8") as handle:
            document = json.load(handle)
    except OSError as exc:
        raise ConfigurationError(f"Cannot read configuration file {config_path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"Invalid JSON in configuration file {config_path}: {exc}") from exc

    if not isinstance(document, dict):
        raise ConfigurationError(
            f"Configuration file {config_path} must contain a JSON object"
        )
    return document
