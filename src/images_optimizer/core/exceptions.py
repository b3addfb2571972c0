"""Custom exceptions and error handling utilities for the images optimizer."""

from __future__ import annotations

from functools import wraps
from typing import Any, Callable, TypeVar

from .logging_config import get_logger


class ImagesOptimizerError(Exception):
    """Base exception for all images optimizer errors."""


class ConfigurationError(ImagesOptimizerError):
    """Error raised for malformed or incomplete settings. Fatal for a batch."""


class EngineUnavailableError(ImagesOptimizerError):
    """Error raised when no transformation engine of any kind is available."""


class UnsupportedFormatError(ImagesOptimizerError):
    """Error raised when a file extension is not in the supported set."""


class TransformFailure(ImagesOptimizerError):
    """Error raised when the underlying engine fails to produce an image."""


class TaskIOError(ImagesOptimizerError):
    """Error raised for missing inputs, unwritable outputs or empty outputs."""


F = TypeVar("F", bound=Callable[..., Any])


def with_error_handling(func: F) -> F:
    """Wrap a function so unexpected errors surface as ``TransformFailure``."""

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:  # type: ignore[override]
        logger = get_logger("images-optimizer.engine")
        try:
            return func(*args, **kwargs)
        except ImagesOptimizerError:
            raise
        except Exception as exc:  # noqa: BLE001
            logger.debug(f"Unhandled error in {func.__name__}: {exc}", exc_info=True)
            raise TransformFailure(str(exc)) from exc

    return wrapper  # type: ignore[return-value]
