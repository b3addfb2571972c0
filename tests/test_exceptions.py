import logging
from unittest.mock import patch

import pytest

from images_optimizer.core.exceptions import (
    ConfigurationError,
    EngineUnavailableError,
    ImagesOptimizerError,
    TaskIOError,
    TransformFailure,
    UnsupportedFormatError,
    with_error_handling,
)


@with_error_handling
def _fail_func() -> None:
    raise ValueError("boom")


@with_error_handling
def _fail_with_pipeline_error() -> None:
    raise TaskIOError("disk full")


@pytest.mark.parametrize(
    "exc_type",
    [
        ConfigurationError,
        EngineUnavailableError,
        UnsupportedFormatError,
        TransformFailure,
        TaskIOError,
    ],
)
def test_every_error_derives_from_base(exc_type) -> None:
    assert issubclass(exc_type, ImagesOptimizerError)


def test_task_io_error_does_not_shadow_builtin() -> None:
    assert not issubclass(TaskIOError, OSError)


def test_with_error_handling_raises_transform_failure() -> None:
    with pytest.raises(TransformFailure, match="boom") as info:
        _fail_func()
    assert isinstance(info.value.__cause__, ValueError)


def test_with_error_handling_passes_pipeline_errors_through() -> None:
    with pytest.raises(TaskIOError, match="disk full"):
        _fail_with_pipeline_error()


def test_with_error_handling_logs_error() -> None:
    with patch("images_optimizer.core.exceptions.get_logger") as mock_get_logger:
        mock_get_logger.return_value = logging.getLogger("test")
        with pytest.raises(TransformFailure):
            _fail_func()
        assert mock_get_logger.called
