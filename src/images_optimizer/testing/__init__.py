"""Testing utilities and fakes for the images optimizer."""

from .fakes import (
    FakeCommandRunner,
    FakeEngine,
    RecordingProgressSink,
    create_test_image,
)

__all__ = [
    "FakeCommandRunner",
    "FakeEngine",
    "RecordingProgressSink",
    "create_test_image",
]
