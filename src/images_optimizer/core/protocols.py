"""Protocol definitions for dependency injection and testability."""

import subprocess
from typing import TYPE_CHECKING, Any, Optional, Protocol, Sequence, Tuple

from .config import Configuration, FormatSettings
from .models import ProcessingTask, ProgressSnapshot, TransformResult

if TYPE_CHECKING:
    from ..engines.base import EngineKind


class CommandRunnerProtocol(Protocol):
    """Protocol matching the parts of ``subprocess.run`` the engines use."""

    def __call__(
        self, args: Sequence[str], **kwargs: Any
    ) -> "subprocess.CompletedProcess[str]":
        """Run a command and return its completed process."""
        ...


class TransformEngineProtocol(Protocol):
    """Protocol every transformation backend implements."""

    kind: "EngineKind"
    name: str

    def read_dimensions(
        self, path: str, timeout: Optional[float] = None
    ) -> Tuple[int, int]:
        """Return (width, height) of the image at ``path``."""
        ...

    def transform_file(
        self,
        source_path: str,
        target_path: str,
        image_format: str,
        settings: FormatSettings,
        size: Tuple[int, int],
        resize: bool,
        timeout: Optional[float] = None,
    ) -> None:
        """Encode ``source_path`` into ``target_path``."""
        ...


class TransformFunction(Protocol):
    """Single-task entry point used by the orchestrator's workers."""

    def __call__(
        self,
        task: ProcessingTask,
        configuration: Configuration,
        engine: TransformEngineProtocol,
    ) -> TransformResult:
        ...


class ProgressSinkProtocol(Protocol):
    """Caller-supplied consumer of progress snapshots."""

    def __call__(self, snapshot: ProgressSnapshot) -> None:
        ...
