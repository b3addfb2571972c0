"""Fake implementations for testing purposes."""

import os
import subprocess
import threading
import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Set, Tuple, Union

from PIL import Image, ImageDraw

from ..core.config import FormatSettings
from ..core.exceptions import TransformFailure
from ..core.models import ProgressSnapshot
from ..engines.base import EngineKind


class FakeEngine:
    """Engine double that writes placeholder bytes instead of encoding."""

    def __init__(
        self,
        kind: EngineKind = EngineKind.FALLBACK,
        name: str = "fake",
        dimensions: Tuple[int, int] = (100, 100),
        delay_seconds: float = 0.0,
    ):
        self.kind = kind
        self.name = name
        self.dimensions = dimensions
        self.delay_seconds = delay_seconds
        self.calls: List[Dict[str, Any]] = []
        self.dimension_reads: List[Tuple[str, Optional[float]]] = []
        self.failures: Dict[str, str] = {}
        self.exceptions: Dict[str, Exception] = {}
        self.empty_outputs: Set[str] = set()
        self.missing_outputs: Set[str] = set()
        self._lock = threading.Lock()

    def set_failure(self, file_name: str, message: str = "Simulated engine failure") -> None:
        """Make the engine raise ``TransformFailure`` for ``file_name``."""
        self.failures[file_name] = message

    def set_exception(self, file_name: str, exc: Exception) -> None:
        """Make the engine raise an arbitrary exception for ``file_name``."""
        self.exceptions[file_name] = exc

    def read_dimensions(self, path: str, timeout: Optional[float] = None) -> Tuple[int, int]:
        with self._lock:
            self.dimension_reads.append((path, timeout))
        return self.dimensions

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
        """Record the call and write a small placeholder output."""
        file_name = os.path.basename(source_path)
        with self._lock:
            self.calls.append(
                {
                    "source_path": source_path,
                    "target_path": target_path,
                    "format": image_format,
                    "settings": settings,
                    "size": size,
                    "resize": resize,
                    "timeout": timeout,
                    "thread": threading.current_thread().name,
                }
            )

        if self.delay_seconds > 0:
            time.sleep(self.delay_seconds)

        if file_name in self.exceptions:
            raise self.exceptions[file_name]
        if file_name in self.failures:
            raise TransformFailure(self.failures[file_name])
        if file_name in self.missing_outputs:
            return

        with open(target_path, "wb") as handle:
            if file_name not in self.empty_outputs:
                handle.write(f"{image_format}:{size[0]}x{size[1]}".encode())

    def call_count(self) -> int:
        with self._lock:
            return len(self.calls)


class FakeCommandRunner:
    """Stand-in for ``subprocess.run`` when exercising the ImageMagick engine."""

    def __init__(
        self,
        returncode: int = 0,
        stdout: str = "",
        stderr: str = "",
        output_bytes: bytes = b"converted",
        write_output: bool = True,
        exception: Optional[BaseException] = None,
    ):
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        self.output_bytes = output_bytes
        self.write_output = write_output
        self.exception = exception
        self.calls: List[Tuple[List[str], Dict[str, Any]]] = []

    def __call__(
        self, args: Sequence[str], **kwargs: Any
    ) -> "subprocess.CompletedProcess[str]":
        args = list(args)
        self.calls.append((args, kwargs))

        if self.exception is not None:
            raise self.exception

        is_conversion = len(args) > 2 and args[1] not in ("identify", "-version")
        if self.write_output and self.returncode == 0 and is_conversion:
            target = args[-1].split(":", 1)[1]
            with open(target, "wb") as handle:
                handle.write(self.output_bytes)

        return subprocess.CompletedProcess(
            args, self.returncode, stdout=self.stdout, stderr=self.stderr
        )


class RecordingProgressSink:
    """Progress sink collecting every snapshot it receives."""

    def __init__(self):
        self.snapshots: List[ProgressSnapshot] = []
        self.threads: Set[str] = set()

    def __call__(self, snapshot: ProgressSnapshot) -> None:
        self.snapshots.append(snapshot)
        self.threads.add(threading.current_thread().name)


def create_test_image(
    path: Union[str, Path],
    width: int = 100,
    height: int = 100,
    image_format: str = "JPEG",
    mode: str = "RGB",
) -> str:
    """Write a patterned test image to ``path`` and return the path."""
    image = Image.new(mode, (width, height), color="red")

    # Add some pattern to make it more realistic
    draw = ImageDraw.Draw(image)
    for x in range(0, width, 20):
        for y in range(0, height, 20):
            if (x + y) % 40 == 0:
                draw.rectangle([x, y, x + 9, y + 9], fill="blue")

    Path(path).parent.mkdir(parents=True, exist_ok=True)
    image.save(path, format=image_format)
    return str(path)
