"""Primary engine: drives the external ImageMagick ``magick`` command."""

import subprocess
from typing import List, Optional, Tuple

from PIL import Image, UnidentifiedImageError

from ..core.config import FormatSettings
from ..core.exceptions import TransformFailure
from ..core.logging_config import get_logger
from ..core.protocols import CommandRunnerProtocol
from .base import EngineKind

# Output coders, prefixed to the target so temporary file names need no extension
MAGICK_CODERS = {
    "jpeg": "JPEG",
    "png": "PNG",
    "webp": "WEBP",
    "avif": "AVIF",
}


class ImageMagickEngine:
    """Higher-fidelity engine backed by an ImageMagick 7 executable."""

    kind = EngineKind.PRIMARY
    name = "imagemagick"

    def __init__(
        self,
        executable: str = "magick",
        runner: CommandRunnerProtocol = subprocess.run,
    ):
        self.executable = executable
        self._runner = runner

    def __repr__(self) -> str:
        return f"ImageMagickEngine(executable={self.executable!r})"

    def build_command(
        self,
        source_path: str,
        target_path: str,
        image_format: str,
        settings: FormatSettings,
        size: Tuple[int, int],
        resize: bool,
    ) -> List[str]:
        """Build the ``magick`` argument list for one conversion."""
        args = [self.executable, source_path]

        if resize:
            # "!" because the aspect ratio is already applied to ``size``
            args += ["-resize", f"{size[0]}x{size[1]}!"]
        if settings.strip_metadata:
            args.append("-strip")
        if settings.quality is not None and image_format != "png":
            args += ["-quality", str(settings.quality)]

        if image_format == "jpeg":
            if settings.progressive:
                args += ["-interlace", "Plane"]
            args += ["-sampling-factor", "4:2:0"]
        elif image_format == "png":
            if settings.compression_level is not None:
                args += ["-define", f"png:compression-level={settings.compression_level}"]
        elif image_format == "webp":
            if settings.lossless:
                args += ["-define", "webp:lossless=true"]
            if settings.method is not None:
                args += ["-define", f"webp:method={settings.method}"]
        elif image_format == "avif":
            if settings.speed is not None:
                args += ["-define", f"heic:speed={settings.speed}"]

        args.append(f"{MAGICK_CODERS[image_format]}:{target_path}")
        return args

    def _run(self, args: List[str], timeout: Optional[float]) -> "subprocess.CompletedProcess[str]":
        try:
            completed = self._runner(
                args, capture_output=True, text=True, timeout=timeout, check=False
            )
        except subprocess.TimeoutExpired as exc:
            raise TransformFailure(f"ImageMagick timed out after {timeout:g}s") from exc
        except OSError as exc:
            raise TransformFailure(f"Cannot execute ImageMagick: {exc}") from exc

        if completed.returncode != 0:
            stderr = (completed.stderr or "").strip()
            message = f"ImageMagick exited with code {completed.returncode}"
            raise TransformFailure(f"{message}: {stderr}" if stderr else message)
        return completed

    def read_dimensions(self, path: str, timeout: Optional[float] = None) -> Tuple[int, int]:
        """Read dimensions with Pillow, falling back to ``magick identify`` bounded by ``timeout``."""
        try:
            with Image.open(path) as image:
                return image.size
        except (UnidentifiedImageError, OSError):
            get_logger("images-optimizer.engine").debug(
                f"Pillow cannot identify {path}, asking ImageMagick"
            )

        completed = self._run(
            [self.executable, "identify", "-format", "%w %h", f"{path}[0]"], timeout=timeout
        )
        try:
            width, height = (int(part) for part in completed.stdout.split()[:2])
        except ValueError as exc:
            raise TransformFailure(
                f"Cannot read dimensions of {path}: {completed.stdout!r}"
            ) from exc
        return width, height

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
        """Convert ``source_path`` into ``target_path``; raises on tool failure."""
        args = self.build_command(
            source_path, target_path, image_format, settings, size, resize
        )
        get_logger("images-optimizer.engine").debug(f"Running: {' '.join(args)}")
        self._run(args, timeout)
