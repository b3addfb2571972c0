"""Image helper functions shared by the engines and the orchestrator."""

import math
import os
from pathlib import PurePath
from typing import Dict, Optional, Tuple

from .exceptions import ConfigurationError, UnsupportedFormatError

EXTENSION_FORMATS: Dict[str, str] = {
    ".jpg": "jpeg",
    ".jpeg": "jpeg",
    ".png": "png",
    ".webp": "webp",
    ".avif": "avif",
}


def format_for_path(path: str) -> str:
    """
    Map a file path to its image format name.

    Args:
        path: File path; only the extension is inspected

    Returns:
        One of "jpeg", "png", "webp", "avif"

    Raises:
        UnsupportedFormatError: If the extension is not supported
    """
    extension = os.path.splitext(path)[1].lower()
    image_format = EXTENSION_FORMATS.get(extension)
    if image_format is None:
        raise UnsupportedFormatError(f"Unsupported file format: {extension or '<none>'}")
    return image_format


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def calculate_target_dimensions(
    width: int, height: int, max_width: int, max_height: int
) -> Tuple[int, int, bool]:
    """
    Fit an image inside a bounding box without upscaling.

    The smaller of the two scale factors is binding; the bound side is set to
    its maximum and the other side is rounded half-up, never below 1 px.

    Args:
        width: Source width in pixels
        height: Source height in pixels
        max_width: Maximum output width
        max_height: Maximum output height

    Returns:
        Tuple of (output_width, output_height, resized)
    """
    if width <= max_width and height <= max_height:
        return width, height, False

    scale_x = max_width / width
    scale_y = max_height / height
    if scale_x <= scale_y:
        return max_width, max(1, round_half_up(height * scale_x)), True
    return max(1, round_half_up(width * scale_y)), max_height, True


def build_output_relative_path(
    relative_path: str, naming_pattern: str, preserve_structure: bool
) -> str:
    """
    Compute an output path, relative to the output root, for a source file.

    Args:
        relative_path: Source path relative to the discovery root
        naming_pattern: Pattern with ``{name}`` and ``{ext}`` placeholders
        preserve_structure: Keep the source sub-directories when True

    Returns:
        Relative output path using forward slashes
    """
    source = PurePath(relative_path.replace("\\", "/"))
    try:
        file_name = naming_pattern.format(name=source.stem, ext=source.suffix)
    except (KeyError, IndexError, ValueError) as exc:
        raise ConfigurationError(f"Invalid naming pattern {naming_pattern!r}: {exc}") from exc

    if preserve_structure and str(source.parent) not in ("", "."):
        return f"{source.parent.as_posix()}/{file_name}"
    return file_name


def file_size(path: str) -> Optional[int]:
    """Size of ``path`` in bytes, or None if it does not exist."""
    try:
        return os.path.getsize(path)
    except OSError:
        return None
