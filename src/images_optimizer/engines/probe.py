"""Capability probe selecting the engine for a batch."""

import shutil
import subprocess
from typing import Callable, Optional, Union

from ..core.logging_config import get_logger
from ..core.protocols import CommandRunnerProtocol
from .base import UnavailableEngine
from .imagemagick import ImageMagickEngine
from .pillow_engine import PillowEngine, pillow_available

Engine = Union[ImageMagickEngine, PillowEngine, UnavailableEngine]

PROBE_TIMEOUT_SECONDS = 10


def _confirm_imagemagick(executable: str, runner: CommandRunnerProtocol) -> bool:
    try:
        completed = runner(
            [executable, "-version"],
            capture_output=True,
            text=True,
            timeout=PROBE_TIMEOUT_SECONDS,
            check=False,
        )
    except (OSError, subprocess.TimeoutExpired):
        return False
    return completed.returncode == 0 and "ImageMagick" in (completed.stdout or "")


def probe_engines(
    which: Callable[[str], Optional[str]] = shutil.which,
    runner: CommandRunnerProtocol = subprocess.run,
    allow_primary: bool = True,
    allow_fallback: bool = True,
    fallback_check: Callable[[], bool] = pillow_available,
) -> Engine:
    """
    Select the best available engine.

    ImageMagick is preferred when ``magick`` is on PATH and answers
    ``-version``; otherwise Pillow is used if its JPEG and zlib codecs are
    present; otherwise an :class:`UnavailableEngine` is returned.

    Args:
        which: PATH lookup, ``shutil.which`` by default
        runner: Command runner used to confirm the executable
        allow_primary: Consider ImageMagick at all
        allow_fallback: Consider Pillow at all
        fallback_check: Runtime prerequisite check for Pillow

    Returns:
        The engine to hand to every task of the batch
    """
    logger = get_logger("images-optimizer.engine")

    if allow_primary:
        executable = which("magick")
        if executable and _confirm_imagemagick(executable, runner):
            logger.info(f"Using primary engine ImageMagick at {executable}")
            return ImageMagickEngine(executable, runner)
        logger.debug("ImageMagick not found or not responding")

    if allow_fallback and fallback_check():
        logger.info("Using fallback engine Pillow")
        return PillowEngine()

    logger.warning("No transformation engine available")
    return UnavailableEngine()
