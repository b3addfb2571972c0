"""Transformation engines and the single-task dispatch entry point."""

from .base import EngineKind, UnavailableEngine
from .dispatch import transform
from .imagemagick import ImageMagickEngine
from .pillow_engine import PillowEngine, pillow_available, pillow_supports
from .probe import Engine, probe_engines

__all__ = [
    "Engine",
    "EngineKind",
    "ImageMagickEngine",
    "PillowEngine",
    "UnavailableEngine",
    "pillow_available",
    "pillow_supports",
    "probe_engines",
    "transform",
]
