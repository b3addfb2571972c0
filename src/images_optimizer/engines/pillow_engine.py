"""Fallback engine: in-process encoding with Pillow."""

from typing import Any, Dict, Optional, Tuple

from PIL import Image, UnidentifiedImageError, features

from ..core.config import FormatSettings
from ..core.exceptions import TransformFailure, with_error_handling
from .base import EngineKind

PIL_FORMATS = {
    "jpeg": "JPEG",
    "png": "PNG",
    "webp": "WEBP",
    "avif": "AVIF",
}

# Pillow feature that must be compiled in to write each format
PIL_FEATURES = {
    "jpeg": "jpg",
    "png": "zlib",
    "webp": "webp",
    "avif": "avif",
}


def pillow_supports(image_format: str) -> bool:
    """Whether the installed Pillow build can encode ``image_format``."""
    feature = PIL_FEATURES.get(image_format)
    if feature is None:
        return False
    try:
        return bool(features.check(feature))
    except ValueError:
        # Older Pillow releases reject unknown feature names
        return False


def pillow_available() -> bool:
    """Minimum Pillow build the fallback engine needs: JPEG and zlib codecs."""
    return pillow_supports("jpeg") and pillow_supports("png")


def _prepare_mode(image: "Image.Image", image_format: str) -> "Image.Image":
    if image_format == "jpeg" and image.mode not in ("RGB", "L", "CMYK"):
        return image.convert("RGB")
    if image_format in ("webp", "avif") and image.mode not in ("RGB", "RGBA"):
        has_alpha = "A" in image.mode or "transparency" in image.info
        return image.convert("RGBA" if has_alpha else "RGB")
    if image_format == "png" and image.mode == "CMYK":
        return image.convert("RGB")
    return image


def _save_options(
    image: "Image.Image", image_format: str, settings: FormatSettings
) -> Dict[str, Any]:
    options: Dict[str, Any] = {}

    if image_format == "jpeg":
        options["optimize"] = True
        options["progressive"] = settings.progressive
        if settings.quality is not None:
            options["quality"] = settings.quality
    elif image_format == "png":
        if settings.compression_level is not None:
            options["compress_level"] = settings.compression_level
        else:
            options["optimize"] = True
    elif image_format == "webp":
        options["lossless"] = settings.lossless
        if settings.quality is not None:
            options["quality"] = settings.quality
        if settings.method is not None:
            options["method"] = settings.method
    elif image_format == "avif":
        if settings.quality is not None:
            options["quality"] = settings.quality
        if settings.speed is not None:
            options["speed"] = settings.speed

    if settings.strip_metadata:
        # The PNG and AVIF writers fall back to image.info["icc_profile"]
        options["icc_profile"] = None
    else:
        for key in ("exif", "icc_profile"):
            value = image.info.get(key)
            if value:
                options[key] = value
    return options


class PillowEngine:
    """Always-available engine with fewer encoder features than ImageMagick."""

    kind = EngineKind.FALLBACK
    name = "pillow"

    def __repr__(self) -> str:
        return "PillowEngine()"

    def read_dimensions(self, path: str, timeout: Optional[float] = None) -> Tuple[int, int]:
        try:
            with Image.open(path) as image:
                return image.size
        except UnidentifiedImageError as exc:
            raise TransformFailure(f"Cannot identify image file: {path}") from exc

    @with_error_handling
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
        """
        Re-encode ``source_path`` into ``target_path``.

        ``timeout`` is accepted for interface parity and ignored; Pillow runs
        in-process and cannot be interrupted.
        """
        if not pillow_supports(image_format):
            raise TransformFailure(f"Pillow build lacks {image_format.upper()} support")

        try:
            source = Image.open(source_path)
        except UnidentifiedImageError as exc:
            raise TransformFailure(f"Cannot identify image file: {source_path}") from exc

        with source:
            source.load()
            options = _save_options(source, image_format, settings)
            output = source
            if resize:
                output = source.resize(size, Image.Resampling.LANCZOS)
            output = _prepare_mode(output, image_format)
            output.save(target_path, format=PIL_FORMATS[image_format], **options)
