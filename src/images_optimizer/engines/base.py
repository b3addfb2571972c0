"""Engine variants and the placeholder used when nothing is installed."""

from enum import Enum
from typing import Optional, Tuple

from ..core.config import FormatSettings
from ..core.exceptions import EngineUnavailableError


class EngineKind(str, Enum):
    """Closed set of transformation backends a probe can select."""

    PRIMARY = "primary"
    FALLBACK = "fallback"
    UNAVAILABLE = "unavailable"


class UnavailableEngine:
    """Engine returned by the probe when no backend can run."""

    kind = EngineKind.UNAVAILABLE
    name = "none"

    def read_dimensions(self, path: str, timeout: Optional[float] = None) -> Tuple[int, int]:
        raise EngineUnavailableError("No transformation engine available")

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
        raise EngineUnavailableError("No transformation engine available")

    def __repr__(self) -> str:
        return "UnavailableEngine()"
