"""
Aspect ratio reduction and classification.

Pure functions of the probed width and height; no I/O.
"""
import enum
import math
from typing import Tuple


class AspectClass(str, enum.Enum):
    """Canonical aspect classification, also used as the storage key prefix."""
    LANDSCAPE = "landscape"  # 16:9
    PORTRAIT = "portrait"    # 9:16
    OTHER = "other"


RATIO_CLASSES = {
    "16:9": AspectClass.LANDSCAPE,
    "9:16": AspectClass.PORTRAIT,
}


def reduce_ratio(width: int, height: int) -> Tuple[int, int]:
    """
    Reduce width:height by their greatest common divisor.

    A zero height leaves the pair untouched (divisor of 1), and 0:0 stays 0:0.
    Reducing an already reduced pair returns the same pair.
    """
    if height == 0:
        return width, height
    divisor = math.gcd(width, height)
    return width // divisor, height // divisor


def aspect_ratio(width: int, height: int) -> str:
    """Return the reduced ratio as a "W:H" string, e.g. (1920, 1080) -> "16:9"."""
    reduced_width, reduced_height = reduce_ratio(width, height)
    return f"{reduced_width}:{reduced_height}"


def classify_ratio(ratio: str) -> AspectClass:
    """Map an exact reduced ratio string to its AspectClass."""
    return RATIO_CLASSES.get(ratio, AspectClass.OTHER)


def classify_dimensions(width: int, height: int) -> AspectClass:
    return classify_ratio(aspect_ratio(width, height))
