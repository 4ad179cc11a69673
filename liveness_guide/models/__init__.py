from .challenges import Challenge, Prompt, DEFAULT_SEQUENCE, build_sequence
from .face import FaceMeasurement
from .geometry import Rect, contains

__all__ = [
    "Challenge",
    "Prompt",
    "DEFAULT_SEQUENCE",
    "build_sequence",
    "FaceMeasurement",
    "Rect",
    "contains",
]
