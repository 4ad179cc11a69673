from dataclasses import dataclass

from .geometry import Rect


@dataclass(frozen=True)
class FaceMeasurement:
    """
    Per-frame estimate for exactly one detected face.

    Angles are in degrees. A negative yaw means the head is turned left,
    a positive yaw means it is turned right. Roll is the sideways tilt.
    """
    bounds: Rect
    left_eye_open_probability: float
    right_eye_open_probability: float
    smiling_probability: float
    yaw_angle: float
    roll_angle: float
