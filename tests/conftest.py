import pytest

from liveness_guide.config import LivenessConfig
from liveness_guide.models.face import FaceMeasurement
from liveness_guide.models.geometry import Rect

# Fits inside the default preview (25, 50, 325x325) and is not oversize
CENTERED_BOUNDS = Rect(60, 80, 200, 200)


def make_face(
    bounds: Rect = CENTERED_BOUNDS,
    left_eye: float = 0.9,
    right_eye: float = 0.9,
    smile: float = 0.1,
    yaw: float = 0.0,
    roll: float = 0.0,
) -> FaceMeasurement:
    """A neutral, open-eyed, frontal face unless overridden."""
    return FaceMeasurement(
        bounds=bounds,
        left_eye_open_probability=left_eye,
        right_eye_open_probability=right_eye,
        smiling_probability=smile,
        yaw_angle=yaw,
        roll_angle=roll,
    )


@pytest.fixture
def config():
    return LivenessConfig()


@pytest.fixture
def neutral_face():
    return make_face()
