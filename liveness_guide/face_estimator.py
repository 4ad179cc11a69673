import logging
import math
from typing import List, Optional, Sequence, Tuple

import cv2
import mediapipe as mp
import numpy as np

from .models.face import FaceMeasurement
from .models.geometry import Rect

logger = logging.getLogger(__name__)


# MediaPipe Face Mesh (468 landmarks)
# Left eye (the person's left): [362, 385, 387, 263, 373, 380]
# Right eye (the person's right): [33, 160, 158, 133, 153, 144]
LEFT_EYE_INDICES = [362, 385, 387, 263, 373, 380]
RIGHT_EYE_INDICES = [33, 160, 158, 133, 153, 144]
RIGHT_EYE_OUTER = 33
LEFT_EYE_OUTER = 263
NOSE_TIP = 1
RIGHT_FACE_EDGE = 234
LEFT_FACE_EDGE = 454
MOUTH_RIGHT = 61
MOUTH_LEFT = 291

# Eye aspect ratios mapped to probability 0 and 1
CLOSED_EYE_EAR = 0.1
OPEN_EYE_EAR = 0.3

# Mouth width relative to the outer eye-corner distance
NEUTRAL_MOUTH_RATIO = 0.55
SMILING_MOUTH_RATIO = 0.75


def _ramp(value: float, low: float, high: float) -> float:
    """Linear map of [low, high] onto [0, 1], clipped."""
    if high == low:
        return 1.0 if value >= high else 0.0
    return float(np.clip((value - low) / (high - low), 0.0, 1.0))


def eye_aspect_ratio(eye: Sequence[Tuple[float, float]]) -> float:
    """
    Eye Aspect Ratio (EAR) of six eye landmarks.

    Args:
        eye: Points ordered outer corner, two upper lid points, inner corner, two lower lid points.

    Returns:
        EAR value; open eyes are around 0.3, closed eyes close to 0.
    """
    if len(eye) != 6:
        return OPEN_EYE_EAR

    vertical_1 = abs(eye[1][1] - eye[5][1])
    vertical_2 = abs(eye[2][1] - eye[4][1])
    horizontal = abs(eye[0][0] - eye[3][0])

    if horizontal < 1e-6:
        return OPEN_EYE_EAR

    return (vertical_1 + vertical_2) / (2.0 * horizontal)


def eye_open_probability(ear: float) -> float:
    return _ramp(ear, CLOSED_EYE_EAR, OPEN_EYE_EAR)


def smiling_probability(points: np.ndarray) -> float:
    eye_distance = float(np.linalg.norm(points[LEFT_EYE_OUTER] - points[RIGHT_EYE_OUTER]))
    if eye_distance < 1e-6:
        return 0.0
    mouth_width = float(np.linalg.norm(points[MOUTH_LEFT] - points[MOUTH_RIGHT]))
    return _ramp(mouth_width / eye_distance, NEUTRAL_MOUTH_RATIO, SMILING_MOUTH_RATIO)


def estimate_yaw(points: np.ndarray) -> float:
    """
    Yaw in degrees from the nose tip offset between the face edges.
    Negative when the nose sits left of the face centre in the image.
    """
    left_edge = points[RIGHT_FACE_EDGE][0]
    right_edge = points[LEFT_FACE_EDGE][0]
    half_width = abs(right_edge - left_edge) / 2.0
    if half_width < 1e-6:
        return 0.0
    center_x = (left_edge + right_edge) / 2.0
    deviation = float(np.clip((points[NOSE_TIP][0] - center_x) / half_width, -1.0, 1.0))
    return math.degrees(math.asin(deviation))


def estimate_roll(points: np.ndarray) -> float:
    """Roll in degrees from the line through the outer eye corners."""
    first, second = points[RIGHT_EYE_OUTER], points[LEFT_EYE_OUTER]
    if first[0] > second[0]:
        first, second = second, first
    dx = second[0] - first[0]
    dy = second[1] - first[1]
    return math.degrees(math.atan2(dy, dx))


def measurement_from_landmarks(
    normalized: np.ndarray,
    frame_size: Tuple[int, int],
    view_size: Tuple[float, float],
    mirror: bool = True,
) -> FaceMeasurement:
    """
    Builds a FaceMeasurement from normalized Face Mesh landmarks.

    Args:
        normalized: (N, 2) array of landmark coordinates in [0, 1].
        frame_size: (width, height) of the analysed frame in pixels.
        view_size: (width, height) of the on-screen view the frame fills.
        mirror: Flip horizontally, as a front camera preview does.

    Returns:
        The measurement with bounds in view coordinates.
    """
    points = np.asarray(normalized, dtype=np.float64)[:, :2].copy()
    if mirror:
        points[:, 0] = 1.0 - points[:, 0]

    min_x, min_y = points.min(axis=0)
    max_x, max_y = points.max(axis=0)
    view_w, view_h = view_size
    bounds = Rect(
        float(min_x * view_w),
        float(min_y * view_h),
        float((max_x - min_x) * view_w),
        float((max_y - min_y) * view_h),
    )

    frame_w, frame_h = frame_size
    pixels = points * np.array([frame_w, frame_h], dtype=np.float64)

    left_ear = eye_aspect_ratio([tuple(pixels[i]) for i in LEFT_EYE_INDICES])
    right_ear = eye_aspect_ratio([tuple(pixels[i]) for i in RIGHT_EYE_INDICES])

    return FaceMeasurement(
        bounds=bounds,
        left_eye_open_probability=eye_open_probability(left_ear),
        right_eye_open_probability=eye_open_probability(right_ear),
        smiling_probability=smiling_probability(pixels),
        yaw_angle=estimate_yaw(pixels),
        roll_angle=estimate_roll(pixels),
    )


class FaceEstimator:
    def __init__(
        self,
        view_size: Tuple[float, float],
        mirror: bool = True,
        max_num_faces: int = 2,
        static_image_mode: bool = False,
    ):
        """
        Initializes MediaPipe Face Mesh.

        Args:
            view_size: (width, height) of the on-screen view that shows the camera frame.
            mirror: Whether the preview is mirrored (front camera).
            max_num_faces: Must be at least 2 so that extra faces can be reported.
            static_image_mode: Detect on every frame instead of tracking a video stream.
        """
        self.view_size = view_size
        self.mirror = mirror
        self.mp_face_mesh = mp.solutions.face_mesh
        self.face_mesh = self.mp_face_mesh.FaceMesh(
            static_image_mode=static_image_mode,
            max_num_faces=max(2, max_num_faces),
            refine_landmarks=True,
            min_detection_confidence=0.5,
            min_tracking_confidence=0.5
        )

    def estimate(self, frame: np.ndarray) -> Tuple[int, Optional[FaceMeasurement]]:
        """
        Estimates the face geometry of one BGR frame.

        Returns:
            (face_count, measurement); the measurement is None unless exactly one face is present.
        """
        rgb_frame = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        results = self.face_mesh.process(rgb_frame)

        faces: List = results.multi_face_landmarks or []
        if len(faces) != 1:
            logger.debug(f"Expected exactly one face, found {len(faces)}")
            return len(faces), None

        landmarks = np.array([(lm.x, lm.y) for lm in faces[0].landmark], dtype=np.float64)
        height, width = frame.shape[:2]
        return 1, measurement_from_landmarks(landmarks, (width, height), self.view_size, self.mirror)

    def close(self) -> None:
        self.face_mesh.close()
