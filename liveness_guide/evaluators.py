import logging
from abc import ABC, abstractmethod
from collections import deque
from typing import Deque, Dict, Iterable, List

from .config import ThresholdConfig
from .models.challenges import Challenge
from .models.face import FaceMeasurement

logger = logging.getLogger(__name__)


class ChallengeEvaluator(ABC):
    """Decides whether one frame satisfies a challenge."""

    challenge: Challenge

    @abstractmethod
    def evaluate(self, face: FaceMeasurement) -> bool:
        ...

    def reset(self) -> None:
        """Clears any per-attempt memory. Stateless evaluators have none."""


class BlinkEvaluator(ChallengeEvaluator):
    challenge = Challenge.BLINK

    def __init__(self, max_open_probability: float = 0.3):
        self.max_open_probability = max_open_probability

    def evaluate(self, face: FaceMeasurement) -> bool:
        # Lower probability is when eyes are closed
        left_closed = face.left_eye_open_probability <= self.max_open_probability
        right_closed = face.right_eye_open_probability <= self.max_open_probability
        return left_closed and right_closed


class TurnHeadLeftEvaluator(ChallengeEvaluator):
    challenge = Challenge.TURN_HEAD_LEFT

    def __init__(self, max_yaw: float = -15.0):
        self.max_yaw = max_yaw

    def evaluate(self, face: FaceMeasurement) -> bool:
        return face.yaw_angle <= self.max_yaw


class TurnHeadRightEvaluator(ChallengeEvaluator):
    challenge = Challenge.TURN_HEAD_RIGHT

    def __init__(self, min_yaw: float = 15.0):
        self.min_yaw = min_yaw

    def evaluate(self, face: FaceMeasurement) -> bool:
        return face.yaw_angle >= self.min_yaw


class SmileEvaluator(ChallengeEvaluator):
    challenge = Challenge.SMILE

    def __init__(self, min_probability: float = 0.7):
        self.min_probability = min_probability

    def evaluate(self, face: FaceMeasurement) -> bool:
        return face.smiling_probability >= self.min_probability


class NodHistory:
    """Most recent roll angles, oldest first."""

    def __init__(self, capacity: int = 10):
        self.capacity = capacity
        self._angles: Deque[float] = deque(maxlen=capacity)

    def push(self, angle: float) -> None:
        self._angles.append(angle)

    def is_full(self) -> bool:
        return len(self._angles) >= self.capacity

    def previous(self) -> List[float]:
        """All entries except the most recent one."""
        return list(self._angles)[:-1]

    def clear(self) -> None:
        self._angles.clear()

    def __len__(self) -> int:
        return len(self._angles)


class NodEvaluator(ChallengeEvaluator):
    """
    Detects a nod as a sharp change of roll angle against the recent average.

    The average of the absolute roll angles over the window (excluding the
    current frame) smooths out estimator jitter; a nod is reported when the
    current absolute roll deviates from it by at least `min_diff` degrees.
    """
    challenge = Challenge.NOD

    def __init__(self, min_diff: float = 1.5, window: int = 10):
        self.min_diff = min_diff
        self.history = NodHistory(window)

    def evaluate(self, face: FaceMeasurement) -> bool:
        self.history.push(face.roll_angle)

        # Not enough data yet
        if not self.history.is_full():
            return False

        previous = self.history.previous()
        avg_angle = sum(abs(a) for a in previous) / len(previous)
        diff = abs(avg_angle - abs(face.roll_angle))

        logger.debug(f"Nod check: avg={avg_angle:.2f}, current={face.roll_angle:.2f}, diff={diff:.2f}")
        return diff >= self.min_diff

    def reset(self) -> None:
        self.history.clear()


def build_evaluators(thresholds: ThresholdConfig, challenges: Iterable[Challenge]) -> Dict[Challenge, ChallengeEvaluator]:
    """
    Creates one evaluator per distinct challenge of a sequence.
    """
    factories = {
        Challenge.BLINK: lambda: BlinkEvaluator(thresholds.blink_max_open_probability),
        Challenge.TURN_HEAD_LEFT: lambda: TurnHeadLeftEvaluator(thresholds.turn_left_max_yaw),
        Challenge.TURN_HEAD_RIGHT: lambda: TurnHeadRightEvaluator(thresholds.turn_right_min_yaw),
        Challenge.NOD: lambda: NodEvaluator(thresholds.nod_min_diff, thresholds.nod_window),
        Challenge.SMILE: lambda: SmileEvaluator(thresholds.smile_min_probability),
    }
    evaluators: Dict[Challenge, ChallengeEvaluator] = {}
    for challenge in challenges:
        if challenge not in evaluators:
            evaluators[challenge] = factories[challenge]()
    return evaluators
