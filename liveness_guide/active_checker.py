import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import cv2
import numpy as np

from .config import LivenessConfig
from .evaluators import build_evaluators
from .face_estimator import FaceEstimator
from .models.challenges import Challenge, Prompt
from .models.face import FaceMeasurement
from .models.geometry import contains
from .state import (
    INITIAL_STATE,
    Event,
    FaceDetected,
    FaceTooBig,
    NextDetection,
    SessionState,
    reduce,
)

logger = logging.getLogger(__name__)

# (face_count, measurement) as reported by a face estimator for one frame
Observation = Tuple[int, Optional[FaceMeasurement]]


class LivenessSession:
    """
    One guided liveness attempt.

    Feeds per-frame face measurements through the qualification checks and the
    evaluator of the current challenge, and keeps the resulting SessionState.
    Frames must be evaluated in arrival order.
    """

    def __init__(self, config: Optional[LivenessConfig] = None):
        self.config = config or LivenessConfig()
        self.challenges: Tuple[Challenge, ...] = self.config.challenge_sequence()
        self.evaluators = build_evaluators(self.config.thresholds, self.challenges)
        self.state: SessionState = INITIAL_STATE
        self.frame_count = 0

    def reset(self) -> SessionState:
        """Restarts the attempt, discarding progress and detector history."""
        self.state = INITIAL_STATE
        self.frame_count = 0
        for evaluator in self.evaluators.values():
            evaluator.reset()
        return self.state

    def dispatch(self, event: Event) -> SessionState:
        previous = self.state
        self.state = reduce(previous, event, len(self.challenges))

        if isinstance(event, FaceDetected) and not event.detected:
            # Stale roll angles must not leak into the next attempt
            for evaluator in self.evaluators.values():
                evaluator.reset()

        if self.state != previous:
            logger.debug(f"{type(event).__name__}: {previous} -> {self.state}")
        return self.state

    @property
    def current_challenge(self) -> Optional[Challenge]:
        index = self.state.current_challenge_index
        if self.state.process_complete or index >= len(self.challenges):
            return None
        return self.challenges[index]

    def evaluate_frame(self, measurement: Optional[FaceMeasurement], face_count: int) -> SessionState:
        """
        Processes one frame.

        Args:
            measurement: Geometry of the single detected face, or None.
            face_count: Number of faces the estimator found.

        Returns:
            The session state after this frame.
        """
        self.frame_count += 1

        # Only one face needed
        if face_count != 1 or measurement is None:
            return self.dispatch(FaceDetected(False))

        face_rect = measurement.bounds
        inner_rect = face_rect.shrink(self.config.tolerance.edge_inset)
        if not contains(self.config.preview.rect, inner_rect):
            return self.dispatch(FaceDetected(False))

        if not self.state.face_detected:
            max_size = self.config.max_face_size
            if face_rect.width >= max_size and face_rect.height >= max_size:
                return self.dispatch(FaceTooBig(True))

            if self.state.face_too_big:
                self.dispatch(FaceTooBig(False))

            self.dispatch(FaceDetected(True))

        challenge = self.current_challenge
        if challenge is None:
            return self.state

        if self.evaluators[challenge].evaluate(measurement):
            logger.info(f"Challenge {challenge.name} passed at frame {self.frame_count}")
            self.dispatch(NextDetection())
            if self.state.process_complete:
                logger.info(f"All {len(self.challenges)} challenges completed at frame {self.frame_count}")

        return self.state

    def current_instruction(self, state: Optional[SessionState] = None) -> Optional[str]:
        """Instruction for the current challenge while a well-sized face is in view."""
        st = state or self.state
        if not st.face_detected or st.face_too_big or st.process_complete:
            return None
        if st.current_challenge_index >= len(self.challenges):
            return None
        return self.challenges[st.current_challenge_index].instruction

    def prompt(self, state: Optional[SessionState] = None) -> str:
        st = state or self.state
        if st.face_too_big:
            return Prompt.TOO_CLOSE.value
        if st.process_complete:
            return Prompt.COMPLETE.value
        if st.face_detected:
            return Prompt.PERFORM_ACTIONS.value
        return Prompt.INITIAL.value

    def snapshot(self) -> Dict[str, Any]:
        st = self.state
        challenge = self.current_challenge
        return {
            "frame_number": self.frame_count,
            "face_detected": st.face_detected,
            "face_too_big": st.face_too_big,
            "current_challenge_index": st.current_challenge_index,
            "current_challenge": challenge.name if challenge else None,
            "progress_fill": round(st.progress_fill, 2),
            "process_complete": st.process_complete,
            "prompt": self.prompt(),
            "instruction": self.current_instruction(),
        }


class ActiveChecker:
    def __init__(self, config: Optional[LivenessConfig] = None, estimator: Optional[FaceEstimator] = None):
        """
        Runs complete liveness sessions over recorded frames.

        Args:
            config: Session configuration. Defaults to LivenessConfig().
            estimator: Face estimator for raw frames. Created on first use.
        """
        self.config = config or LivenessConfig()
        self._estimator = estimator

    @property
    def estimator(self) -> FaceEstimator:
        if self._estimator is None:
            self._estimator = FaceEstimator(self.config.preview.view_size)
        return self._estimator

    def _observe(self, frame: Union[np.ndarray, Observation]) -> Observation:
        if isinstance(frame, np.ndarray):
            return self.estimator.estimate(frame)
        face_count, measurement = frame
        return face_count, measurement

    def _process_frame(self, session: LivenessSession, frame: Union[np.ndarray, Observation]) -> Dict[str, Any]:
        face_count, measurement = self._observe(frame)
        session.evaluate_frame(measurement, face_count)
        result = session.snapshot()
        result["face_count"] = face_count
        return result

    def check(self, frames: Sequence[Union[np.ndarray, Observation]]) -> Dict[str, Any]:
        """
        Checks a recorded attempt against the configured challenge sequence.

        Args:
            frames: BGR frames, or (face_count, measurement) observations, in capture order.

        Returns:
            Result dictionary with "passed", "message", "details" and "frame_analysis".
        """
        session = LivenessSession(self.config)
        total = len(session.challenges)

        if not frames:
            return {
                "passed": False,
                "message": "No frames to analyze",
                "details": {
                    "challenges_completed": 0,
                    "total_challenges": total,
                    "progress_fill": 0.0,
                    "total_frames_processed": 0,
                    "face_detection_rate": 0,
                },
                "frame_analysis": [],
            }

        frame_results: List[Dict[str, Any]] = []
        for frame in frames:
            try:
                frame_results.append(self._process_frame(session, frame))
            except (cv2.error, ValueError) as e:
                logger.warning(f"Error processing frame {session.frame_count}: {e}")
                continue

            # Early exit once complete
            if session.state.process_complete:
                break

        state = session.state
        passed = state.process_complete
        completed = state.current_challenge_index

        if passed:
            message = "Challenge sequence completed successfully."
        elif not any(r["face_detected"] for r in frame_results):
            message = "No single face was positioned inside the preview."
        else:
            pending = session.challenges[completed]
            message = f"Challenge failed at step {completed + 1}: {pending.instruction}"

        return {
            "passed": passed,
            "message": message,
            "details": {
                "challenges_completed": completed,
                "total_challenges": total,
                "progress_fill": round(state.progress_fill, 2),
                "total_frames_processed": len(frame_results),
                "face_detection_rate": sum(1 for r in frame_results if r["face_detected"]) / len(frame_results) if frame_results else 0,
            },
            "frame_analysis": frame_results[-10:] if len(frame_results) > 10 else frame_results
        }
