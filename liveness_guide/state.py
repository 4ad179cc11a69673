from dataclasses import dataclass, replace
from typing import Union


@dataclass(frozen=True)
class SessionState:
    """
    User-visible progress of one liveness attempt.

    `current_challenge_index` runs from 0 to the number of challenges;
    reaching the end sets `process_complete`.
    """
    face_detected: bool = False
    face_too_big: bool = False
    current_challenge_index: int = 0
    progress_fill: float = 0.0
    process_complete: bool = False


INITIAL_STATE = SessionState()


@dataclass(frozen=True)
class FaceDetected:
    detected: bool


@dataclass(frozen=True)
class FaceTooBig:
    too_big: bool


@dataclass(frozen=True)
class NextDetection:
    pass


Event = Union[FaceDetected, FaceTooBig, NextDetection]


class UnknownEventError(TypeError):
    """Raised when the reducer receives something that is not an Event."""


def progress_step(challenge_count: int) -> float:
    # One extra slot is reserved for the face acquisition itself.
    return 100.0 / (challenge_count + 1)


def reduce(state: SessionState, event: Event, challenge_count: int) -> SessionState:
    """
    Computes the next session state for one event.

    Args:
        state: Current state. It is never mutated.
        event: FaceDetected, FaceTooBig or NextDetection.
        challenge_count: Number of challenges in the session's sequence.

    Returns:
        The new state.

    Raises:
        UnknownEventError: If the event is not one of the known event types.
    """
    if isinstance(event, FaceDetected):
        if not event.detected:
            return INITIAL_STATE
        if state.face_detected:
            return state
        return replace(state, face_detected=True, progress_fill=progress_step(challenge_count))

    if isinstance(event, FaceTooBig):
        return replace(state, face_too_big=event.too_big)

    if isinstance(event, NextDetection):
        next_index = state.current_challenge_index + 1
        # Index 0 is already covered by the face acquisition slot
        progress = progress_step(challenge_count) * (next_index + 1)

        if next_index >= challenge_count:
            return replace(
                state,
                current_challenge_index=challenge_count,
                progress_fill=100.0,
                process_complete=True,
            )

        return replace(state, current_challenge_index=next_index, progress_fill=progress)

    raise UnknownEventError(f"Unexpected event type: {type(event).__name__}")
