import pytest

from liveness_guide.state import (
    INITIAL_STATE,
    FaceDetected,
    FaceTooBig,
    NextDetection,
    SessionState,
    UnknownEventError,
    reduce,
)

N = 5


def detected_state() -> SessionState:
    return reduce(INITIAL_STATE, FaceDetected(True), N)


def test_initial_state():
    assert INITIAL_STATE == SessionState(
        face_detected=False,
        face_too_big=False,
        current_challenge_index=0,
        progress_fill=0.0,
        process_complete=False,
    )


def test_face_detected_reserves_first_progress_slot():
    state = detected_state()
    assert state.face_detected is True
    assert state.progress_fill == pytest.approx(100 / 6)
    assert state.current_challenge_index == 0


def test_face_detected_is_idempotent():
    once = detected_state()
    twice = reduce(once, FaceDetected(True), N)
    assert twice == once


def test_face_detected_does_not_lower_progress_midway():
    state = reduce(detected_state(), NextDetection(), N)
    assert reduce(state, FaceDetected(True), N) == state


@pytest.mark.parametrize("steps", [0, 1, 3, 5])
def test_face_lost_resets_everything(steps):
    # Arrange
    state = reduce(detected_state(), FaceTooBig(True), N)
    for _ in range(steps):
        state = reduce(state, NextDetection(), N)

    # Act
    reset = reduce(state, FaceDetected(False), N)

    # Assert
    assert reset == INITIAL_STATE


def test_face_too_big_only_touches_its_flag():
    state = detected_state()
    big = reduce(state, FaceTooBig(True), N)
    assert big.face_too_big is True
    assert big.face_detected == state.face_detected
    assert big.progress_fill == state.progress_fill
    assert reduce(big, FaceTooBig(False), N) == state


def test_progress_sequence_to_completion():
    """Scenario: five challenges, each passed in turn."""
    state = detected_state()
    fills = []
    completes = []
    for _ in range(N):
        state = reduce(state, NextDetection(), N)
        fills.append(state.progress_fill)
        completes.append(state.process_complete)

    assert fills == pytest.approx([33.33, 50.0, 66.67, 83.33, 100.0], abs=0.01)
    assert completes == [False, False, False, False, True]
    assert fills[-1] == 100.0
    assert all(b > a for a, b in zip(fills, fills[1:]))


def test_completion_index_and_invariant():
    state = detected_state()
    for _ in range(N):
        state = reduce(state, NextDetection(), N)
    assert state.current_challenge_index == N
    assert state.process_complete is True


def test_progress_never_exceeds_100():
    state = detected_state()
    for _ in range(N + 3):
        state = reduce(state, NextDetection(), N)
        assert state.progress_fill <= 100.0
    assert state.current_challenge_index == N


def test_reducer_does_not_mutate_input():
    state = detected_state()
    snapshot = SessionState(**state.__dict__)
    reduce(state, NextDetection(), N)
    assert state == snapshot


@pytest.mark.parametrize("event", ["NEXT_DETECTION", None, 42, object()])
def test_unknown_event_fails_fast(event):
    with pytest.raises(UnknownEventError, match="Unexpected event type"):
        reduce(INITIAL_STATE, event, N)


def test_unknown_event_is_a_type_error():
    with pytest.raises(TypeError):
        reduce(INITIAL_STATE, {"type": "FACE_DETECTED"}, N)


def test_single_challenge_sequence():
    state = reduce(INITIAL_STATE, FaceDetected(True), 1)
    assert state.progress_fill == pytest.approx(50.0)
    state = reduce(state, NextDetection(), 1)
    assert state.process_complete is True
    assert state.progress_fill == 100.0
