from enum import Enum
from typing import Iterable, List, Tuple


class Challenge(Enum):
    """
    The liveness actions a user is guided through.
    The value is the user-facing instruction.
    """
    BLINK = "Blink both eyes"
    TURN_HEAD_LEFT = "Turn head left"
    TURN_HEAD_RIGHT = "Turn head right"
    NOD = "Nod"
    SMILE = "Smile"

    @property
    def instruction(self) -> str:
        return self.value


DEFAULT_SEQUENCE: Tuple[Challenge, ...] = (
    Challenge.BLINK,
    Challenge.TURN_HEAD_LEFT,
    Challenge.TURN_HEAD_RIGHT,
    Challenge.NOD,
    Challenge.SMILE,
)


class Prompt(Enum):
    """Guidance shown above the current instruction."""
    INITIAL = "Position your face in the circle"
    PERFORM_ACTIONS = "Keep the device still and perform the following actions:"
    TOO_CLOSE = "You're too close. Hold the device further."
    COMPLETE = "Liveness check complete"


def build_sequence(names: Iterable[str]) -> Tuple[Challenge, ...]:
    """
    Builds an ordered challenge sequence from challenge names.

    Args:
        names: Challenge names such as "BLINK" or "nod" (case-insensitive).

    Returns:
        A tuple of Challenge members in the given order.
    """
    sequence: List[Challenge] = []
    for name in names:
        key = str(name).strip().upper()
        try:
            challenge = Challenge[key]
        except KeyError:
            valid = ", ".join(c.name for c in Challenge)
            raise ValueError(f"Unknown challenge '{name}'. Expected one of: {valid}") from None

        if challenge in sequence:
            raise ValueError(f"Challenge '{challenge.name}' appears more than once in the sequence.")
        sequence.append(challenge)

    if not sequence:
        raise ValueError("Challenge sequence must contain at least one challenge.")

    return tuple(sequence)
