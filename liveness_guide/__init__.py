from .active_checker import ActiveChecker, LivenessSession
from .config import LivenessConfig, load_config
from .models import Challenge, FaceMeasurement, Rect, contains
from .state import SessionState, reduce

__all__ = [
    "ActiveChecker",
    "LivenessSession",
    "LivenessConfig",
    "load_config",
    "Challenge",
    "FaceMeasurement",
    "Rect",
    "contains",
    "SessionState",
    "reduce",
]
