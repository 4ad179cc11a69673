from typing import List, Optional

from pydantic import BaseModel, Field

from .models.face import FaceMeasurement
from .models.geometry import Rect
from .state import SessionState


class RectModel(BaseModel):
    min_x: float
    min_y: float
    width: float
    height: float

    def to_rect(self) -> Rect:
        return Rect(self.min_x, self.min_y, self.width, self.height)

    @classmethod
    def from_rect(cls, rect: Rect) -> "RectModel":
        return cls(min_x=rect.min_x, min_y=rect.min_y, width=rect.width, height=rect.height)


class FaceMeasurementModel(BaseModel):
    bounds: RectModel
    left_eye_open_probability: float = Field(ge=0.0, le=1.0)
    right_eye_open_probability: float = Field(ge=0.0, le=1.0)
    smiling_probability: float = Field(ge=0.0, le=1.0)
    yaw_angle: float
    roll_angle: float

    def to_measurement(self) -> FaceMeasurement:
        return FaceMeasurement(
            bounds=self.bounds.to_rect(),
            left_eye_open_probability=self.left_eye_open_probability,
            right_eye_open_probability=self.right_eye_open_probability,
            smiling_probability=self.smiling_probability,
            yaw_angle=self.yaw_angle,
            roll_angle=self.roll_angle,
        )


class MeasurementRequest(BaseModel):
    face_count: int = Field(ge=0)
    measurement: Optional[FaceMeasurementModel] = None


class SessionStateModel(BaseModel):
    face_detected: bool
    face_too_big: bool
    current_challenge_index: int
    progress_fill: float
    process_complete: bool

    @classmethod
    def from_state(cls, state: SessionState) -> "SessionStateModel":
        return cls(
            face_detected=state.face_detected,
            face_too_big=state.face_too_big,
            current_challenge_index=state.current_challenge_index,
            progress_fill=round(state.progress_fill, 2),
            process_complete=state.process_complete,
        )


class FrameResponse(BaseModel):
    session_id: str
    state: SessionStateModel
    prompt: str
    instruction: Optional[str] = None
    face_count: int


class SessionStartResponse(BaseModel):
    session_id: str
    challenges: List[str]
    preview: RectModel
    sampling_interval_ms: int
    state: SessionStateModel
    prompt: str
    instruction: Optional[str] = None
