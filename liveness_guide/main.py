from fastapi import FastAPI, UploadFile, File, HTTPException
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from fastapi.concurrency import run_in_threadpool
import logging
import math
import threading
import time
import uuid
from dataclasses import dataclass, field
from typing import Dict, Optional

from .video_processor import (
    save_uploaded_file,
    extract_frames,
    sample_frames,
    decode_image,
    cleanup_temp_file,
    get_video_info,
)
from .active_checker import ActiveChecker, LivenessSession
from .config import LivenessConfig, load_config
from .face_estimator import FaceEstimator
from .models.face import FaceMeasurement
from .schemas import (
    FrameResponse,
    MeasurementRequest,
    RectModel,
    SessionStartResponse,
    SessionStateModel,
)


# Logging setup
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

MAX_VIDEO_SECONDS = 15.0
SESSION_TTL_SECONDS = 300

app = FastAPI(
    title="Guided Liveness Check API",
    description="Frame-by-frame face positioning and liveness challenge tracking.",
    version="1.0.0"
)

# CORS Middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@dataclass
class SessionEntry:
    session: LivenessSession
    # Frames of one session are evaluated one at a time, in arrival order
    lock: threading.Lock = field(default_factory=threading.Lock)
    last_seen: float = field(default_factory=time.time)


# --- In-memory storage for sessions and services ---
# Session state is transient and lives only as long as the process.
sessions: Dict[str, SessionEntry] = {}
config: LivenessConfig = LivenessConfig()
active_checker: Optional[ActiveChecker] = None
_estimator: Optional[FaceEstimator] = None
_estimator_lock = threading.Lock()


@app.on_event("startup")
async def startup_event():
    """Application startup initialization."""
    global config, active_checker

    logger.info("Initializing services...")
    config = load_config()
    active_checker = ActiveChecker(config)
    logger.info(f"Services initialized. Challenges: {list(config.challenges)}")


def get_estimator() -> FaceEstimator:
    """Shared single-image estimator for uploaded frames, created on first use."""
    global _estimator
    if _estimator is None:
        _estimator = FaceEstimator(config.preview.view_size, static_image_mode=True)
    return _estimator


def purge_expired_sessions(now: Optional[float] = None) -> int:
    """Drops sessions that have not received a frame within SESSION_TTL_SECONDS."""
    now = time.time() if now is None else now
    expired = [sid for sid, entry in list(sessions.items()) if now - entry.last_seen > SESSION_TTL_SECONDS]
    for sid in expired:
        sessions.pop(sid, None)
        logger.info(f"Session {sid} expired.")
    return len(expired)


def get_session(session_id: str) -> SessionEntry:
    purge_expired_sessions()
    entry = sessions.get(session_id)
    if entry is None:
        raise HTTPException(status_code=404, detail="Invalid or expired session ID.")
    entry.last_seen = time.time()
    return entry


def frame_response(session_id: str, session: LivenessSession, face_count: int) -> FrameResponse:
    return FrameResponse(
        session_id=session_id,
        state=SessionStateModel.from_state(session.state),
        prompt=session.prompt(),
        instruction=session.current_instruction(),
        face_count=face_count,
    )


def evaluate(session_id: str, entry: SessionEntry, measurement: Optional[FaceMeasurement], face_count: int) -> FrameResponse:
    with entry.lock:
        was_complete = entry.session.state.process_complete
        entry.session.evaluate_frame(measurement, face_count)
        response = frame_response(session_id, entry.session, face_count)
        if entry.session.state.process_complete and not was_complete:
            # A finished attempt is final; its state is discarded
            sessions.pop(session_id, None)
            logger.info(f"Session {session_id} completed all challenges and was cleaned up.")
        return response


@app.get("/", include_in_schema=False)
async def root():
    return {"message": "Guided Liveness Check API is running. See /docs for details."}


@app.get("/health")
async def health():
    return {"status": "ok", "active_sessions": len(sessions)}


@app.post("/liveness/session/start", summary="Start a new liveness session", response_model=SessionStartResponse)
def start_liveness_session() -> SessionStartResponse:
    """
    Starts a new liveness session.

    Returns the session ID, the ordered challenge instructions and the preview
    rectangle the face has to be positioned in.
    """
    purge_expired_sessions()
    session_id = str(uuid.uuid4())
    session = LivenessSession(config)
    sessions[session_id] = SessionEntry(session)

    logger.info(f"Started session {session_id} with challenges: {[c.name for c in session.challenges]}")

    return SessionStartResponse(
        session_id=session_id,
        challenges=[c.instruction for c in session.challenges],
        preview=RectModel.from_rect(config.preview.rect),
        sampling_interval_ms=config.sampling.min_interval_ms,
        state=SessionStateModel.from_state(session.state),
        prompt=session.prompt(),
        instruction=session.current_instruction(),
    )


@app.post("/liveness/session/{session_id}/measurement", summary="Submit one frame's face measurement", response_model=FrameResponse)
def submit_measurement(session_id: str, req: MeasurementRequest) -> FrameResponse:
    """
    Evaluates one frame from a client-side face estimator.
    """
    entry = get_session(session_id)
    measurement = req.measurement.to_measurement() if req.measurement else None
    return evaluate(session_id, entry, measurement, req.face_count)


@app.post("/liveness/session/{session_id}/frame", summary="Submit one camera frame", response_model=FrameResponse)
def submit_frame(session_id: str, file: UploadFile = File(...)) -> FrameResponse:
    """
    Estimates the face geometry of an uploaded image and evaluates it.
    """
    entry = get_session(session_id)

    frame = decode_image(file.file.read())
    if frame is None:
        logger.warning(f"Session {session_id}: could not decode uploaded frame.")
        raise HTTPException(status_code=400, detail="Could not decode image.")

    with _estimator_lock:
        face_count, measurement = get_estimator().estimate(frame)

    return evaluate(session_id, entry, measurement, face_count)


@app.post("/liveness/session/{session_id}/reset", summary="Restart a liveness session", response_model=FrameResponse)
def reset_session(session_id: str) -> FrameResponse:
    entry = get_session(session_id)
    with entry.lock:
        entry.session.reset()
        logger.info(f"Session {session_id} reset.")
        return frame_response(session_id, entry.session, 0)


@app.delete("/liveness/session/{session_id}", summary="Discard a liveness session")
def delete_session(session_id: str):
    get_session(session_id)
    sessions.pop(session_id, None)
    logger.info(f"Session {session_id} cleaned up.")
    return {"session_id": session_id, "deleted": True}


def max_video_frames(video_info: dict) -> Optional[int]:
    """Frame cap covering MAX_VIDEO_SECONDS at the clip's own frame rate."""
    fps = video_info.get("fps") or 0
    if fps <= 0:
        return None
    return int(math.ceil(fps * MAX_VIDEO_SECONDS))


def validate_video_file(file: UploadFile):
    """Validates the uploaded video file."""
    if not file.content_type or not file.content_type.startswith("video/"):
        raise HTTPException(status_code=400, detail="Invalid file type. Must be a video.")


@app.post("/liveness/check", summary="Run a full liveness check on a recorded video")
async def liveness_check(file: UploadFile = File(...)) -> JSONResponse:
    """
    Runs the whole challenge sequence over a recorded video.

    Frames are sampled at the configured interval before evaluation.
    """
    temp_file_path = None

    try:
        validate_video_file(file)
        temp_file_path = await save_uploaded_file(file)

        # Video decoding and face estimation block, so they run off the event loop
        video_info = await run_in_threadpool(get_video_info, temp_file_path)
        if video_info["duration"] > MAX_VIDEO_SECONDS:
            raise HTTPException(status_code=400, detail="Video duration exceeds 15 second limit.")

        frames = await run_in_threadpool(extract_frames, temp_file_path, max_video_frames(video_info))
        if not frames:
            raise HTTPException(status_code=400, detail="Could not extract frames from video.")

        frames = sample_frames(frames, video_info["fps"], config.sampling.min_interval_ms)
        logger.info(f"Running active check on {len(frames)} sampled frames.")
        result = await run_in_threadpool(active_checker.check, frames)

        return JSONResponse(content={
            "status": "SUCCESS" if result["passed"] else "FAILURE",
            "reason": result["message"],
            "details": result,
            "video_info": video_info
        })

    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error during liveness check: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"An internal error occurred: {e}")
    finally:
        if temp_file_path:
            cleanup_temp_file(temp_file_path)
            logger.info(f"Cleaned up temp file: {temp_file_path}")
