import logging
import os
import tempfile
from typing import List, Optional

import cv2
import numpy as np
from fastapi import UploadFile

logger = logging.getLogger(__name__)


async def save_uploaded_file(upload_file: UploadFile, suffix: str = ".mp4") -> str:
    """
    Saves an uploaded file to a temporary file and returns its path.
    """
    with tempfile.NamedTemporaryFile(delete=False, suffix=suffix) as temp_file:
        content = await upload_file.read()
        temp_file.write(content)
        return temp_file.name


def extract_frames(video_path: str, max_frames: Optional[int] = None) -> List[np.ndarray]:
    """
    Reads frames from a video file as numpy arrays.

    Args:
        video_path: Path of the video file.
        max_frames: Maximum number of frames (None reads all frames).

    Returns:
        List of BGR frames.
    """
    frames = []
    cap = cv2.VideoCapture(video_path)

    if not cap.isOpened():
        raise ValueError(f"Could not open video file: {video_path}")

    try:
        while cap.isOpened():
            ret, frame = cap.read()
            if not ret:
                break

            frames.append(frame)

            if max_frames and len(frames) >= max_frames:
                break
    finally:
        cap.release()

    return frames


def sample_frames(frames: List[np.ndarray], fps: float, min_interval_ms: int = 100) -> List[np.ndarray]:
    """
    Keeps at most one frame per sampling interval, preserving order.

    Args:
        frames: Frames in capture order.
        fps: Frame rate the frames were captured at.
        min_interval_ms: Minimum spacing between kept frames.

    Returns:
        The sampled frames.
    """
    if not frames or fps <= 0 or min_interval_ms <= 0:
        return list(frames)

    frame_ms = 1000.0 / fps
    sampled = []
    next_time = 0.0
    for i, frame in enumerate(frames):
        timestamp = i * frame_ms
        if timestamp + 1e-6 >= next_time:
            sampled.append(frame)
            next_time = timestamp + min_interval_ms
    return sampled


def decode_image(data: bytes) -> Optional[np.ndarray]:
    """Decodes encoded image bytes (JPEG, PNG, ...) into a BGR frame."""
    if not data:
        return None
    arr = np.frombuffer(data, dtype=np.uint8)
    return cv2.imdecode(arr, cv2.IMREAD_COLOR)


def cleanup_temp_file(file_path: str) -> None:
    """
    Deletes a temporary file.
    """
    try:
        if os.path.exists(file_path):
            os.unlink(file_path)
    except OSError as e:
        logger.warning(f"Could not delete temp file {file_path}: {e}")


def get_video_info(video_path: str) -> dict:
    """
    Reads basic properties of a video file.
    """
    cap = cv2.VideoCapture(video_path)
    if not cap.isOpened():
        raise ValueError(f"Could not open video file: {video_path}")

    fps = cap.get(cv2.CAP_PROP_FPS)
    frame_count = int(cap.get(cv2.CAP_PROP_FRAME_COUNT))
    duration = frame_count / fps if fps > 0 else 0
    width = int(cap.get(cv2.CAP_PROP_FRAME_WIDTH))
    height = int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT))

    cap.release()

    return {
        "fps": fps,
        "frame_count": frame_count,
        "duration": duration,
        "width": width,
        "height": height
    }
