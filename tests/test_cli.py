import json
from unittest.mock import patch

import numpy as np
from typer.testing import CliRunner

from liveness_guide.cli import app

runner = CliRunner()


@patch("liveness_guide.cli.ActiveChecker")
@patch("liveness_guide.cli.extract_frames", return_value=[np.zeros((8, 8, 3), dtype=np.uint8)] * 3)
@patch("liveness_guide.cli.get_video_info", return_value={"fps": 10, "duration": 0.3})
def test_check_prints_result(mock_info, mock_extract, mock_checker):
    mock_checker.return_value.check.return_value = {"passed": True, "message": "ok"}

    result = runner.invoke(app, ["check", "clip.mp4"])

    assert result.exit_code == 0
    assert json.loads(result.stdout)["passed"] is True
    frames = mock_checker.return_value.check.call_args[0][0]
    assert len(frames) == 3


@patch("liveness_guide.cli.ActiveChecker")
@patch("liveness_guide.cli.extract_frames", return_value=[])
@patch("liveness_guide.cli.get_video_info", return_value={"fps": 30, "duration": 0})
def test_check_failure_exit_code(mock_info, mock_extract, mock_checker):
    mock_checker.return_value.check.return_value = {"passed": False, "message": "No frames to analyze"}

    result = runner.invoke(app, ["check", "clip.mp4"])

    assert result.exit_code == 1


@patch("liveness_guide.cli.get_video_info", side_effect=ValueError("Could not open video file: clip.mp4"))
def test_check_unreadable_video(mock_info):
    result = runner.invoke(app, ["check", "clip.mp4"])
    assert result.exit_code == 2
