import pytest

from liveness_guide.config import (
    LivenessConfig,
    PreviewConfig,
    ThresholdConfig,
    config_from_dict,
    load_config,
)
from liveness_guide.models.challenges import Challenge, DEFAULT_SEQUENCE, build_sequence
from liveness_guide.models.geometry import Rect


def test_defaults():
    cfg = LivenessConfig()
    assert cfg.preview.rect == Rect(25, 50, 325, 325)
    assert cfg.tolerance.edge_inset == 50
    assert cfg.max_face_size == 235
    assert cfg.sampling.min_interval_ms == 100
    assert cfg.challenge_sequence() == DEFAULT_SEQUENCE


def test_config_is_immutable():
    cfg = LivenessConfig()
    with pytest.raises(AttributeError):
        cfg.preview = PreviewConfig(size=100)


def test_view_size_centres_preview():
    assert PreviewConfig().view_size == (375, 425)


def test_build_sequence_is_case_insensitive():
    assert build_sequence(["blink", " Smile "]) == (Challenge.BLINK, Challenge.SMILE)


@pytest.mark.parametrize("names, match", [
    (["WINK"], "Unknown challenge"),
    ([], "at least one"),
    (["NOD", "nod"], "more than once"),
])
def test_build_sequence_rejects_bad_input(names, match):
    with pytest.raises(ValueError, match=match):
        build_sequence(names)


@pytest.mark.parametrize("kwargs", [
    {"preview": PreviewConfig(size=0)},
    {"thresholds": ThresholdConfig(smile_min_probability=1.5)},
    {"thresholds": ThresholdConfig(nod_window=1)},
    {"challenges": ("BLINK", "JUMP")},
    {"challenges": ()},
    {"challenges": ("NOD", "BLINK", "NOD")},
])
def test_invalid_config_raises(kwargs):
    with pytest.raises(ValueError):
        LivenessConfig(**kwargs)


def test_config_from_dict_merges_over_defaults():
    cfg = config_from_dict({"preview": {"min_x": 0}, "challenges": ["NOD", "SMILE"]})
    assert cfg.preview.min_x == 0
    assert cfg.preview.size == 325
    assert cfg.challenge_sequence() == (Challenge.NOD, Challenge.SMILE)


def test_config_from_dict_rejects_unknown_keys():
    with pytest.raises(ValueError, match="Invalid configuration key"):
        config_from_dict({"thresholds": {"frown_min_probability": 0.4}})


def test_load_config_from_yaml(tmp_path):
    path = tmp_path / "liveness.yaml"
    path.write_text(
        "tolerance:\n"
        "  oversize_margin: 100\n"
        "thresholds:\n"
        "  nod_min_diff: 2.5\n"
        "challenges: [BLINK, NOD]\n",
        encoding="utf-8",
    )

    cfg = load_config(str(path))

    assert cfg.tolerance.oversize_margin == 100
    assert cfg.tolerance.edge_inset == 50
    assert cfg.thresholds.nod_min_diff == 2.5
    assert cfg.challenges == ("BLINK", "NOD")


def test_load_config_falls_back_on_malformed_yaml(tmp_path):
    path = tmp_path / "broken.yaml"
    path.write_text("preview: [unclosed\n", encoding="utf-8")
    assert load_config(str(path)) == LivenessConfig()


def test_load_config_missing_file(tmp_path):
    assert load_config(str(tmp_path / "missing.yaml")) == LivenessConfig()
