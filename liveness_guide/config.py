import logging
import os
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Optional, Tuple

import yaml

from .models.challenges import Challenge, DEFAULT_SEQUENCE, build_sequence
from .models.geometry import Rect

logger = logging.getLogger(__name__)


DEFAULT_CONFIG_PATHS = [
    os.environ.get("LIVENESS_GUIDE_CONFIG", ""),
    "./liveness.yaml",
    "./config.yaml",
]


@dataclass(frozen=True)
class PreviewConfig:
    size: float = 325.0
    min_x: float = 25.0  # left margin
    min_y: float = 50.0  # top margin

    @property
    def rect(self) -> Rect:
        return Rect(self.min_x, self.min_y, self.size, self.size)

    @property
    def view_size(self) -> Tuple[float, float]:
        # Camera view with the preview centred horizontally and the same margin below it
        return (self.min_x * 2 + self.size, self.min_y * 2 + self.size)


@dataclass(frozen=True)
class ToleranceConfig:
    edge_inset: float = 50.0
    oversize_margin: float = 90.0


@dataclass(frozen=True)
class ThresholdConfig:
    blink_max_open_probability: float = 0.3
    turn_left_max_yaw: float = -15.0
    turn_right_min_yaw: float = 15.0
    nod_min_diff: float = 1.5
    nod_window: int = 10
    smile_min_probability: float = 0.7


@dataclass(frozen=True)
class SamplingConfig:
    min_interval_ms: int = 100


@dataclass(frozen=True)
class LivenessConfig:
    preview: PreviewConfig = field(default_factory=PreviewConfig)
    tolerance: ToleranceConfig = field(default_factory=ToleranceConfig)
    thresholds: ThresholdConfig = field(default_factory=ThresholdConfig)
    sampling: SamplingConfig = field(default_factory=SamplingConfig)
    challenges: Tuple[str, ...] = tuple(c.name for c in DEFAULT_SEQUENCE)

    def __post_init__(self):
        validate_config(self)

    @property
    def max_face_size(self) -> float:
        return self.preview.size - self.tolerance.oversize_margin

    def challenge_sequence(self) -> Tuple[Challenge, ...]:
        return build_sequence(self.challenges)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["challenges"] = list(self.challenges)
        return data


def validate_config(cfg: LivenessConfig) -> None:
    """Raises ValueError when the configuration cannot drive a session."""
    if cfg.preview.size <= 0:
        raise ValueError(f"Preview size must be positive, got {cfg.preview.size}")
    if cfg.tolerance.edge_inset < 0 or cfg.tolerance.oversize_margin < 0:
        raise ValueError("Edge inset and oversize margin must not be negative")

    th = cfg.thresholds
    for name in ("blink_max_open_probability", "smile_min_probability"):
        value = getattr(th, name)
        if not 0.0 <= value <= 1.0:
            raise ValueError(f"{name} must be within [0, 1], got {value}")
    if th.nod_window < 2:
        raise ValueError(f"nod_window needs at least 2 samples, got {th.nod_window}")
    if th.nod_min_diff < 0:
        raise ValueError(f"nod_min_diff must not be negative, got {th.nod_min_diff}")
    if cfg.sampling.min_interval_ms < 0:
        raise ValueError("Sampling interval must not be negative")

    # Surfaces unknown or empty challenge lists early.
    build_sequence(cfg.challenges)


def _merge_dict(d: dict, u: dict) -> dict:
    for k, v in u.items():
        if isinstance(v, dict) and isinstance(d.get(k), dict):
            d[k] = _merge_dict(d[k], v)
        else:
            d[k] = v
    return d


def config_from_dict(data: Dict[str, Any]) -> LivenessConfig:
    merged = _merge_dict(LivenessConfig().to_dict(), data or {})
    try:
        preview = PreviewConfig(**merged.get("preview", {}))
        tolerance = ToleranceConfig(**merged.get("tolerance", {}))
        thresholds = ThresholdConfig(**merged.get("thresholds", {}))
        sampling = SamplingConfig(**merged.get("sampling", {}))
    except TypeError as e:
        raise ValueError(f"Invalid configuration key: {e}") from e
    return LivenessConfig(
        preview=preview,
        tolerance=tolerance,
        thresholds=thresholds,
        sampling=sampling,
        challenges=tuple(merged.get("challenges", ())),
    )


def load_config(path: Optional[str] = None) -> LivenessConfig:
    """
    Loads the configuration from the first YAML file found.

    Args:
        path: Explicit config path. When omitted, DEFAULT_CONFIG_PATHS are searched.

    Returns:
        The merged LivenessConfig; defaults when no file is found or it cannot be parsed.
    """
    candidates = [path] if path else [p for p in DEFAULT_CONFIG_PATHS if p]
    for p in candidates:
        if not os.path.exists(p):
            continue
        try:
            with open(p, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Could not read config file {p}: {e}. Using defaults.")
            return LivenessConfig()
        if not isinstance(data, dict):
            logger.warning(f"Config file {p} does not contain a mapping. Using defaults.")
            return LivenessConfig()
        logger.info(f"Loaded configuration from {p}")
        return config_from_dict(data)
    return LivenessConfig()
