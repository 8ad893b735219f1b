"""Engine configuration loaded from YAML.

Example config.yml:

    resample_points: 32
    threshold: 0.3
    queue_depth: 3
    capture_region: [0, 150, 1920, 930]
    finalize_policy: idle_timeout
    idle_timeout_ticks: 20
    templates: gestures/
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Optional

import yaml

from stroke_engine.capture import CaptureRegion, FinalizePolicy

logger = logging.getLogger("stroke_engine.config")


@dataclass
class EngineConfig:
    # Recognizer
    resample_points: int = 32
    unit_size: float = 1.0
    epsilon: float = 0.5
    bridge_strokes: bool = True
    # Decision gate
    threshold: float = 0.3
    # Gesture queue
    queue_depth: int = 3
    seed: Optional[int] = None
    # Capture
    capture_region: Optional[list[float]] = None  # [x, y, width, height]
    flip_y: bool = True
    finalize_policy: str = FinalizePolicy.SINGLE_STROKE.value
    idle_timeout_ticks: int = 15
    # Template file or directory
    templates: Optional[str] = None

    _INT_FIELDS = ("resample_points", "queue_depth", "idle_timeout_ticks")
    _FLOAT_FIELDS = ("unit_size", "epsilon", "threshold")

    def __post_init__(self):
        self.validate()

    def validate(self):
        """Raise ValueError on out-of-range or wrongly typed settings."""
        for name in self._INT_FIELDS:
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{name} must be an integer, got {value!r}")
        for name in self._FLOAT_FIELDS:
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError(f"{name} must be a number, got {value!r}")
        if self.seed is not None and (
            isinstance(self.seed, bool) or not isinstance(self.seed, int)
        ):
            raise ValueError(f"seed must be an integer or null, got {self.seed!r}")
        if self.capture_region is not None and not isinstance(
            self.capture_region, (list, tuple)
        ):
            raise ValueError(
                f"capture_region must be [x, y, width, height], got {self.capture_region!r}"
            )
        if self.resample_points < 2:
            raise ValueError(f"resample_points must be >= 2, got {self.resample_points}")
        if self.unit_size <= 0:
            raise ValueError(f"unit_size must be positive, got {self.unit_size}")
        if not 0.0 <= self.epsilon <= 1.0:
            raise ValueError(f"epsilon must be in [0, 1], got {self.epsilon}")
        if not 0.0 <= self.threshold <= 1.0:
            raise ValueError(f"threshold must be in [0, 1], got {self.threshold}")
        if self.queue_depth < 1:
            raise ValueError(f"queue_depth must be >= 1, got {self.queue_depth}")
        if self.idle_timeout_ticks < 1:
            raise ValueError(
                f"idle_timeout_ticks must be >= 1, got {self.idle_timeout_ticks}"
            )
        # Both raise ValueError on bad input
        FinalizePolicy(self.finalize_policy)
        if self.capture_region is not None:
            CaptureRegion.from_sequence(self.capture_region)

    @property
    def policy(self) -> FinalizePolicy:
        return FinalizePolicy(self.finalize_policy)

    @property
    def region(self) -> Optional[CaptureRegion]:
        if self.capture_region is None:
            return None
        return CaptureRegion.from_sequence(self.capture_region)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EngineConfig:
        known = {f.name for f in fields(cls)}
        for key in data:
            if key not in known:
                logger.warning("Ignoring unknown config key: %s", key)
        return cls(**{k: v for k, v in data.items() if k in known})

    @classmethod
    def from_yaml(cls, path: str | Path) -> EngineConfig:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"{path}: config must be a mapping")
        return cls.from_dict(data)

    def to_yaml(self, path: str | Path):
        with open(path, "w") as f:
            yaml.safe_dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)
