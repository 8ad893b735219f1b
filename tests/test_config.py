"""Tests for engine configuration."""

import logging

import pytest
import yaml

from stroke_engine.capture import CaptureRegion, FinalizePolicy
from stroke_engine.config import EngineConfig


class TestEngineConfig:
    def test_defaults(self):
        config = EngineConfig()
        assert config.resample_points == 32
        assert config.threshold == 0.3
        assert config.queue_depth == 3
        assert config.policy is FinalizePolicy.SINGLE_STROKE
        assert config.region is None
        assert config.flip_y

    def test_region_property(self):
        config = EngineConfig(capture_region=[0, 150, 1920, 930])
        assert config.region == CaptureRegion(0, 150, 1920, 930)

    @pytest.mark.parametrize("kwargs", [
        {"resample_points": 1},
        {"unit_size": 0},
        {"epsilon": 2.0},
        {"threshold": 1.1},
        {"queue_depth": 0},
        {"idle_timeout_ticks": 0},
        {"finalize_policy": "whenever"},
        {"capture_region": [0, 0, 10]},
        {"capture_region": [0, 0, 0, 10]},
        {"capture_region": 5},
        {"resample_points": "32"},
        {"resample_points": 32.0},
        {"queue_depth": True},
        {"threshold": "0.3"},
        {"seed": "7"},
    ])
    def test_invalid_values(self, kwargs):
        with pytest.raises(ValueError):
            EngineConfig(**kwargs)

    def test_yaml_roundtrip(self, tmp_path):
        config = EngineConfig(
            threshold=0.45,
            seed=7,
            capture_region=[0.0, 150.0, 1920.0, 930.0],
            finalize_policy="idle_timeout",
            templates="gestures/",
        )
        path = tmp_path / "config.yml"
        config.to_yaml(path)

        loaded = EngineConfig.from_yaml(path)
        assert loaded == config
        assert loaded.policy is FinalizePolicy.IDLE_TIMEOUT

    def test_partial_yaml(self, tmp_path):
        path = tmp_path / "config.yml"
        path.write_text("threshold: 0.6\nqueue_depth: 5\n")
        config = EngineConfig.from_yaml(path)
        assert config.threshold == 0.6
        assert config.queue_depth == 5
        assert config.resample_points == 32

    def test_quoted_number_in_yaml(self, tmp_path):
        path = tmp_path / "config.yml"
        path.write_text('resample_points: "32"\n')
        with pytest.raises(ValueError, match="resample_points"):
            EngineConfig.from_yaml(path)

    def test_empty_yaml_gives_defaults(self, tmp_path):
        path = tmp_path / "config.yml"
        path.write_text("")
        assert EngineConfig.from_yaml(path) == EngineConfig()

    def test_non_mapping_yaml(self, tmp_path):
        path = tmp_path / "config.yml"
        path.write_text("- 1\n- 2\n")
        with pytest.raises(ValueError):
            EngineConfig.from_yaml(path)

    def test_unknown_keys_are_ignored(self, caplog):
        with caplog.at_level(logging.WARNING, logger="stroke_engine.config"):
            config = EngineConfig.from_dict({"threshold": 0.5, "fps": 60})
        assert config.threshold == 0.5
        assert "fps" in caplog.text

    def test_to_dict_is_yaml_safe(self):
        data = EngineConfig(capture_region=[1, 2, 3, 4]).to_dict()
        assert yaml.safe_load(yaml.safe_dump(data)) == data
