"""
Tests for tracker configuration loading.
"""

import json
import pytest
from pathlib import Path
from pydantic import ValidationError

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import TrackerConfig, load_config


class TestDefaults:
    """Tests for the built-in defaults."""

    def test_defaults(self):
        config = load_config()
        assert config.interpolation_duration_ms == 500
        assert config.min_movement_m == 1.0
        assert config.rotation_min_distance_m == 25.0
        assert config.rotation_cooldown_ms == 4000
        assert config.rotation_min_angle_deg == 20.0
        assert config.rotation_transition_ms == 2000
        assert config.color_scheme == "bright"
        assert config.gps_accuracy == "smart"

    def test_store_path_expanded(self):
        config = TrackerConfig(store_path="~/tracker.json")
        assert config.resolved_store_path == Path.home() / "tracker.json"


class TestLoadConfig:
    """Tests for file and override handling."""

    def test_from_file(self, tmp_path):
        config_file = tmp_path / "tracker.json"
        config_file.write_text(json.dumps({"color_scheme": "fade", "rotation_cooldown_ms": 6000}))

        config = load_config(config_file)
        assert config.color_scheme == "fade"
        assert config.rotation_cooldown_ms == 6000
        assert config.rotation_min_angle_deg == 20.0

    def test_overrides_win_over_file(self, tmp_path):
        config_file = tmp_path / "tracker.json"
        config_file.write_text(json.dumps({"color_scheme": "fade"}))

        config = load_config(config_file, color_scheme="bright", store_path=None)
        assert config.color_scheme == "bright"
        assert config.store_path == TrackerConfig().store_path

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "absent.json")

    def test_non_object_file(self, tmp_path):
        config_file = tmp_path / "tracker.json"
        config_file.write_text("[1, 2, 3]")
        with pytest.raises(ValueError, match="JSON object"):
            load_config(config_file)

    @pytest.mark.parametrize("field,value", [
        ("interpolation_duration_ms", 50),
        ("interpolation_duration_ms", 5000),
        ("rotation_min_angle_deg", 200),
        ("min_movement_m", 0),
        ("color_scheme", "neon"),
        ("gps_accuracy", "ultra"),
    ])
    def test_invalid_values(self, field, value):
        with pytest.raises(ValidationError):
            load_config(**{field: value})
