"""Tests for configuration models."""

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from src.models.config import EngineConfig, VisualConfig, parse_bool, parse_color


class TestVisualConfig:
    def test_defaults(self):
        cfg = VisualConfig()
        assert cfg.threshold == 0.05
        assert cfg.ignore_antialiasing is True
        assert cfg.alpha == 0.1
        assert cfg.diff_color == (255, 0, 0, 255)
        assert cfg.aa_color == (0, 255, 0, 255)
        assert cfg.diff_mask is True

    @pytest.mark.parametrize("threshold", [-0.01, 1.01, 5])
    def test_threshold_outside_unit_interval_rejected(self, threshold):
        with pytest.raises(ValidationError):
            VisualConfig(threshold=threshold)

    @pytest.mark.parametrize("threshold", [0.0, 1.0])
    def test_threshold_bounds_accepted(self, threshold):
        assert VisualConfig(threshold=threshold).threshold == threshold

    def test_rgb_color_gets_opaque_alpha(self):
        assert VisualConfig(diff_color=(10, 20, 30)).diff_color == (10, 20, 30, 255)

    def test_color_from_string(self):
        assert VisualConfig(diff_color="255, 0, 255").diff_color == (255, 0, 255, 255)

    def test_color_channel_out_of_range_rejected(self):
        with pytest.raises(ValidationError):
            VisualConfig(diff_color=(256, 0, 0, 255))


class TestParsers:
    def test_parse_color_with_alpha(self):
        assert parse_color("1,2,3,4") == (1, 2, 3, 4)

    def test_parse_color_wrong_arity(self):
        with pytest.raises(ValueError):
            parse_color("1,2")

    @pytest.mark.parametrize("value,expected", [("true", True), ("1", True), ("No", False), ("off", False)])
    def test_parse_bool(self, value, expected):
        assert parse_bool(value) is expected

    def test_parse_bool_rejects_garbage(self):
        with pytest.raises(ValueError):
            parse_bool("maybe")


class TestEngineConfig:
    def test_from_env_overlays_values(self):
        env = {
            "VISUAL_THRESHOLD": "0.1",
            "VISUAL_IGNORE_ANTIALIASING": "false",
            "VISUAL_ALPHA": "0.3",
            "VISUAL_DIFF_COLOR": "0,0,255",
            "VISUAL_OUTPUT_DIR": "/tmp/out",
            "VISUAL_PROTOTYPES_DIR": "/tmp/protos",
            "API_LEVEL": "26",
            "DEVICE_NAME": "Pixel 2",
        }
        cfg = EngineConfig.from_env(env)
        assert cfg.visual.threshold == 0.1
        assert cfg.visual.ignore_antialiasing is False
        assert cfg.visual.alpha == 0.3
        assert cfg.visual.diff_color == (0, 0, 255, 255)
        assert cfg.output_dir == "/tmp/out"
        assert cfg.prototypes_dir == "/tmp/protos"
        assert cfg.api_level == "26"
        assert cfg.device_name == "Pixel 2"

    def test_from_env_keeps_base_values(self):
        base = EngineConfig(output_dir="/results", max_parallel_comparisons=8)
        cfg = EngineConfig.from_env({}, base=base)
        assert cfg.output_dir == "/results"
        assert cfg.max_parallel_comparisons == 8
        assert cfg.visual.threshold == 0.05

    def test_from_env_rejects_invalid_threshold(self):
        with pytest.raises(ValidationError):
            EngineConfig.from_env({"VISUAL_THRESHOLD": "2"})

    def test_env_indirection_for_directories(self, monkeypatch):
        monkeypatch.setenv("PROTO_ROOT", "/designs")
        assert EngineConfig(prototypes_dir="env:PROTO_ROOT").prototypes_dir == "/designs"

    def test_env_indirection_missing_variable(self, monkeypatch):
        monkeypatch.delenv("NOPE_NOT_SET", raising=False)
        with pytest.raises(ValidationError):
            EngineConfig(output_dir="env:NOPE_NOT_SET")

    def test_configuration_id_prefers_api_level(self):
        assert EngineConfig(api_level="31").configuration_id == "api-31"
        assert EngineConfig(device_id="iphone-15").configuration_id == "iphone-15"

    def test_save_and_load_roundtrip(self, tmp_path: Path):
        path = tmp_path / "cfg" / "visual-config.json"
        EngineConfig(api_level="21", visual=VisualConfig(threshold=0.2)).save(path)
        loaded = EngineConfig.load(path)
        assert loaded.api_level == "21"
        assert loaded.visual.threshold == 0.2
        assert json.loads(path.read_text())["visual"]["threshold"] == 0.2

    def test_load_missing_file(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            EngineConfig.load(tmp_path / "missing.json")

    def test_parallelism_must_be_positive(self):
        with pytest.raises(ValidationError):
            EngineConfig(max_parallel_comparisons=0)
