from __future__ import annotations

from pathlib import Path

import pytest

from sphere_tracking.config import (
    ThresholdBand,
    ThresholdConfig,
    config_from_dict,
    load_config,
)
from sphere_tracking.errors import ConfigError

REPO_CONFIG = Path(__file__).resolve().parents[1] / "config" / "tracker_config.yaml"


def test_repo_config_loads_with_default_thresholds() -> None:
    config = load_config(REPO_CONFIG)
    assert config.loop_rate_hz == 15.0
    assert config.thresholds == ThresholdBand()
    assert config.thresholds.lower == (0, 101, 37)
    assert config.thresholds.upper == (179, 255, 255)
    assert config.thresholds.canny == 200
    assert config.detector.selection == "last"
    assert config.detector.min_area == 1000.0
    assert config.resolve(config.calibration_file).is_file()


def test_empty_config_uses_defaults(tmp_path) -> None:
    config = config_from_dict({}, base_dir=tmp_path)
    assert config.ball_diameter == 0.04
    assert config.camera.connect_attempts == 10
    assert config.detector.hough.accumulator == 150
    assert config.resolve("a.yaml") == tmp_path / "a.yaml"


def test_values_are_coerced_and_unknown_keys_ignored() -> None:
    config = config_from_dict({
        "ball_diameter": "0.3",
        "camera": {"source": "clip.mp4", "connect_attempts": "2", "colour": "red"},
        "detector": {"selection": "largest", "hough": {"min_radius": "10"}},
        "display": {"enabled": False},
    })
    assert config.ball_diameter == 0.3
    assert config.camera.source == "clip.mp4"
    assert config.camera.connect_attempts == 2
    assert config.detector.selection == "largest"
    assert config.detector.hough.min_radius == 10
    assert config.display_enabled is False


@pytest.mark.parametrize(
    "data",
    [
        {"ball_diameter": 0},
        {"ball_diameter": "wide"},
        {"loop_rate_hz": -1},
        {"detector": {"selection": "best"}},
        {"detector": {"method": "yolo"}},
        {"thresholds": {"low_s": 200, "high_s": 100}},
        {"camera": [1, 2]},
        {"thresholds": {"low_h": -1}},
        {"thresholds": {"high_s": 300}},
        {"thresholds": {"canny": 201}},
        {"output": {"log_points": "false"}},
        {"display": {"enabled": "false"}},
        {"display": {"enabled": 0}},
        {"display": "off"},
    ],
)
def test_invalid_values_raise_config_error(data) -> None:
    with pytest.raises(ConfigError):
        config_from_dict(data)


def test_missing_and_malformed_files_raise_config_error(tmp_path) -> None:
    with pytest.raises(ConfigError):
        load_config(tmp_path / "missing.yaml")

    bad = tmp_path / "bad.yaml"
    bad.write_text("camera: [unclosed\n")
    with pytest.raises(ConfigError):
        load_config(bad)


def test_threshold_config_updates_are_clamped() -> None:
    thresholds = ThresholdConfig()
    thresholds.set("high_h", 500)
    thresholds.set("low_v", -3)
    band = thresholds.snapshot()
    assert band.high_h == 179
    assert band.low_v == 0

    with pytest.raises(KeyError):
        thresholds.set("gamma", 1)


def test_threshold_snapshots_do_not_change_after_update() -> None:
    thresholds = ThresholdConfig()
    before = thresholds.snapshot()
    thresholds.set_hsv((5, 120, 120), (20, 255, 255))
    after = thresholds.snapshot()

    assert before.low_h == 0
    assert after.lower == (5, 120, 120)
    assert after.upper == (20, 255, 255)
    assert after.canny == before.canny
