from __future__ import annotations

from pathlib import Path

from sphere_tracking.cli import build_config, main, parse_args


def test_suggest_backend_exits_cleanly(capsys) -> None:
    assert main(["--suggest-backend"]) == 0
    assert "backend" in capsys.readouterr().out


def test_command_line_overrides_config(tmp_path) -> None:
    config_path = tmp_path / "tracker.yaml"
    config_path.write_text("ball_diameter: 0.04\ncamera:\n  source: 0\n")

    config = build_config(parse_args([
        "--config", str(config_path),
        "--ball-diameter", "0.3",
        "--selection", "largest",
        "--source", "3",
        "--headless",
    ]))

    assert config.ball_diameter == 0.3
    assert config.detector.selection == "largest"
    assert config.camera.source == "3"
    assert config.display_enabled is False
    assert config.base_dir == tmp_path


def test_missing_calibration_exits_with_error(tmp_path) -> None:
    config_path = tmp_path / "tracker.yaml"
    config_path.write_text("calibration_file: missing.yaml\n")
    assert main(["--config", str(config_path), "--headless"]) == 1


def test_invalid_config_exits_with_error(tmp_path) -> None:
    config_path = tmp_path / "tracker.yaml"
    config_path.write_text("ball_diameter: -1\n")
    assert main(["--config", str(config_path), "--headless"]) == 1


def test_unavailable_camera_exits_with_error(tmp_path, calibration_file: Path) -> None:
    config_path = tmp_path / "tracker.yaml"
    config_path.write_text(
        f"calibration_file: {calibration_file.name}\n"
        "camera:\n"
        "  source: does_not_exist.avi\n"
        "  connect_attempts: 1\n"
    )
    assert main(["--config", str(config_path), "--headless"]) == 1


def test_missing_default_config_exits_with_error(tmp_path, monkeypatch) -> None:
    monkeypatch.setattr("sphere_tracking.cli.DEFAULT_CONFIG", tmp_path / "tracker_config.yaml")
    assert main(["--headless"]) == 1


def test_unwritable_jsonl_path_exits_with_error(tmp_path, calibration_file: Path) -> None:
    config_path = tmp_path / "tracker.yaml"
    config_path.write_text(f"calibration_file: {calibration_file.name}\n")
    jsonl = tmp_path / "no_such_dir" / "points.jsonl"
    assert main(["--config", str(config_path), "--headless", "--jsonl", str(jsonl)]) == 1
