from __future__ import annotations

import json

import numpy as np
import pytest

from sphere_tracking.distance import BallEstimate
from sphere_tracking.emitter import (
    PNP_CHANNEL,
    PNP_SENTINEL,
    RADIUS_CHANNEL,
    RADIUS_SENTINEL,
    JsonLinesSink,
    RecordingSink,
    ResultEmitter,
)
from sphere_tracking.errors import ConfigError
from sphere_tracking.shape_classifier import CircleCandidate

CANDIDATE = CircleCandidate(center=(120, 90), radius=40, bbox=(80, 50, 81, 81), area=5000.0)
ESTIMATE = BallEstimate(distance=3.0, position=(0.075, -0.0375, 3.0))


def test_no_detection_emits_sentinels() -> None:
    emission = ResultEmitter(clock=lambda: 12.5).package(None, None)

    assert emission.radius.point == RADIUS_SENTINEL
    assert emission.pnp.point == PNP_SENTINEL
    assert not emission.detected
    assert not emission.pnp.detected
    assert emission.radius.stamp == 12.5
    assert emission.radius.channel == RADIUS_CHANNEL
    assert emission.pnp.channel == PNP_CHANNEL


def test_detection_fills_both_channels() -> None:
    emission = ResultEmitter().package(CANDIDATE, ESTIMATE, stamp=3.0)

    assert emission.radius.point == (0.075, -0.0375, 3.0)
    assert emission.pnp.point == (120.0, 90.0, 40.0)
    assert emission.detected
    assert emission.radius.stamp == emission.pnp.stamp == 3.0


def test_candidate_without_estimate_keeps_radius_sentinel() -> None:
    emission = ResultEmitter().package(CANDIDATE, None, stamp=1.0)
    assert emission.radius.point == RADIUS_SENTINEL
    assert emission.pnp.detected


def test_absent_frame_never_reuses_previous_point() -> None:
    sink = RecordingSink()
    emitter = ResultEmitter([sink])

    emitter.emit(CANDIDATE, ESTIMATE, stamp=1.0)
    emitter.emit(None, None, stamp=2.0)

    radius_points = sink.channel(RADIUS_CHANNEL)
    assert [p.point for p in radius_points] == [ESTIMATE.position, RADIUS_SENTINEL]
    assert [p.point for p in sink.channel(PNP_CHANNEL)] == [(120.0, 90.0, 40.0), PNP_SENTINEL]


def test_json_lines_sink_writes_one_record_per_point(tmp_path) -> None:
    path = tmp_path / "points.jsonl"
    sink = JsonLinesSink(path)
    emitter = ResultEmitter([sink])

    emitter.emit(CANDIDATE, ESTIMATE, stamp=1.0)
    emitter.emit(None, None, stamp=2.0)
    emitter.close()

    records = [json.loads(line) for line in path.read_text().splitlines()]
    assert len(records) == 4
    assert records[1] == {
        "channel": RADIUS_CHANNEL, "x": 0.075, "y": -0.0375, "z": 3.0, "stamp": 1.0, "detected": True,
    }
    assert records[3]["x"] == -999.0
    assert records[3]["detected"] is False


def test_json_lines_sink_reports_unopenable_path(tmp_path) -> None:
    with pytest.raises(ConfigError):
        JsonLinesSink(tmp_path / "no_such_dir" / "points.jsonl")


def test_images_are_forwarded_unless_empty() -> None:
    sink = RecordingSink()
    emitter = ResultEmitter([sink], clock=lambda: 5.0)

    emitter.emit_image("RawImage", np.zeros((4, 4, 3), dtype=np.uint8))
    emitter.emit_image("RawImage", None)
    emitter.emit_image("RawImage", np.zeros((0, 0, 3), dtype=np.uint8))

    assert len(sink.images) == 1
    assert sink.images[0][0] == "RawImage"
    assert sink.images[0][2] == 5.0
