from __future__ import annotations

import cv2
import numpy as np
import pytest

from sphere_tracking.camera import OpenCVCamera, parse_source
from sphere_tracking.errors import CameraConnectionError, CaptureError


class FakeCapture:
    def __init__(self, opened=True, frames=()):
        self.opened = opened
        self.frames = list(frames)
        self.released = False

    def isOpened(self):
        return self.opened

    def get(self, prop):
        return 0.0

    def read(self):
        if not self.frames:
            return False, None
        return True, self.frames.pop(0)

    def release(self):
        self.released = True


class CaptureFactory:
    def __init__(self, captures):
        self.captures = list(captures)
        self.calls = []

    def __call__(self, *args):
        self.calls.append(args)
        return self.captures.pop(0)


def test_connect_retries_until_camera_appears() -> None:
    closed = [FakeCapture(opened=False), FakeCapture(opened=False)]
    factory = CaptureFactory(closed + [FakeCapture()])
    sleeps = []

    camera = OpenCVCamera(0, connect_attempts=10, retry_delay=2.0,
                          capture_factory=factory, sleep=sleeps.append)
    camera.connect()

    assert sleeps == [2.0, 2.0]
    assert all(c.released for c in closed)
    assert camera.cap is not None


def test_connect_gives_up_after_fixed_attempts() -> None:
    factory = CaptureFactory([FakeCapture(opened=False) for _ in range(3)])
    sleeps = []
    camera = OpenCVCamera(0, connect_attempts=3, capture_factory=factory, sleep=sleeps.append)

    with pytest.raises(CameraConnectionError):
        camera.connect()
    assert len(factory.calls) == 3
    assert len(sleeps) == 2


def test_connect_stops_retrying_when_asked() -> None:
    factory = CaptureFactory([FakeCapture(opened=False) for _ in range(5)])
    camera = OpenCVCamera(0, connect_attempts=5, capture_factory=factory, sleep=lambda s: None)

    with pytest.raises(CameraConnectionError):
        camera.connect(should_continue=lambda: False)
    assert len(factory.calls) == 1


def test_backend_name_is_mapped_to_opencv_constant() -> None:
    factory = CaptureFactory([FakeCapture()])
    OpenCVCamera(1, backend="v4l2", capture_factory=factory).connect()
    assert factory.calls == [(1, cv2.CAP_V4L2)]

    with pytest.raises(CameraConnectionError):
        OpenCVCamera(1, backend="not-a-backend", capture_factory=CaptureFactory([])).connect()


def test_retrieve_returns_frames_and_raises_on_failure() -> None:
    frame = np.zeros((4, 4, 3), dtype=np.uint8)
    camera = OpenCVCamera(0, capture_factory=CaptureFactory([FakeCapture(frames=[frame])]))

    with pytest.raises(CaptureError):
        camera.retrieve()

    with camera:
        assert camera.retrieve() is frame
        with pytest.raises(CaptureError):
            camera.retrieve()
    assert camera.cap is None


def test_parse_source() -> None:
    assert parse_source("2") == 2
    assert parse_source(0) == 0
    assert parse_source("clip.mp4") == "clip.mp4"
