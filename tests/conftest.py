from __future__ import annotations

import sys
from pathlib import Path

import cv2
import numpy as np
import pytest


def pytest_configure() -> None:
    root = Path(__file__).resolve().parents[1]
    sys.path.insert(0, str(root))


# BGR orange: hue ~15, full saturation and value
ORANGE = (0, 128, 255)


@pytest.fixture
def camera_matrix() -> np.ndarray:
    return np.array([[800.0, 0.0, 100.0], [0.0, 800.0, 100.0], [0.0, 0.0, 1.0]])


@pytest.fixture
def intrinsics(camera_matrix):
    from sphere_tracking.calibration import CameraIntrinsics

    return CameraIntrinsics(camera_matrix, np.zeros(5))


@pytest.fixture
def calibration_file(tmp_path, intrinsics) -> Path:
    from sphere_tracking.calibration import save_intrinsics

    return save_intrinsics(tmp_path / "ros_calib.yaml", intrinsics)


def circle_mask(size=(200, 200), center=(100, 100), radius=80) -> np.ndarray:
    mask = np.zeros(size, dtype=np.uint8)
    cv2.circle(mask, center, radius, 255, -1)
    return mask


def ball_frame(size=(200, 200), center=(100, 100), radius=80, color=ORANGE) -> np.ndarray:
    frame = np.zeros((size[0], size[1], 3), dtype=np.uint8)
    cv2.circle(frame, center, radius, color, -1)
    return frame


def star_points(center=(100, 100), outer=90, inner=35, points=5) -> np.ndarray:
    pts = []
    for i in range(points * 2):
        r = outer if i % 2 == 0 else inner
        angle = np.pi * i / points - np.pi / 2
        pts.append((center[0] + r * np.cos(angle), center[1] + r * np.sin(angle)))
    return np.round(np.array(pts)).astype(np.int32)
