"""
Camera Calibration Loading

Reads the intrinsic matrix and distortion coefficients written by the
calibration step. The document is an OpenCV FileStorage file (YAML or XML)
with one "CM<n>" / "D<n>" pair per camera.
"""

import logging
import pickle
from dataclasses import dataclass, field
from pathlib import Path

import cv2
import numpy as np

from .errors import CalibrationError

logger = logging.getLogger(__name__)

MATRIX_KEY = "CM{}"
DISTORTION_KEY = "D{}"


@dataclass(frozen=True, eq=False)
class CameraIntrinsics:
    """Intrinsic matrix and distortion of one camera. Read-only after load."""

    camera_matrix: np.ndarray
    dist_coeffs: np.ndarray
    inverse_matrix: np.ndarray = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        K = np.array(self.camera_matrix, dtype=np.float64).reshape(3, 3)
        dist = np.array(self.dist_coeffs, dtype=np.float64).ravel()
        try:
            K_inv = np.linalg.inv(K)
        except np.linalg.LinAlgError as e:
            raise CalibrationError(f"Camera matrix is singular:\n{K}") from e

        for arr in (K, dist, K_inv):
            arr.setflags(write=False)
        object.__setattr__(self, "camera_matrix", K)
        object.__setattr__(self, "dist_coeffs", dist)
        object.__setattr__(self, "inverse_matrix", K_inv)

    @property
    def fx(self):
        return float(self.camera_matrix[0, 0])

    @property
    def fy(self):
        return float(self.camera_matrix[1, 1])

    @property
    def principal_point(self):
        return float(self.camera_matrix[0, 2]), float(self.camera_matrix[1, 2])


def _open_storage(path, flags):
    try:
        fs = cv2.FileStorage(str(path), flags)
    except cv2.error as e:
        raise CalibrationError(f"Failed to open calibration document {path}: {e}") from e
    if not fs.isOpened():
        raise CalibrationError(f"Failed to open calibration document {path}")
    return fs


def _read_matrix(fs, key):
    node = fs.getNode(key)
    if node.empty():
        return None
    mat = node.mat()
    if mat is None:
        return None
    return np.asarray(mat, dtype=np.float64)


def _load_pickle(path):
    """Load the pickle layout produced by camera_calibration.py."""
    with open(path, "rb") as f:
        data = pickle.load(f)
    try:
        return [CameraIntrinsics(data["camera_matrix"], data["distortion_coefficients"])]
    except KeyError as e:
        raise CalibrationError(f"{path} has no {e} entry") from e


def load_all_intrinsics(path):
    """
    Load every camera stored in a calibration document.

    Args:
        path: FileStorage document (.yaml/.yml/.xml) or calibration_data.pkl

    Returns:
        list of CameraIntrinsics, camera 1 first

    Raises:
        CalibrationError: if the file cannot be opened or holds no "CM1"/"D1"
    """
    path = Path(path)
    if not path.is_file():
        raise CalibrationError(f"Calibration file not found: {path}")

    if path.suffix == ".pkl":
        cameras = _load_pickle(path)
    else:
        fs = _open_storage(path, cv2.FILE_STORAGE_READ)
        cameras = []
        try:
            index = 1
            while True:
                K = _read_matrix(fs, MATRIX_KEY.format(index))
                dist = _read_matrix(fs, DISTORTION_KEY.format(index))
                if K is None or dist is None:
                    break
                if K.size != 9:
                    raise CalibrationError(
                        f"{MATRIX_KEY.format(index)} in {path} must be 3x3, got shape {K.shape}")
                cameras.append(CameraIntrinsics(K, dist))
                index += 1
        finally:
            fs.release()

    if not cameras:
        raise CalibrationError(f"{path} contains no CM1/D1 entries")

    for i, cam in enumerate(cameras, start=1):
        logger.info("Camera %d matrix:\n%s", i, cam.camera_matrix)
        logger.info("Camera %d distortion: %s", i, cam.dist_coeffs)
    return cameras


def load_intrinsics(path, camera=1):
    """Load the intrinsics of one camera (1-based) from a calibration document."""
    cameras = load_all_intrinsics(path)
    if not 1 <= camera <= len(cameras):
        raise CalibrationError(f"Camera {camera} not present in {path} ({len(cameras)} stored)")
    return cameras[camera - 1]


def save_intrinsics(path, *cameras):
    """
    Write cameras to a FileStorage document as CM1/D1, CM2/D2, ...

    Args:
        path: output file, format chosen from the extension by OpenCV
        cameras: CameraIntrinsics in camera order
    """
    if not cameras:
        raise ValueError("save_intrinsics needs at least one camera")
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fs = _open_storage(path, cv2.FILE_STORAGE_WRITE)
    try:
        for index, cam in enumerate(cameras, start=1):
            fs.write(MATRIX_KEY.format(index), np.array(cam.camera_matrix))
            fs.write(DISTORTION_KEY.format(index), np.array(cam.dist_coeffs).reshape(1, -1))
    finally:
        fs.release()
    logger.info("Wrote %d camera(s) to %s", len(cameras), path)
    return path


def board_object_points(board_size, square_size=1.0):
    """
    Corner coordinates of a flat chessboard: (0,0,0), (1,0,0), ... scaled by square_size.

    Args:
        board_size: (columns, rows) of inner corners
        square_size: edge length of one square in the output unit
    """
    cols, rows = board_size
    objp = np.zeros((cols * rows, 3), np.float32)
    objp[:, :2] = np.mgrid[0:cols, 0:rows].T.reshape(-1, 2)
    return objp * square_size


def calibrate_from_points(object_points, image_points, image_size):
    """
    Calibrate one camera from matched board corners.

    Args:
        object_points: list of (N, 3) board coordinates, one per view
        image_points: list of (N, 2) detected corners, one per view
        image_size: (width, height) of the calibration images

    Returns:
        (rms_error, CameraIntrinsics)
    """
    if len(object_points) != len(image_points) or not object_points:
        raise CalibrationError("Need the same non-zero number of object and image point sets")

    obj = [np.asarray(p, dtype=np.float32).reshape(-1, 3) for p in object_points]
    img = [np.asarray(p, dtype=np.float32).reshape(-1, 1, 2) for p in image_points]

    rms, mtx, dist, _rvecs, _tvecs = cv2.calibrateCamera(obj, img, tuple(image_size), None, None)
    logger.info("Calibration RMS re-projection error: %.4f px", rms)
    return rms, CameraIntrinsics(mtx, dist)
