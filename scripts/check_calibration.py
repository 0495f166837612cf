"""
Check that the calibration document loads and its matrix inverts cleanly.
Does NOT require a camera to be connected.
"""

import sys
from pathlib import Path

import numpy as np

from sphere_tracking.calibration import load_all_intrinsics
from sphere_tracking.errors import CalibrationError


def main():
    if len(sys.argv) > 1:
        calib_path = Path(sys.argv[1])
    else:
        calib_path = Path(__file__).parent.parent / "config" / "intrinsic_calibrations" / "ros_calib.yaml"

    print(f"Testing calibration loading: {calib_path}\n")

    try:
        cameras = load_all_intrinsics(calib_path)
    except CalibrationError as e:
        print(f"ERROR: {e}")
        return 1

    for i, cam in enumerate(cameras, start=1):
        residual = np.abs(cam.camera_matrix @ cam.inverse_matrix - np.eye(3)).max()
        print(f"Camera {i}:")
        print(f"  Camera matrix:\n{cam.camera_matrix}")
        print(f"  Distortion: {cam.dist_coeffs}")
        print(f"  fx = {cam.fx:.2f}, fy = {cam.fy:.2f}, principal point = {cam.principal_point}")
        print(f"  max |K * K^-1 - I| = {residual:.2e}")

    print("\nCalibration loading test complete.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
