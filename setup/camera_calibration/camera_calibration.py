"""
Calibrate one camera from chessboard images and write the CM1/D1 document
read by the sphere tracking node.

Usage:
    python camera_calibration.py "calibration_images_cam1/*.jpg" \
        -o ../../config/intrinsic_calibrations/ros_calib.yaml
"""

import argparse
import glob
import sys

import cv2

from sphere_tracking.calibration import (
    board_object_points,
    calibrate_from_points,
    save_intrinsics,
)

CHESSBOARD_SIZE = (7, 10)  # Number of inner corners per chessboard row and column
SQUARE_SIZE = 1.5          # Size of a square, sets the unit of the extrinsics only


def find_corners(images, board_size):
    """Return (image_points, image_size) for every image where the board was found."""
    criteria = (cv2.TERM_CRITERIA_EPS + cv2.TERM_CRITERIA_MAX_ITER, 30, 0.001)
    image_points = []
    image_size = None

    for idx, fname in enumerate(images):
        img = cv2.imread(fname)
        if img is None:
            print(f"Skipped {fname}: not an image")
            continue
        gray = cv2.cvtColor(img, cv2.COLOR_BGR2GRAY)
        image_size = gray.shape[::-1]

        ret, corners = cv2.findChessboardCornersSB(
            gray, board_size, cv2.CALIB_CB_EXHAUSTIVE | cv2.CALIB_CB_ACCURACY)
        if ret:
            corners = cv2.cornerSubPix(gray, corners, (11, 11), (-1, -1), criteria)
            image_points.append(corners)
            print(f"Processed image {idx+1}/{len(images)}: {fname} - Chessboard found")
        else:
            print(f"Processed image {idx+1}/{len(images)}: {fname} - Chessboard NOT found")

    return image_points, image_size


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Calibrate a camera from chessboard images.")
    parser.add_argument("images", help="Glob pattern of calibration images.")
    parser.add_argument("-o", "--output", default="ros_calib.yaml",
                        help="Output calibration document (.yaml or .xml).")
    parser.add_argument("--board", type=int, nargs=2, default=list(CHESSBOARD_SIZE),
                        metavar=("COLS", "ROWS"), help="Inner corners per row and column.")
    parser.add_argument("--square-size", type=float, default=SQUARE_SIZE,
                        help="Edge length of one chessboard square.")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    images = sorted(glob.glob(args.images))
    if not images:
        print(f"No calibration images found at {args.images}")
        return 1

    print(f"Found {len(images)} calibration images")
    board_size = tuple(args.board)
    image_points, image_size = find_corners(images, board_size)
    if not image_points:
        print("No chessboard patterns were detected in any images.")
        return 1

    objp = board_object_points(board_size, args.square_size)
    print("Calibrating camera...")
    rms, intrinsics = calibrate_from_points([objp] * len(image_points), image_points, image_size)

    save_intrinsics(args.output, intrinsics)
    print(f"Calibration complete! RMS re-projection error: {rms}")
    print(f"Camera matrix:\n{intrinsics.camera_matrix}")
    print(f"Distortion: {intrinsics.dist_coeffs}")
    print(f"Results saved to {args.output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
