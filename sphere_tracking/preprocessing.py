"""
Frame Preprocessing

Turns a raw BGR camera frame into a binary mask of pixels that match the
ball colour: undistort, convert to HSV, threshold, clean up, blur.
"""

from dataclasses import dataclass

import cv2
import numpy as np

# 5x5 rectangular structuring element for closing and opening
MORPH_KERNEL = cv2.getStructuringElement(cv2.MORPH_RECT, (5, 5))
BLUR_KERNEL = (5, 5)
BLUR_SIGMA = 2


@dataclass
class PreprocessedFrame:
    """Undistorted colour frame and its cleaned binary mask."""

    undistorted: np.ndarray
    hsv: np.ndarray
    mask: np.ndarray


def is_empty_frame(frame):
    return frame is None or not hasattr(frame, 'size') or frame.size == 0


def undistort_frame(frame, intrinsics):
    """Remove lens distortion using the camera matrix and distortion vector."""
    return cv2.undistort(frame, intrinsics.camera_matrix, intrinsics.dist_coeffs)


def threshold_hsv(hsv, band):
    """
    Keep pixels whose H, S and V all fall inside the band.

    Args:
        hsv: HSV image
        band: ThresholdBand with low/high bounds per channel

    Returns:
        uint8 mask, 255 inside the band and 0 elsewhere
    """
    lower = np.array(band.lower, dtype=np.uint8)
    upper = np.array(band.upper, dtype=np.uint8)
    return cv2.inRange(hsv, lower, upper)


def clean_mask(mask):
    """Closing then opening with a 5x5 rectangle, then a 5x5 Gaussian blur."""
    # Morphological closing (fill small holes in the foreground)
    mask = cv2.dilate(mask, MORPH_KERNEL)
    mask = cv2.erode(mask, MORPH_KERNEL)

    # Morphological opening (remove small objects from the foreground)
    mask = cv2.erode(mask, MORPH_KERNEL)
    mask = cv2.dilate(mask, MORPH_KERNEL)

    # Smooth edges before contour extraction
    return cv2.GaussianBlur(mask, BLUR_KERNEL, BLUR_SIGMA, sigmaY=BLUR_SIGMA)


def preprocess_frame(frame, intrinsics, band):
    """
    Run the full preprocessing chain on one frame.

    Args:
        frame: BGR image from camera
        intrinsics: CameraIntrinsics of the capturing camera
        band: ThresholdBand snapshot for this frame

    Returns:
        PreprocessedFrame, or None if the frame is empty
    """
    if is_empty_frame(frame):
        return None

    undistorted = undistort_frame(frame, intrinsics)
    hsv = cv2.cvtColor(undistorted, cv2.COLOR_BGR2HSV)
    mask = clean_mask(threshold_hsv(hsv, band))
    return PreprocessedFrame(undistorted=undistorted, hsv=hsv, mask=mask)
