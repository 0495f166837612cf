"""
Debug windows and threshold trackbars.

OpenCVDisplay opens the HighGUI windows and writes trackbar changes into the
shared ThresholdConfig. HeadlessDisplay does nothing, for runs without a screen.
"""

import cv2

from .config import THRESHOLD_LIMITS

# 'q' and 'Q' end the capture loop
QUIT_KEYS = (ord('q'), ord('Q'))
NO_KEY = -1

CONTROL_WINDOW = "Control"
CAMERA_WINDOW = "Camera"
MASK_WINDOW = "Binarized Image"
CIRCLE_WINDOW = "Circle"
CANNY_WINDOW = "Canny"

TRACKBARS = (
    ("Upper Hue", 'high_h'),
    ("Lower Hue", 'low_h'),
    ("Upper Saturation", 'high_s'),
    ("Lower Saturation", 'low_s'),
    ("Upper Value", 'high_v'),
    ("Lower Value", 'low_v'),
    ("Canny Threshold", 'canny'),
)


def is_quit_key(key):
    return key in QUIT_KEYS


class HeadlessDisplay:
    def show(self, result):
        pass

    def poll_key(self):
        return NO_KEY

    def close(self):
        pass


class OpenCVDisplay:
    """HighGUI windows for raw, mask, edge and annotated images."""

    def __init__(self, thresholds, wait_ms=1):
        """
        Args:
            thresholds: ThresholdConfig the trackbars write into
            wait_ms: input poll timeout in milliseconds
        """
        self.thresholds = thresholds
        self.wait_ms = wait_ms

        for name in (CAMERA_WINDOW, MASK_WINDOW, CONTROL_WINDOW, CIRCLE_WINDOW, CANNY_WINDOW):
            cv2.namedWindow(name, cv2.WINDOW_NORMAL)

        band = thresholds.snapshot()
        for label, field_name in TRACKBARS:
            cv2.createTrackbar(
                label, CONTROL_WINDOW, getattr(band, field_name), THRESHOLD_LIMITS[field_name],
                lambda value, n=field_name: self.thresholds.set(n, value),
            )

    def show(self, result):
        """Show the images of one FrameResult. Missing images are skipped."""
        for window, image in ((CAMERA_WINDOW, result.raw), (MASK_WINDOW, result.mask),
                              (CANNY_WINDOW, result.edges), (CIRCLE_WINDOW, result.annotated)):
            if image is not None and image.size > 0:
                cv2.imshow(window, image)

    def poll_key(self):
        key = cv2.waitKey(self.wait_ms)
        if key == -1:
            return NO_KEY
        return key & 0xFF

    def close(self):
        cv2.destroyAllWindows()
