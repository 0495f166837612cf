"""
Camera capture through OpenCV.

The pipeline only needs retrieve() and release(), so any object with those
methods can stand in for a real camera.
"""

import logging
import platform
import time

import cv2

from .errors import CameraConnectionError, CaptureError

logger = logging.getLogger(__name__)


def suggest_backend():
    system = platform.system().lower()
    if system == "darwin":
        return "avfoundation"
    if system == "windows":
        return "dshow"
    if system == "linux":
        return "v4l2"
    return None


def parse_source(source):
    """Camera indices may arrive as strings from the CLI or YAML."""
    if isinstance(source, str) and source.strip().isdigit():
        return int(source.strip())
    return source


class OpenCVCamera:
    """Single camera opened with cv2.VideoCapture (device index, file or URL)."""

    def __init__(self, source=0, backend=None, connect_attempts=10, retry_delay=2.0,
                 capture_factory=cv2.VideoCapture, sleep=time.sleep):
        """
        Args:
            source: device index, video file path or stream URL
            backend: OpenCV backend name, e.g. avfoundation, dshow, v4l2
            connect_attempts: how many times to try opening before giving up
            retry_delay: seconds between attempts
            capture_factory: callable building the capture object
            sleep: callable used to wait between attempts
        """
        self.source = parse_source(source)
        self.backend = backend
        self.connect_attempts = max(1, int(connect_attempts))
        self.retry_delay = retry_delay
        self._capture_factory = capture_factory
        self._sleep = sleep
        self.cap = None

    def _open(self):
        if self.backend is None:
            return self._capture_factory(self.source)
        backend_attr = f"CAP_{self.backend.strip().upper()}"
        if not hasattr(cv2, backend_attr):
            raise CameraConnectionError(f"Unknown backend '{self.backend}'")
        return self._capture_factory(self.source, getattr(cv2, backend_attr))

    def connect(self, should_continue=None):
        """
        Open the camera, retrying a fixed number of times.

        Args:
            should_continue: optional callable; returning False aborts the retries

        Raises:
            CameraConnectionError: if the camera never opens
        """
        for attempt in range(1, self.connect_attempts + 1):
            cap = self._open()
            if cap.isOpened():
                self.cap = cap
                width = cap.get(cv2.CAP_PROP_FRAME_WIDTH)
                height = cap.get(cv2.CAP_PROP_FRAME_HEIGHT)
                fps = cap.get(cv2.CAP_PROP_FPS)
                logger.info("Opened camera %s (backend=%s) at %dx%d, %.1f FPS",
                            self.source, self.backend or "auto", int(width), int(height), fps)
                return self

            cap.release()
            logger.warning("Camera %s not available (attempt %d/%d)",
                           self.source, attempt, self.connect_attempts)
            if attempt == self.connect_attempts:
                break
            if should_continue is not None and not should_continue():
                break
            self._sleep(self.retry_delay)

        raise CameraConnectionError(
            f"Cannot open camera {self.source} (backend={self.backend or 'auto'}) "
            f"after {attempt} attempt(s)")

    def retrieve(self):
        """
        Block until the next frame arrives.

        Raises:
            CaptureError: if the camera is not connected or the read fails
        """
        if self.cap is None:
            raise CaptureError("Camera is not connected")
        ok, frame = self.cap.read()
        if not ok or frame is None:
            raise CaptureError(f"Failed to retrieve frame from camera {self.source}")
        return frame

    def release(self):
        if self.cap is not None:
            self.cap.release()
            self.cap = None

    def __enter__(self):
        return self.connect()

    def __exit__(self, *exc):
        self.release()
        return False
