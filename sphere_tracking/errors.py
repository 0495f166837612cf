"""
Error types for the sphere tracking node.

Fatal errors stop the node at startup. Capture errors only skip a cycle.
A frame without a ball is not an error at all.
"""


class SphereTrackingError(Exception):
    """Base class for all sphere tracking errors."""


class FatalStartupError(SphereTrackingError):
    """The node cannot start and must exit with a non-zero status."""


class ConfigError(FatalStartupError):
    """Invalid or unreadable tracker configuration."""


class CalibrationError(FatalStartupError):
    """Calibration file missing, unreadable or malformed."""


class CameraConnectionError(FatalStartupError):
    """Camera could not be found or opened."""


class CaptureError(SphereTrackingError):
    """A single frame could not be retrieved."""
