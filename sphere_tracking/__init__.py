"""
Sphere Tracking

Contains:
- calibration: intrinsic matrix and distortion loading (CM1/D1 documents)
- preprocessing: undistortion, HSV thresholding and mask cleanup
- shape_classifier: contour-based circle detection
- distance: radius-based depth and 3D back-projection
- emitter: timestamped point channels with "not detected" sentinels
- pipeline: per-frame processing and the capture loop
"""

from .calibration import CameraIntrinsics, load_intrinsics, save_intrinsics
from .config import ThresholdBand, ThresholdConfig, TrackerConfig, load_config
from .distance import DistanceEstimator, back_project, estimate_distance
from .emitter import PNP_SENTINEL, RADIUS_SENTINEL, ResultEmitter
from .errors import CalibrationError, CaptureError, FatalStartupError
from .pipeline import BallLocalizer, PipelineContext
from .preprocessing import preprocess_frame
from .shape_classifier import HoughCircleClassifier, ShapeClassifier

__all__ = [
    'CameraIntrinsics',
    'load_intrinsics',
    'save_intrinsics',
    'ThresholdBand',
    'ThresholdConfig',
    'TrackerConfig',
    'load_config',
    'DistanceEstimator',
    'back_project',
    'estimate_distance',
    'PNP_SENTINEL',
    'RADIUS_SENTINEL',
    'ResultEmitter',
    'CalibrationError',
    'CaptureError',
    'FatalStartupError',
    'BallLocalizer',
    'PipelineContext',
    'preprocess_frame',
    'HoughCircleClassifier',
    'ShapeClassifier',
]
