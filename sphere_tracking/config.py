"""
Tracker Configuration

Static settings come from a YAML file (config/tracker_config.yaml).
HSV thresholds and the Canny value also live in a ThresholdConfig that the
trackbars write to while the pipeline is running.
"""

import threading
from dataclasses import dataclass, field, fields, replace
from pathlib import Path

import yaml

from .errors import ConfigError

# Defaults tuned for the orange ball under lab lighting
DEFAULT_THRESHOLDS = {
    'low_h': 0, 'high_h': 179,
    'low_s': 101, 'high_s': 255,
    'low_v': 37, 'high_v': 255,
    'canny': 200,
}

# Trackbar upper limits (OpenCV hue is 0-179)
THRESHOLD_LIMITS = {
    'low_h': 179, 'high_h': 179,
    'low_s': 255, 'high_s': 255,
    'low_v': 255, 'high_v': 255,
    'canny': 200,
}

SELECTION_POLICIES = ('last', 'largest')
DETECTION_METHODS = ('polygon', 'hough')


@dataclass(frozen=True)
class ThresholdBand:
    """Immutable snapshot of the HSV band and Canny threshold for one frame."""

    low_h: int = DEFAULT_THRESHOLDS['low_h']
    high_h: int = DEFAULT_THRESHOLDS['high_h']
    low_s: int = DEFAULT_THRESHOLDS['low_s']
    high_s: int = DEFAULT_THRESHOLDS['high_s']
    low_v: int = DEFAULT_THRESHOLDS['low_v']
    high_v: int = DEFAULT_THRESHOLDS['high_v']
    canny: int = DEFAULT_THRESHOLDS['canny']

    @property
    def lower(self):
        return (self.low_h, self.low_s, self.low_v)

    @property
    def upper(self):
        return (self.high_h, self.high_s, self.high_v)


class ThresholdConfig:
    """
    Live threshold settings shared with the control surface.

    Written rarely (trackbar callbacks), read once per frame through
    snapshot(). A lock keeps each snapshot consistent.
    """

    def __init__(self, band=None):
        self._lock = threading.Lock()
        self._band = band if band is not None else ThresholdBand()

    def snapshot(self):
        with self._lock:
            return self._band

    def set(self, name, value):
        """Update one threshold by field name, clamped to its trackbar range."""
        if name not in THRESHOLD_LIMITS:
            raise KeyError(f"Unknown threshold '{name}'")
        value = min(max(int(value), 0), THRESHOLD_LIMITS[name])
        with self._lock:
            self._band = replace(self._band, **{name: value})

    def set_hsv(self, lower, upper):
        """Update the whole HSV band at once."""
        low_h, low_s, low_v = (int(v) for v in lower)
        high_h, high_s, high_v = (int(v) for v in upper)
        with self._lock:
            self._band = replace(self._band, low_h=low_h, low_s=low_s, low_v=low_v,
                                 high_h=high_h, high_s=high_s, high_v=high_v)


@dataclass
class CameraConfig:
    source: object = 0
    backend: str = None
    connect_attempts: int = 10
    connect_retry_delay_s: float = 2.0


@dataclass
class HoughConfig:
    accumulator: int = 150
    min_radius: int = 150
    max_radius: int = 300


@dataclass
class DetectorConfig:
    method: str = 'polygon'
    selection: str = 'last'
    min_area: float = 1000.0
    epsilon_ratio: float = 0.02
    min_vertices: int = 6
    aspect_tolerance: float = 0.2
    area_tolerance: float = 0.2
    hough: HoughConfig = field(default_factory=HoughConfig)


@dataclass
class OutputConfig:
    jsonl: str = None
    log_points: bool = True


@dataclass
class TrackerConfig:
    """Everything the node reads once at startup."""

    calibration_file: str = 'intrinsic_calibrations/ros_calib.yaml'
    ball_diameter: float = 0.04
    loop_rate_hz: float = 15.0
    camera: CameraConfig = field(default_factory=CameraConfig)
    thresholds: ThresholdBand = field(default_factory=ThresholdBand)
    detector: DetectorConfig = field(default_factory=DetectorConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    display_enabled: bool = True
    base_dir: Path = field(default_factory=Path.cwd)

    def resolve(self, path):
        """Resolve a path from the config relative to the config file."""
        if path is None:
            return None
        path = Path(path)
        return path if path.is_absolute() else self.base_dir / path

    def validate(self):
        if not self.ball_diameter > 0:
            raise ConfigError(f"ball_diameter must be positive, got {self.ball_diameter}")
        if not self.loop_rate_hz > 0:
            raise ConfigError(f"loop_rate_hz must be positive, got {self.loop_rate_hz}")
        if self.detector.selection not in SELECTION_POLICIES:
            raise ConfigError(
                f"detector.selection must be one of {SELECTION_POLICIES}, got '{self.detector.selection}'")
        if self.detector.method not in DETECTION_METHODS:
            raise ConfigError(
                f"detector.method must be one of {DETECTION_METHODS}, got '{self.detector.method}'")
        if self.camera.connect_attempts < 1:
            raise ConfigError("camera.connect_attempts must be at least 1")
        band = self.thresholds
        for name, limit in THRESHOLD_LIMITS.items():
            value = getattr(band, name)
            if not 0 <= value <= limit:
                raise ConfigError(f"thresholds.{name} must be within 0..{limit}, got {value}")
        for low, high in (('low_h', 'high_h'), ('low_s', 'high_s'), ('low_v', 'high_v')):
            if getattr(band, low) > getattr(band, high):
                raise ConfigError(f"thresholds.{low} is above thresholds.{high}")
        return self


def _check_bool(value, name):
    # YAML true/false only, quoted strings are rejected
    if not isinstance(value, bool):
        raise ConfigError(f"{name} must be true or false, got {value!r}")
    return value


def _build(cls, section, name):
    """Build a dataclass from a YAML mapping, ignoring unknown keys."""
    if section is None:
        return cls()
    if not isinstance(section, dict):
        raise ConfigError(f"'{name}' must be a mapping")
    known = {f.name: f for f in fields(cls)}
    kwargs = {}
    for key, value in section.items():
        if key not in known:
            continue
        ftype = known[key].type
        try:
            if ftype is bool:
                kwargs[key] = _check_bool(value, f"{name}.{key}")
            elif ftype in (int, float):
                kwargs[key] = ftype(value)
            else:
                kwargs[key] = value
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid value for {name}.{key}: {value!r}") from e
    return cls(**kwargs)


def config_from_dict(data, base_dir=None):
    """Build a validated TrackerConfig from an already-parsed mapping."""
    data = data or {}
    if not isinstance(data, dict):
        raise ConfigError("Top level of the tracker config must be a mapping")

    detector_data = data.get('detector') or {}
    if not isinstance(detector_data, dict):
        raise ConfigError("'detector' must be a mapping")
    detector_data = dict(detector_data)
    hough = _build(HoughConfig, detector_data.pop('hough', None), 'detector.hough')
    detector = _build(DetectorConfig, detector_data, 'detector')
    detector.hough = hough

    top = _build(TrackerConfig, {
        k: data[k] for k in ('calibration_file', 'ball_diameter', 'loop_rate_hz') if k in data
    }, 'tracker')
    top.camera = _build(CameraConfig, data.get('camera'), 'camera')
    top.thresholds = _build(ThresholdBand, data.get('thresholds'), 'thresholds')
    top.detector = detector
    top.output = _build(OutputConfig, data.get('output'), 'output')
    display = data.get('display') or {}
    if not isinstance(display, dict):
        raise ConfigError("'display' must be a mapping")
    top.display_enabled = _check_bool(display.get('enabled', True), 'display.enabled')
    if base_dir is not None:
        top.base_dir = Path(base_dir)
    return top.validate()


def load_config(config_path):
    """
    Load tracker configuration from YAML.

    Args:
        config_path: Path to tracker_config.yaml

    Returns:
        TrackerConfig with relative paths anchored at the config directory

    Raises:
        ConfigError: if the file is missing, not YAML or has invalid values
    """
    config_path = Path(config_path)
    try:
        with open(config_path, 'r') as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"Cannot read config {config_path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e

    return config_from_dict(data, base_dir=config_path.parent)
