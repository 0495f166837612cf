"""
Result Emission

Every frame produces two timestamped points, found or not:
- SphereCentroid: radius-method 3D position, (-999, -999, -999) when absent
- SphereCentroidPnP: reserved for a point-correspondence estimate; currently
  carries the pixel centroid and radius (u, v, r), (0, 0, 0) when absent

The sentinels mark "no ball this frame" so consumers never see a stale
position. Sinks decide where the points go.
"""

import json
import logging
import time
from dataclasses import asdict, dataclass

from .errors import ConfigError

logger = logging.getLogger(__name__)

RADIUS_CHANNEL = "SphereCentroid"
PNP_CHANNEL = "SphereCentroidPnP"
RAW_IMAGE_CHANNEL = "RawImage"
DETECTION_IMAGE_CHANNEL = "BallDetection"

RADIUS_SENTINEL = (-999.0, -999.0, -999.0)
PNP_SENTINEL = (0.0, 0.0, 0.0)


@dataclass(frozen=True)
class StampedPoint:
    channel: str
    x: float
    y: float
    z: float
    stamp: float
    detected: bool

    @property
    def point(self):
        return (self.x, self.y, self.z)

    def to_dict(self):
        return asdict(self)


@dataclass(frozen=True)
class Emission:
    """Both channels for one frame."""

    radius: StampedPoint
    pnp: StampedPoint

    @property
    def detected(self):
        return self.radius.detected


class Sink:
    """Destination for emitted points and debug images."""

    def publish_point(self, stamped):
        raise NotImplementedError

    def publish_image(self, channel, image, stamp):
        pass

    def close(self):
        pass


class LoggingSink(Sink):
    """Writes every point to the log."""

    def __init__(self, level=logging.INFO):
        self.level = level

    def publish_point(self, stamped):
        if stamped.detected:
            logger.log(self.level, "%s: (%.4f, %.4f, %.4f) @ %.3f",
                       stamped.channel, stamped.x, stamped.y, stamped.z, stamped.stamp)
        else:
            logger.log(self.level, "%s: not detected @ %.3f", stamped.channel, stamped.stamp)


class JsonLinesSink(Sink):
    """Appends one JSON object per point to a file."""

    def __init__(self, path):
        self.path = path
        try:
            self._file = open(path, 'a')
        except OSError as e:
            raise ConfigError(f"Cannot open JSON-lines output {path}: {e}") from e

    def publish_point(self, stamped):
        self._file.write(json.dumps(stamped.to_dict()) + "\n")
        self._file.flush()

    def close(self):
        if not self._file.closed:
            self._file.close()


class RecordingSink(Sink):
    """Keeps everything in memory."""

    def __init__(self):
        self.points = []
        self.images = []

    def publish_point(self, stamped):
        self.points.append(stamped)

    def publish_image(self, channel, image, stamp):
        self.images.append((channel, image, stamp))

    def channel(self, name):
        return [p for p in self.points if p.channel == name]


class ResultEmitter:
    """Packages detections into stamped points and hands them to sinks."""

    def __init__(self, sinks=None, clock=time.time):
        self.sinks = list(sinks) if sinks else []
        self.clock = clock

    def add_sink(self, sink):
        self.sinks.append(sink)

    def package(self, candidate, estimate, stamp=None):
        """
        Build the two channel points for one frame.

        Args:
            candidate: selected CircleCandidate or None
            estimate: BallEstimate or None
            stamp: timestamp, defaults to the emitter clock

        Returns:
            Emission, with sentinels on any channel that has no data
        """
        if stamp is None:
            stamp = self.clock()

        # Start from the sentinels on every frame
        radius_point = RADIUS_SENTINEL
        pnp_point = PNP_SENTINEL
        radius_found = False
        pnp_found = False

        if candidate is not None:
            pnp_point = (float(candidate.center[0]), float(candidate.center[1]), float(candidate.radius))
            pnp_found = True
            if estimate is not None:
                radius_point = estimate.position
                radius_found = True

        return Emission(
            radius=StampedPoint(RADIUS_CHANNEL, *radius_point, stamp=stamp, detected=radius_found),
            pnp=StampedPoint(PNP_CHANNEL, *pnp_point, stamp=stamp, detected=pnp_found),
        )

    def emit(self, candidate, estimate, stamp=None):
        emission = self.package(candidate, estimate, stamp)
        for sink in self.sinks:
            sink.publish_point(emission.pnp)
            sink.publish_point(emission.radius)
        return emission

    def emit_image(self, channel, image, stamp=None):
        if image is None or image.size == 0:
            return
        if stamp is None:
            stamp = self.clock()
        for sink in self.sinks:
            sink.publish_image(channel, image, stamp)

    def close(self):
        for sink in self.sinks:
            sink.close()
