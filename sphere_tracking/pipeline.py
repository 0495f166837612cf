"""
Ball Localization Pipeline

Per frame: preprocess -> classify -> estimate -> emit. The capture loop runs
one frame at a time at a fixed rate and stops when the liveness flag clears
or a quit key is pressed.
"""

import logging
import threading
import time
from dataclasses import dataclass

import numpy as np

from .annotation import draw_detection
from .config import ThresholdConfig
from .display import HeadlessDisplay, is_quit_key
from .distance import BallEstimate, DistanceEstimator
from .emitter import (
    DETECTION_IMAGE_CHANNEL,
    RAW_IMAGE_CHANNEL,
    Emission,
    ResultEmitter,
)
from .errors import CaptureError
from .preprocessing import preprocess_frame
from .shape_classifier import CircleCandidate, make_classifier

logger = logging.getLogger(__name__)


@dataclass
class PipelineContext:
    """State built once at startup and shared by every stage."""

    intrinsics: object
    thresholds: ThresholdConfig
    classifier: object
    estimator: DistanceEstimator
    emitter: ResultEmitter

    @classmethod
    def from_config(cls, config, intrinsics, sinks=None):
        """
        Args:
            config: TrackerConfig
            intrinsics: CameraIntrinsics of the capturing camera
            sinks: list of emitter sinks
        """
        return cls(
            intrinsics=intrinsics,
            thresholds=ThresholdConfig(config.thresholds),
            classifier=make_classifier(config.detector),
            estimator=DistanceEstimator(intrinsics, config.ball_diameter),
            emitter=ResultEmitter(sinks),
        )


@dataclass
class FrameResult:
    """Everything produced for one frame. Nothing is kept between frames."""

    stamp: float
    raw: np.ndarray = None
    undistorted: np.ndarray = None
    mask: np.ndarray = None
    edges: np.ndarray = None
    annotated: np.ndarray = None
    candidate: CircleCandidate = None
    estimate: BallEstimate = None
    emission: Emission = None
    skipped: bool = False

    @property
    def found(self):
        return self.candidate is not None


class LoopRate:
    """Sleeps the remainder of each period to hold a target frequency."""

    def __init__(self, hz, clock=time.monotonic, sleep=time.sleep):
        self.period = 1.0 / hz
        self._clock = clock
        self._sleep = sleep
        self._next = clock() + self.period

    def sleep(self):
        now = self._clock()
        remaining = self._next - now
        if remaining > 0:
            self._sleep(remaining)
            self._next += self.period
        else:
            # Fell behind; restart the schedule from now
            self._next = now + self.period


class BallLocalizer:
    """Runs the detection pipeline on frames from an injected camera."""

    def __init__(self, context, loop_rate_hz=15.0, clock=time.time):
        self.context = context
        self.loop_rate_hz = loop_rate_hz
        self.clock = clock
        self.running = threading.Event()
        self.frames_processed = 0

    def process_frame(self, frame):
        """
        Detect and localize the ball in one frame and emit the result.

        Args:
            frame: BGR image, may be None or empty

        Returns:
            FrameResult; skipped is True when the frame was empty
        """
        ctx = self.context
        stamp = self.clock()
        result = FrameResult(stamp=stamp, raw=frame)

        band = ctx.thresholds.snapshot()
        pre = preprocess_frame(frame, ctx.intrinsics, band)
        if pre is None:
            logger.warning("Empty frame, skipping detection")
            result.skipped = True
            result.emission = ctx.emitter.emit(None, None, stamp)
            return result

        ctx.emitter.emit_image(RAW_IMAGE_CHANNEL, frame, stamp)

        classification = ctx.classifier.classify(pre.mask, band.canny)
        candidate = classification.selected
        estimate = ctx.estimator.estimate(candidate) if candidate is not None else None

        result.undistorted = pre.undistorted
        result.mask = pre.mask
        result.edges = classification.edges
        result.candidate = candidate
        result.estimate = estimate
        result.emission = ctx.emitter.emit(candidate, estimate, stamp)
        result.annotated = draw_detection(pre.undistorted, candidate, estimate)
        ctx.emitter.emit_image(DETECTION_IMAGE_CHANNEL, result.annotated, stamp)

        self.frames_processed += 1
        return result

    def stop(self):
        self.running.clear()

    def run(self, camera, display=None, rate=None):
        """
        Capture loop. Returns when stop() is called or a quit key is pressed.

        Args:
            camera: object with retrieve() returning a BGR frame
            display: object with show(result) and poll_key(), or None
            rate: LoopRate, defaults to loop_rate_hz
        """
        display = display if display is not None else HeadlessDisplay()
        rate = rate if rate is not None else LoopRate(self.loop_rate_hz)
        self.running.set()

        while self.running.is_set():
            t0 = time.perf_counter()
            try:
                frame = camera.retrieve()
            except CaptureError as e:
                logger.warning("Capture error: %s", e)
                continue

            result = self.process_frame(frame)
            display.show(result)

            key = display.poll_key()
            if is_quit_key(key):
                logger.info("Quit key pressed")
                break

            rate.sleep()
            logger.debug("Cycle time: %.4f s", time.perf_counter() - t0)

        self.running.clear()
        logger.info("Capture loop stopped after %d frames", self.frames_processed)
