"""
Sphere tracking node.

Usage:
    sphere-tracker --config config/tracker_config.yaml
    sphere-tracker --source video.mp4 --headless --jsonl points.jsonl

Controls (display mode):
    trackbars in "Control" - HSV band and Canny threshold
    'q' / 'Q'             - Quit
"""

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path

from .calibration import load_intrinsics
from .camera import OpenCVCamera, suggest_backend
from .config import SELECTION_POLICIES, load_config
from .display import HeadlessDisplay, OpenCVDisplay
from .emitter import JsonLinesSink, LoggingSink
from .errors import ConfigError, FatalStartupError
from .pipeline import BallLocalizer, PipelineContext

logger = logging.getLogger("sphere_tracking")

DEFAULT_CONFIG = Path(__file__).parent.parent / "config" / "tracker_config.yaml"


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Detect a coloured ball and estimate its 3D position.")
    parser.add_argument(
        "-c", "--config", type=Path, default=None,
        help=f"Tracker config YAML (default: {DEFAULT_CONFIG}, only present in a source checkout)."
    )
    parser.add_argument(
        "--calibration", type=Path, default=None,
        help="Calibration document with CM1/D1, overrides the config."
    )
    parser.add_argument(
        "-d", "--ball-diameter", type=float, default=None,
        help="Real ball diameter in the unit wanted for the output."
    )
    parser.add_argument(
        "-s", "--source", type=str, default=None,
        help="Camera index, video file or stream URL."
    )
    parser.add_argument(
        "-b", "--backend", type=str, default=None,
        help="OpenCV capture backend name, e.g. avfoundation, dshow, v4l2."
    )
    parser.add_argument(
        "--selection", choices=SELECTION_POLICIES, default=None,
        help="Which qualifying contour to report when several pass."
    )
    parser.add_argument(
        "--jsonl", type=Path, default=None,
        help="Append emitted points to this JSON-lines file."
    )
    parser.add_argument(
        "--headless", action="store_true",
        help="Run without windows or trackbars."
    )
    parser.add_argument(
        "--suggest-backend", action="store_true",
        help="Print the likely backend for this OS and exit."
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Log per-cycle timing."
    )
    return parser.parse_args(argv)


def build_config(args):
    """Load the YAML config and apply command line overrides."""
    if args.config is not None:
        config = load_config(args.config)
    elif DEFAULT_CONFIG.is_file():
        config = load_config(DEFAULT_CONFIG)
    else:
        # The repo config is not installed with the package
        raise ConfigError(f"No config at {DEFAULT_CONFIG}, pass --config")

    if args.calibration is not None:
        config.calibration_file = str(args.calibration.resolve())
    if args.ball_diameter is not None:
        config.ball_diameter = args.ball_diameter
    if args.source is not None:
        config.camera = replace(config.camera, source=args.source)
    if args.backend is not None:
        config.camera = replace(config.camera, backend=args.backend)
    if args.selection is not None:
        config.detector.selection = args.selection
    if args.jsonl is not None:
        config.output.jsonl = str(args.jsonl.resolve())
    if args.headless:
        config.display_enabled = False
    return config.validate()


def build_sinks(config):
    sinks = []
    if config.output.log_points:
        sinks.append(LoggingSink(logging.DEBUG))
    if config.output.jsonl:
        sinks.append(JsonLinesSink(config.resolve(config.output.jsonl)))
    return sinks


def run(config):
    """Start the node. Raises FatalStartupError if it cannot start."""
    print("=" * 50)
    print("SPHERE TRACKING NODE")
    print("=" * 50)
    print(f"Ball diameter: {config.ball_diameter}")

    calibration_path = config.resolve(config.calibration_file)
    print(f"Calibration: {calibration_path}")
    intrinsics = load_intrinsics(calibration_path)

    context = PipelineContext.from_config(config, intrinsics, build_sinks(config))
    localizer = BallLocalizer(context, loop_rate_hz=config.loop_rate_hz)

    camera = OpenCVCamera(
        source=config.camera.source,
        backend=config.camera.backend,
        connect_attempts=config.camera.connect_attempts,
        retry_delay=config.camera.connect_retry_delay_s,
    )
    display = None
    try:
        camera.connect()
        display = OpenCVDisplay(context.thresholds) if config.display_enabled else HeadlessDisplay()
        print("\nRunning... Show the ball to the camera. Press 'q' to quit.\n")
        localizer.run(camera, display)
    except KeyboardInterrupt:
        localizer.stop()
    finally:
        camera.release()
        if display is not None:
            display.close()
        context.emitter.close()

    print("\nDone.")
    return localizer


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.suggest_backend:
        backend_hint = suggest_backend()
        if backend_hint:
            print(f"Suggested backend for this OS: {backend_hint}")
        else:
            print("Could not determine a backend suggestion for this OS.")
        return 0

    try:
        run(build_config(args))
    except FatalStartupError as e:
        logger.error("%s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
