"""
Monocular Distance Estimation

Uses the known ball diameter and its apparent radius in pixels to estimate
depth along the optical axis, then back-projects the image centroid into a
3D point in the camera frame.
"""

from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class BallEstimate:
    """Radius-method estimate for one detection."""

    distance: float
    position: tuple


def estimate_distance(focal_length, real_diameter, pixel_radius):
    """
    Pinhole depth from apparent size.

    Formula: Z = f * D / (2 * r)
    where f = focal length (pixels), D = real diameter, r = radius (pixels)

    Args:
        focal_length: horizontal focal length fx in pixels
        real_diameter: physical ball diameter, any length unit
        pixel_radius: detected radius in pixels

    Returns:
        Distance in the same unit as real_diameter

    Raises:
        ValueError: if pixel_radius is not positive
    """
    if not pixel_radius > 0:
        raise ValueError(f"pixel_radius must be positive, got {pixel_radius}")
    return focal_length * (real_diameter / (2 * pixel_radius))


def back_project(inverse_matrix, centroid, distance):
    """
    Map a pixel and a depth to camera-frame coordinates.

    Computes K^-1 * (distance * [u, v, 1]^T).

    Args:
        inverse_matrix: inverse of the 3x3 intrinsic matrix
        centroid: (u, v) pixel coordinates
        distance: depth from estimate_distance()

    Returns:
        (X, Y, Z) tuple of floats
    """
    image_vector = np.array([centroid[0], centroid[1], 1.0], dtype=np.float64)
    camera_vector = inverse_matrix @ (distance * image_vector)
    return tuple(float(v) for v in camera_vector)


class DistanceEstimator:
    """Radius-based 3D position of the ball for one calibrated camera."""

    def __init__(self, intrinsics, ball_diameter):
        if not ball_diameter > 0:
            raise ValueError(f"ball_diameter must be positive, got {ball_diameter}")
        self.intrinsics = intrinsics
        self.ball_diameter = float(ball_diameter)

    def distance(self, pixel_radius):
        return estimate_distance(self.intrinsics.fx, self.ball_diameter, pixel_radius)

    def estimate(self, candidate):
        """
        Estimate the 3D position of a detected circle.

        Args:
            candidate: CircleCandidate with center and radius

        Returns:
            BallEstimate, or None for a non-positive radius
        """
        if candidate is None or candidate.radius <= 0:
            return None
        distance = self.distance(candidate.radius)
        position = back_project(self.intrinsics.inverse_matrix, candidate.center, distance)
        return BallEstimate(distance=distance, position=position)
