"""
Contour-based Circle Classification

Finds circle-like regions in a binary mask. Edges come from Canny, each
external contour is simplified to a polygon and checked for size, convexity,
vertex count and how well it fills a circle of the bounding-box radius.

A Hough-circle detector is kept as an alternative for comparison.
"""

import math
from dataclasses import dataclass, field

import cv2
import numpy as np

from .config import DetectorConfig


@dataclass
class CircleCandidate:
    """One circle-like region found in a mask (pixel units)."""

    center: tuple
    radius: int
    bbox: tuple
    area: float
    vertices: int = 0
    contour: np.ndarray = field(default=None, repr=False)


@dataclass
class Classification:
    """Output of one classifier pass over a mask."""

    edges: np.ndarray
    candidates: list
    selected: CircleCandidate = None

    @property
    def found(self):
        return self.selected is not None


def bbox_radius(width):
    # Both halves use the width; the aspect check keeps width close to height
    return (width // 2 + width // 2) // 2


def select_candidate(candidates, policy='last'):
    """
    Pick the reported candidate.

    'last' keeps the last qualifying contour in iteration order.
    'largest' keeps the qualifying contour with the biggest area.
    """
    if not candidates:
        return None
    if policy == 'last':
        return candidates[-1]
    if policy == 'largest':
        return max(candidates, key=lambda c: c.area)
    raise ValueError(f"Unknown selection policy '{policy}'")


class ShapeClassifier:
    """Polygon-approximation circle detector."""

    def __init__(self, config=None):
        """
        Args:
            config: DetectorConfig with area, tolerance and selection settings
        """
        self.config = config if config is not None else DetectorConfig()

    def edges(self, mask, canny_threshold):
        return cv2.Canny(mask, canny_threshold, canny_threshold * 2, apertureSize=3)

    def evaluate(self, contour):
        """
        Check a single contour.

        Returns:
            CircleCandidate if the contour passes every filter, else None
        """
        cfg = self.config
        perimeter = cv2.arcLength(contour, True)
        approx = cv2.approxPolyDP(contour, perimeter * cfg.epsilon_ratio, True)

        # Skip small or non-convex objects
        area = abs(cv2.contourArea(contour))
        if area < cfg.min_area or not cv2.isContourConvex(approx):
            return None

        if len(approx) < cfg.min_vertices:
            return None

        x, y, w, h = cv2.boundingRect(contour)
        radius = bbox_radius(w)
        if radius <= 0 or h <= 0:
            return None

        if abs(1 - w / h) > cfg.aspect_tolerance:
            return None
        if abs(1 - area / (math.pi * radius ** 2)) > cfg.area_tolerance:
            return None
        if area <= cfg.min_area:
            return None

        return CircleCandidate(
            center=(x + radius, y + radius),
            radius=radius,
            bbox=(x, y, w, h),
            area=area,
            vertices=len(approx),
            contour=contour,
        )

    def classify(self, mask, canny_threshold):
        """
        Find circle-like regions in a binary mask.

        Args:
            mask: single-channel uint8 mask (may be blurred)
            canny_threshold: low Canny threshold, high is twice this

        Returns:
            Classification with the edge map, every qualifying candidate in
            contour order and the selected one (or None)
        """
        edges = self.edges(mask, canny_threshold)
        contours, _ = cv2.findContours(edges, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE)

        candidates = []
        for contour in contours:
            candidate = self.evaluate(contour)
            if candidate is not None:
                candidates.append(candidate)

        return Classification(
            edges=edges,
            candidates=candidates,
            selected=select_candidate(candidates, self.config.selection),
        )


class HoughCircleClassifier:
    """Alternative detector using cv2.HoughCircles on the mask."""

    def __init__(self, config=None):
        self.config = config if config is not None else DetectorConfig()

    def classify(self, mask, canny_threshold):
        hough = self.config.hough
        # HoughCircles rejects non-positive thresholds
        canny_threshold = max(int(canny_threshold), 1)
        circles = cv2.HoughCircles(
            mask, cv2.HOUGH_GRADIENT, 1, mask.shape[0] / 8,
            param1=canny_threshold,
            param2=max(int(hough.accumulator), 1),
            minRadius=int(hough.min_radius),
            maxRadius=int(hough.max_radius),
        )

        candidates = []
        if circles is not None:
            for cx, cy, r in circles[0]:
                radius = int(round(r))
                if radius <= 0:
                    continue
                center = (int(round(cx)), int(round(cy)))
                candidates.append(CircleCandidate(
                    center=center,
                    radius=radius,
                    bbox=(center[0] - radius, center[1] - radius, 2 * radius, 2 * radius),
                    area=math.pi * radius ** 2,
                ))

        return Classification(
            edges=cv2.Canny(mask, canny_threshold, canny_threshold * 2, apertureSize=3),
            candidates=candidates,
            selected=select_candidate(candidates, self.config.selection),
        )


def make_classifier(config):
    """Build the classifier named by DetectorConfig.method."""
    if config.method == 'hough':
        return HoughCircleClassifier(config)
    return ShapeClassifier(config)
