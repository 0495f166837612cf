"""
Detection overlay drawing for the debug image channel.
"""

import cv2

WHITE = (255, 255, 255)
GREEN = (0, 255, 0)
RED = (0, 0, 255)
CROSSHAIR_HALF = 7


def draw_detection(frame, candidate, estimate=None):
    """
    Draw crosshair, circle outline and distance label.

    Args:
        frame: undistorted BGR frame (not modified)
        candidate: selected CircleCandidate or None
        estimate: BallEstimate or None

    Returns:
        Annotated copy of the frame
    """
    out = frame.copy()

    if candidate is None:
        cv2.putText(out, "Ball: Not detected", (10, 30),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.6, RED, 2)
        return out

    x, y, w, h = candidate.bbox
    center = (int(x + w // 2), int(y + h // 2))
    radius = int((w // 2 + h // 2) // 2)

    cv2.line(out, (center[0] - CROSSHAIR_HALF, center[1]),
             (center[0] + CROSSHAIR_HALF, center[1]), WHITE, 2)
    cv2.line(out, (center[0], center[1] - CROSSHAIR_HALF),
             (center[0], center[1] + CROSSHAIR_HALF), WHITE, 2)
    cv2.circle(out, center, radius, WHITE, 2, cv2.LINE_8)

    if estimate is not None:
        X, Y, Z = estimate.position
        cv2.putText(out, f"Dist: {estimate.distance:.3f}", (10, 30),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.6, GREEN, 2)
        cv2.putText(out, f"3D: ({X:.3f}, {Y:.3f}, {Z:.3f})", (10, 60),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.6, GREEN, 2)

    return out
