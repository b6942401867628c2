"""
pose_utils.py - Joint angle geometry over smoothed frames.
"""
from typing import Optional, Sequence

import numpy as np

from .landmarks import Frame


def calculate_angle(a: Sequence[float], b: Sequence[float], c: Sequence[float]) -> float:
    """
    Calculate the angle at point ``b`` between vectors ``ba`` and ``bc``.

    Args:
        a: First point [x, y] (e.g. hip for a knee angle)
        b: Middle point [x, y], the vertex
        c: Last point [x, y]
    Returns:
        Angle in degrees (0-180), or NaN if either vector is degenerate
    """
    a = np.array([a[0], a[1]], dtype=float)
    b = np.array([b[0], b[1]], dtype=float)
    c = np.array([c[0], c[1]], dtype=float)
    ba = a - b
    bc = c - b
    norm_ba = np.linalg.norm(ba)
    norm_bc = np.linalg.norm(bc)
    if norm_ba < 1e-6 or norm_bc < 1e-6:
        return np.nan
    cosine_angle = np.clip(np.dot(ba, bc) / (norm_ba * norm_bc), -1.0, 1.0)
    return float(np.degrees(np.arccos(cosine_angle)))


def joint_angle(frame: Frame, a: int, b: int, c: int, min_visibility: float = 0.3) -> Optional[float]:
    """Angle at landmark ``b``; None unless all three landmarks are visible."""
    confidences = frame.confidences
    if min(confidences[a], confidences[b], confidences[c]) <= min_visibility:
        return None
    angle = calculate_angle(frame.xy[a], frame.xy[b], frame.xy[c])
    if np.isnan(angle):
        return None
    return angle


def mean_side_angle(frame: Frame, sides: Sequence[Sequence[int]], min_visibility: float = 0.3) -> Optional[float]:
    """Average the same joint angle over every side (left/right triple) that is visible."""
    angles = [joint_angle(frame, a, b, c, min_visibility) for a, b, c in sides]
    angles = [angle for angle in angles if angle is not None]
    return float(np.mean(angles)) if angles else None
