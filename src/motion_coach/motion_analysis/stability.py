"""
stability.py - Stability and coordination scoring over the analysis History.
"""
from typing import Mapping, Sequence

import numpy as np

from .joint_groups import JointGroup
from .landmarks import SYMMETRY_PAIRS, Frame


def _clamp(value: float) -> float:
    return float(min(1.0, max(0.0, value)))


def _weighted_mean(values: Mapping[str, float], weights: Mapping[str, float], default: float) -> float:
    total_weight = sum(weights.get(name, 0.0) for name in values)
    if total_weight <= 0:
        return default
    return sum(value * weights.get(name, 0.0) for name, value in values.items()) / total_weight


def _transition_displacements(prev: Frame, curr: Frame, indices: np.ndarray, confidence_threshold: float):
    """Displacements of joints in ``indices`` confident at both ends of the transition, plus their mask."""
    usable = (prev.confidences[indices] >= confidence_threshold) & (curr.confidences[indices] >= confidence_threshold)
    joints = indices[usable]
    return np.linalg.norm(curr.xy[joints] - prev.xy[joints], axis=1), usable


def group_stability(history: Sequence[Frame], group: JointGroup,
                    threshold: float = 0.06, window: int = 7,
                    confidence_threshold: float = 0.3, default: float = 0.6) -> float:
    """``clamp(1 - mean per-joint displacement / threshold)`` over the last ``window`` frames."""
    recent = list(history)[-window:]
    if len(recent) < 3:
        return default
    indices = np.asarray([i for i in group.indices if i < len(recent[-1])], dtype=int)
    if indices.size == 0:
        return default

    sums = np.zeros(indices.size)
    counts = np.zeros(indices.size)
    for prev, curr in zip(recent, recent[1:]):
        distances, usable = _transition_displacements(prev, curr, indices, confidence_threshold)
        sums[usable] += distances
        counts[usable] += 1

    measured = counts > 0
    if not np.any(measured):
        return default
    avg_displacement = float(np.mean(sums[measured] / counts[measured]))
    return _clamp(1.0 - avg_displacement / threshold)


def stability_index(history: Sequence[Frame], groups: Sequence[JointGroup],
                    weights: Mapping[str, float], default: float = 0.6, **kwargs) -> float:
    """Weighted mean of group stabilities; ``default`` with fewer than three History frames."""
    if len(history) < 3:
        return default
    per_group = {group.name: group_stability(history, group, default=default, **kwargs) for group in groups}
    return _clamp(_weighted_mean(per_group, weights, default))


def symmetry_score(frame: Frame, tolerance: float = 0.12,
                   confidence_threshold: float = 0.3, default: float = 0.6) -> float:
    """Vertical left/right symmetry of shoulders, hips, knees and ankles."""
    confidences = frame.confidences
    values = []
    for left, right in SYMMETRY_PAIRS:
        if confidences[left] > confidence_threshold and confidences[right] > confidence_threshold:
            dy = abs(frame.points[left, 1] - frame.points[right, 1])
            values.append(max(0.0, 1.0 - dy / tolerance))
    if not values:
        return default
    return float(np.mean(values))


def group_synchrony(history: Sequence[Frame], group: JointGroup,
                    window: int = 5, tolerance: float = 0.05,
                    confidence_threshold: float = 0.3, default: float = 0.6) -> float:
    """
    How evenly a group's joints move together.

    For each transition among the last ``window`` frames, the population standard
    deviation of the joints' simultaneous displacements is mapped through
    ``max(0, 1 - stddev / tolerance)``. Transitions with fewer than two
    measurable joints are skipped.
    """
    if len(history) < window:
        return default
    recent = list(history)[-window:]
    indices = np.asarray([i for i in group.indices if i < len(recent[-1])], dtype=int)
    if indices.size < 2:
        return default

    values = []
    for prev, curr in zip(recent, recent[1:]):
        distances, _ = _transition_displacements(prev, curr, indices, confidence_threshold)
        if distances.size >= 2:
            values.append(max(0.0, 1.0 - float(np.std(distances)) / tolerance))
    if not values:
        return default
    return float(np.mean(values))


def coordination_score(frame: Frame, history: Sequence[Frame], groups: Sequence[JointGroup],
                       weights: Mapping[str, float],
                       symmetry_weight: float = 0.6,
                       symmetry_tolerance: float = 0.12,
                       synchrony_window: int = 5,
                       synchrony_tolerance: float = 0.05,
                       confidence_threshold: float = 0.3,
                       default: float = 0.6) -> float:
    """``clamp(symmetry_weight * symmetry + (1 - symmetry_weight) * weighted synchrony)``."""
    symmetry = symmetry_score(frame, symmetry_tolerance, confidence_threshold, default)
    synchrony = {
        group.name: group_synchrony(history, group, synchrony_window, synchrony_tolerance,
                                    confidence_threshold, default)
        for group in groups
    }
    pattern = _weighted_mean(synchrony, weights, default)
    return _clamp(symmetry_weight * symmetry + (1.0 - symmetry_weight) * pattern)
