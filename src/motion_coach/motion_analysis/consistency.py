"""
consistency.py - Spatial and temporal consistency of joint groups.

A group score blends how well the pairwise distances between its joints sit in
the group's optimal range (spatial) with how little its joints jitter across
recent History frames (temporal).
"""
from itertools import combinations
from typing import Mapping, Sequence, Tuple

import numpy as np

from .joint_groups import JointGroup
from .landmarks import Frame

NEUTRAL_GROUP_SCORE = 0.5


def valid_indices(frame: Frame, indices: Sequence[int], confidence_threshold: float = 0.3) -> Tuple[int, ...]:
    """Group indices whose landmark confidence is above ``confidence_threshold``."""
    confidences = frame.confidences
    return tuple(i for i in indices if i < len(frame) and confidences[i] > confidence_threshold)


def pair_score(distance: float, optimal_range: Tuple[float, float]) -> float:
    low, high = optimal_range
    if low <= distance <= high:
        return 1.0
    if distance < low:
        return max(0.0, distance / low) if low > 0 else 1.0
    return max(0.0, 1.0 - (distance - high) / high) if high > 0 else 0.0


def spatial_consistency(frame: Frame, indices: Sequence[int], optimal_range: Tuple[float, float]) -> float:
    """Mean pair score over all pairs of ``indices`` (0.5 with fewer than two)."""
    if len(indices) < 2:
        return NEUTRAL_GROUP_SCORE
    xy = frame.xy
    scores = [
        pair_score(float(np.linalg.norm(xy[a] - xy[b])), optimal_range)
        for a, b in combinations(indices, 2)
    ]
    return float(np.mean(scores))


def temporal_consistency(history: Sequence[Frame], indices: Sequence[int],
                         confidence_threshold: float = 0.3,
                         transitions: int = 5,
                         displacement_scale: float = 0.1,
                         default: float = 0.7,
                         min_frames: int = 3) -> float:
    """
    Frame-to-frame steadiness of ``indices`` over the last ``transitions`` History transitions.

    Joints whose confidence is below ``confidence_threshold`` at either end of a
    transition are skipped. Returns ``default`` while History is shorter than
    ``min_frames`` or when no comparison was possible.
    """
    if len(history) < min_frames:
        return default
    recent = list(history)[-(transitions + 1):]
    idx = np.asarray([i for i in indices if i < len(recent[-1])], dtype=int)
    if idx.size == 0:
        return default

    values = []
    for prev, curr in zip(recent, recent[1:]):
        usable = (prev.confidences[idx] >= confidence_threshold) & (curr.confidences[idx] >= confidence_threshold)
        if not np.any(usable):
            continue
        joints = idx[usable]
        distances = np.linalg.norm(curr.xy[joints] - prev.xy[joints], axis=1)
        values.extend(np.maximum(0.0, 1.0 - distances / displacement_scale))
    if not values:
        return default
    return float(np.mean(values))


def scaled_range(optimal_range: Tuple[float, float], tolerance: float = 1.0) -> Tuple[float, float]:
    return optimal_range[0] * tolerance, optimal_range[1] * tolerance


def score_joint_group(frame: Frame, history: Sequence[Frame], group: JointGroup,
                      blend: float = 0.6,
                      confidence_threshold: float = 0.3,
                      range_tolerance: float = 1.0,
                      **temporal_kwargs) -> float:
    """
    Score one joint group in [0, 1].

    ``history`` is expected to already hold ``frame`` as its newest entry.
    """
    joints = valid_indices(frame, group.indices, confidence_threshold)
    if len(joints) < 2:
        return NEUTRAL_GROUP_SCORE
    spatial = spatial_consistency(frame, joints, scaled_range(group.optimal_range, range_tolerance))
    temporal = temporal_consistency(history, group.indices, confidence_threshold, **temporal_kwargs)
    score = spatial * (1.0 - blend) + temporal * blend
    return float(min(1.0, max(0.0, score)))


def overall_consistency(scores: Mapping[str, float], weights: Mapping[str, float]) -> float:
    """Weight-normalised mean of group scores; 0.5 when there is nothing to weigh."""
    total_weight = 0.0
    total = 0.0
    for name, score in scores.items():
        weight = weights.get(name, 0.0)
        total += score * weight
        total_weight += weight
    if total_weight <= 0:
        return NEUTRAL_GROUP_SCORE
    return float(min(1.0, max(0.0, total / total_weight)))
