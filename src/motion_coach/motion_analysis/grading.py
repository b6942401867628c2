"""
grading.py - Composite quality grade, confidence level and form corrections.
"""
from typing import List, Mapping, Optional, Sequence

import numpy as np

from .joint_groups import JointGroup, get_correction
from .landmarks import Frame
from .results import AnalysisContext, QualityGrade

# (minimum composite, grade), checked in order
GRADE_THRESHOLDS = (
    (0.90, QualityGrade.S),
    (0.80, QualityGrade.A),
    (0.70, QualityGrade.B),
    (0.60, QualityGrade.C),
)


def composite_score(consistency: float, stability: float, coordination: float) -> float:
    return 0.5 * consistency + 0.3 * stability + 0.2 * coordination


def grade_for(composite: float) -> QualityGrade:
    for minimum, grade in GRADE_THRESHOLDS:
        if composite >= minimum:
            return grade
    return QualityGrade.D


def grade_scale(level_scale: float = 1.0, context: Optional[AnalysisContext] = None) -> float:
    """Leniency applied to the composite before grading (user level and fatigue)."""
    scale = level_scale
    if context is not None and context.fatigue_level > 0.6:
        scale *= 1.0 + context.fatigue_level * 0.1
    return scale


def instant_quality(frame: Frame, confidence_threshold: float = 0.3) -> float:
    """Mean confidence of the landmarks above ``confidence_threshold`` (0 if none)."""
    confidences = frame.confidences
    visible = confidences[confidences > confidence_threshold]
    if visible.size == 0:
        return 0.0
    return float(np.mean(visible))


def confidence_level(frame: Frame, groups: Sequence[JointGroup], quality_history: Sequence[float],
                     history_size: int) -> float:
    """
    Confidence in this frame's analysis.

    The group-weighted mean landmark confidence of the current frame is blended
    with the rolling mean of ``quality_history``; the rolling mean takes over as
    the history fills up to ``history_size`` entries.
    """
    confidences = frame.confidences
    total = 0.0
    total_weight = 0.0
    for group in groups:
        for index in group.indices:
            if index < len(frame):
                total += confidences[index] * group.weight
                total_weight += group.weight
    instant = total / total_weight if total_weight > 0 else 0.0

    rolling = float(np.mean(quality_history)) if len(quality_history) else 0.5
    blend = min(1.0, len(quality_history) / history_size) if history_size > 0 else 1.0
    return float(min(1.0, max(0.0, instant * (1.0 - blend) + rolling * blend)))


def select_corrections(exercise, scores: Mapping[str, float], threshold: float = 0.6,
                       limit: int = 3) -> List[str]:
    """Canonical corrections for groups below ``threshold``, worst first, at most ``limit``."""
    corrections = []
    for group_name, score in sorted(scores.items(), key=lambda item: item[1]):
        if score >= threshold:
            break
        correction = get_correction(exercise, group_name)
        if correction and correction not in corrections:
            corrections.append(correction)
        if len(corrections) >= limit:
            break
    return corrections
