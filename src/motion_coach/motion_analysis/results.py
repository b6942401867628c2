from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class QualityGrade(str, Enum):
    """Letter grade for the composite movement quality of one frame."""
    S = "S"
    A = "A"
    B = "B"
    C = "C"
    D = "D"


class RepPhase(str, Enum):
    UP = "up"
    DOWN = "down"


@dataclass(frozen=True)
class ExerciseState:
    """Repetition phase and count for the selected exercise."""
    phase: RepPhase = RepPhase.UP
    rep_count: int = 0


@dataclass(frozen=True)
class FaultState:
    consecutive_errors: int = 0
    fallback_active: bool = False


@dataclass
class AnalysisContext:
    """Optional workout context passed alongside a frame."""
    session_duration: float = 0.0  # Seconds since the workout started
    current_set: int = 1
    total_sets: int = 1
    fatigue_level: float = 0.0  # 0 (fresh) to 1 (exhausted)


@dataclass(frozen=True)
class AnalysisResult:
    """Per-frame movement quality snapshot handed to overlay, voice and session layers."""
    overall_consistency: float
    group_scores: Dict[str, float]
    stability_index: float
    coordination_score: float
    confidence_level: float
    corrections: Tuple[str, ...]
    grade: QualityGrade
    rep_count: int = 0
    phase: RepPhase = RepPhase.UP
    exercise: Optional[str] = None
    timestamp: float = 0.0

    def __post_init__(self):
        object.__setattr__(self, "group_scores", dict(self.group_scores))
        object.__setattr__(self, "corrections", tuple(self.corrections))

    @property
    def composite_score(self) -> float:
        return 0.5 * self.overall_consistency + 0.3 * self.stability_index + 0.2 * self.coordination_score

    def to_dict(self) -> Dict[str, Any]:
        return {
            "overall_consistency": self.overall_consistency,
            "group_scores": dict(self.group_scores),
            "stability_index": self.stability_index,
            "coordination_score": self.coordination_score,
            "confidence_level": self.confidence_level,
            "corrections": list(self.corrections),
            "grade": self.grade.value,
            "rep_count": self.rep_count,
            "phase": self.phase.value,
            "exercise": self.exercise,
            "timestamp": self.timestamp,
            "composite_score": self.composite_score,
        }
