import logging
from typing import Optional

from .results import AnalysisResult, ExerciseState, FaultState, QualityGrade

logger = logging.getLogger(__name__)

DEFAULT_CORRECTION = "Check your exercise form"
FALLBACK_CORRECTION = "Check your basic posture"


class FaultController:
    """
    Tracks consecutive per-frame failures and switches to fallback mode.

    After ``max_consecutive_errors`` failures in a row the analyzer answers with
    :meth:`fallback_result` until a frame is analyzed cleanly again.
    """

    def __init__(self, max_consecutive_errors: int = 3):
        self.max_consecutive_errors = max_consecutive_errors
        self.consecutive_errors = 0
        self.fallback_active = False
        self.total_frames = 0
        self.total_errors = 0

    def record_failure(self, error: Exception) -> FaultState:
        self.total_frames += 1
        self.total_errors += 1
        self.consecutive_errors += 1
        if self.consecutive_errors >= self.max_consecutive_errors and not self.fallback_active:
            self.fallback_active = True
            logger.warning(f"Fallback mode activated after {self.consecutive_errors} consecutive errors "
                           f"(last: {error})")
        return self.state

    def record_success(self) -> FaultState:
        self.total_frames += 1
        if self.fallback_active:
            logger.info("Analysis recovered, leaving fallback mode")
        self.consecutive_errors = 0
        self.fallback_active = False
        return self.state

    def reset(self) -> None:
        self.consecutive_errors = 0
        self.fallback_active = False
        self.total_frames = 0
        self.total_errors = 0

    @property
    def state(self) -> FaultState:
        return FaultState(self.consecutive_errors, self.fallback_active)

    @property
    def error_rate(self) -> float:
        return self.total_errors / self.total_frames if self.total_frames else 0.0

    @staticmethod
    def default_result(exercise: Optional[str] = None, exercise_state: ExerciseState = None,
                       timestamp: float = 0.0) -> AnalysisResult:
        """Neutral result returned for a failed frame before fallback kicks in."""
        exercise_state = exercise_state or ExerciseState()
        return AnalysisResult(
            overall_consistency=0.5,
            group_scores={},
            stability_index=0.5,
            coordination_score=0.5,
            confidence_level=0.5,
            corrections=(DEFAULT_CORRECTION,),
            grade=QualityGrade.C,
            rep_count=exercise_state.rep_count,
            phase=exercise_state.phase,
            exercise=exercise,
            timestamp=timestamp,
        )

    @staticmethod
    def fallback_result(exercise: Optional[str] = None, exercise_state: ExerciseState = None,
                        timestamp: float = 0.0) -> AnalysisResult:
        """Conservative result returned for every failed frame while in fallback mode."""
        exercise_state = exercise_state or ExerciseState()
        return AnalysisResult(
            overall_consistency=0.6,
            group_scores={"basic": 0.6},
            stability_index=0.6,
            coordination_score=0.6,
            confidence_level=0.5,
            corrections=(FALLBACK_CORRECTION,),
            grade=QualityGrade.C,
            rep_count=exercise_state.rep_count,
            phase=exercise_state.phase,
            exercise=exercise,
            timestamp=timestamp,
        )
