"""
session.py - End-of-session workout summary.

The recorder accumulates per-frame AnalysisResults and condenses them into the
record handed to persistence at the end of a workout. It performs no I/O.
"""
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import numpy as np

from .results import AnalysisResult


@dataclass(frozen=True)
class SessionSummary:
    exercise: Optional[str]
    total_reps: int
    average_form_score: float  # 0-100, mean composite score
    corrections: List[str] = field(default_factory=list)  # Unique, in first-seen order
    frame_count: int = 0
    duration_seconds: float = 0.0
    grade_counts: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "exercise": self.exercise,
            "total_reps": self.total_reps,
            "average_form_score": self.average_form_score,
            "corrections": list(self.corrections),
            "frame_count": self.frame_count,
            "duration_seconds": self.duration_seconds,
            "grade_counts": dict(self.grade_counts),
        }


class WorkoutSessionRecorder:
    """Collects AnalysisResults of one workout session."""

    def __init__(self, exercise: Optional[str] = None):
        self.exercise = exercise
        self._composites: List[float] = []
        self._corrections: List[str] = []
        self._grades = Counter()
        self._max_reps = 0
        self._first_timestamp: Optional[float] = None
        self._last_timestamp: Optional[float] = None

    def __len__(self) -> int:
        return len(self._composites)

    def record(self, result: AnalysisResult) -> None:
        if self.exercise is None:
            self.exercise = result.exercise
        self._composites.append(result.composite_score)
        for correction in result.corrections:
            if correction not in self._corrections:
                self._corrections.append(correction)
        self._grades[result.grade.value] += 1
        # Rep count resets on exercise switch; keep the best seen for the session
        self._max_reps = max(self._max_reps, result.rep_count)
        if self._first_timestamp is None:
            self._first_timestamp = result.timestamp
        self._last_timestamp = result.timestamp

    def summary(self) -> SessionSummary:
        average = float(np.mean(self._composites)) * 100.0 if self._composites else 0.0
        duration = 0.0
        if self._first_timestamp is not None:
            duration = max(0.0, self._last_timestamp - self._first_timestamp)
        return SessionSummary(
            exercise=self.exercise,
            total_reps=self._max_reps,
            average_form_score=round(average, 1),
            corrections=list(self._corrections),
            frame_count=len(self._composites),
            duration_seconds=duration,
            grade_counts=dict(self._grades),
        )

    def reset(self) -> None:
        self._composites.clear()
        self._corrections.clear()
        self._grades.clear()
        self._max_reps = 0
        self._first_timestamp = None
        self._last_timestamp = None
