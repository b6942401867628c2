"""
joint_groups.py - Per-exercise joint group catalog.

Each exercise is scored through a small set of named, weighted landmark groups.
The catalog lives in ``exercise_catalog.json`` and is loaded once at import.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple

from .config_utils import load_exercise_catalog
from .errors import UnknownExerciseError

_EXERCISE_CATALOG = load_exercise_catalog()


class ExerciseType(Enum):
    SQUAT = "squat"
    PUSHUP = "pushup"
    PLANK = "plank"
    SITUP = "situp"
    CRUNCH = "crunch"

    @classmethod
    def parse(cls, value) -> "ExerciseType":
        """Accept an ExerciseType or its name/value ("squat", "SQUAT")."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            key = value.strip().lower().replace("-", "").replace("_", "")
            for member in cls:
                if member.value == key:
                    return member
        raise UnknownExerciseError(f"Unknown exercise type: {value!r}")


@dataclass(frozen=True)
class JointGroup:
    name: str
    indices: Tuple[int, ...]
    weight: float
    optimal_range: Tuple[float, float]  # (min, max) normalized pairwise distance


@dataclass(frozen=True)
class RepProfile:
    signal: str  # Name of a registered rep signal
    low: float
    high: float


def _build_groups(entry: Dict) -> Tuple[JointGroup, ...]:
    return tuple(
        JointGroup(
            name=group["name"],
            indices=tuple(int(i) for i in group["indices"]),
            weight=float(group["weight"]),
            optimal_range=(float(group["optimal_range"][0]), float(group["optimal_range"][1])),
        )
        for group in entry["joint_groups"]
    )


_JOINT_GROUPS = {
    exercise: _build_groups(_EXERCISE_CATALOG[exercise.value])
    for exercise in ExerciseType
}


def get_joint_groups(exercise) -> Tuple[JointGroup, ...]:
    """Return the immutable joint group list of ``exercise``."""
    return _JOINT_GROUPS[ExerciseType.parse(exercise)]


def get_rep_profile(exercise) -> Optional[RepProfile]:
    """Return the rep counting profile, or None for hold exercises such as plank."""
    profile = _EXERCISE_CATALOG[ExerciseType.parse(exercise).value].get("rep_counter")
    if not profile:
        return None
    return RepProfile(signal=profile["signal"], low=float(profile["low"]), high=float(profile["high"]))


def get_correction(exercise, group_name: str) -> Optional[str]:
    return _EXERCISE_CATALOG[ExerciseType.parse(exercise).value].get("corrections", {}).get(group_name)
