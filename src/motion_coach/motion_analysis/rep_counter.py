"""
rep_counter.py - Two-threshold repetition state machine and the signals that drive it.
"""
import math
from typing import Callable, Dict, Optional

from .landmarks import Frame, PoseLandmark as PL
from .pose_utils import mean_side_angle
from .results import ExerciseState, RepPhase

# --- Rep Signal Registry ---
REP_SIGNAL_REGISTRY: Dict[str, Callable[[Frame], Optional[float]]] = {}


def register_rep_signal(name):
    def decorator(func):
        REP_SIGNAL_REGISTRY[name] = func
        return func
    return decorator


def get_rep_signal(name: str) -> Callable[[Frame], Optional[float]]:
    try:
        return REP_SIGNAL_REGISTRY[name]
    except KeyError:
        raise ValueError(f"Unknown rep signal: {name!r}") from None


@register_rep_signal("knee_angle")
def knee_angle(frame: Frame) -> Optional[float]:
    """Mean hip-knee-ankle angle."""
    return mean_side_angle(frame, (
        (PL.LEFT_HIP, PL.LEFT_KNEE, PL.LEFT_ANKLE),
        (PL.RIGHT_HIP, PL.RIGHT_KNEE, PL.RIGHT_ANKLE),
    ))


@register_rep_signal("elbow_angle")
def elbow_angle(frame: Frame) -> Optional[float]:
    """Mean shoulder-elbow-wrist angle."""
    return mean_side_angle(frame, (
        (PL.LEFT_SHOULDER, PL.LEFT_ELBOW, PL.LEFT_WRIST),
        (PL.RIGHT_SHOULDER, PL.RIGHT_ELBOW, PL.RIGHT_WRIST),
    ))


@register_rep_signal("trunk_lift")
def trunk_lift(frame: Frame) -> Optional[float]:
    """How far the trunk is curled off the floor: 180 minus the shoulder-hip-knee angle."""
    hip_angle = mean_side_angle(frame, (
        (PL.LEFT_SHOULDER, PL.LEFT_HIP, PL.LEFT_KNEE),
        (PL.RIGHT_SHOULDER, PL.RIGHT_HIP, PL.RIGHT_KNEE),
    ))
    if hip_angle is None:
        return None
    return 180.0 - hip_angle


class RepStateMachine:
    """
    Counts repetitions from a scalar signal with hysteresis.

    Starts in UP. In UP a value below ``low`` moves to DOWN; in DOWN a value
    above ``high`` moves back to UP and completes a rep. Values between the two
    thresholds never cause a transition.
    """

    def __init__(self, low: float, high: float):
        if low >= high:
            raise ValueError(f"Rep thresholds must satisfy low < high, got {low} >= {high}")
        self.low = low
        self.high = high
        self.phase = RepPhase.UP
        self.rep_count = 0

    def update(self, value: Optional[float]) -> bool:
        """Feed one signal value; returns True when it completes a rep."""
        if value is None or math.isnan(value):
            return False
        if self.phase == RepPhase.UP and value < self.low:
            self.phase = RepPhase.DOWN
        elif self.phase == RepPhase.DOWN and value > self.high:
            self.phase = RepPhase.UP
            self.rep_count += 1
            return True
        return False

    def peek(self, value: Optional[float]) -> ExerciseState:
        """State the machine would be in after ``update(value)``, without changing it."""
        if value is None or math.isnan(value):
            return self.state
        if self.phase == RepPhase.UP and value < self.low:
            return ExerciseState(RepPhase.DOWN, self.rep_count)
        if self.phase == RepPhase.DOWN and value > self.high:
            return ExerciseState(RepPhase.UP, self.rep_count + 1)
        return self.state

    def reset(self) -> None:
        self.phase = RepPhase.UP
        self.rep_count = 0

    @property
    def state(self) -> ExerciseState:
        return ExerciseState(self.phase, self.rep_count)
