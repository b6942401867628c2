"""
analyzer.py - Real-time movement quality analysis for one user session.

A MotionQualityAnalyzer turns a stream of raw pose landmark frames into one
AnalysisResult per frame: joint group consistency, stability, coordination,
confidence, a letter grade, form corrections and the repetition count.
"""
import logging
import time
from collections import deque
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from .adaptive_weights import AdaptiveWeights
from .config_utils import AnalyzerConfig, UserLevel, load_analyzer_config
from .consistency import overall_consistency, score_joint_group
from .errors import InputError, ProcessingFault
from .fault_controller import FaultController
from .grading import (composite_score, confidence_level, grade_for, grade_scale,
                      instant_quality, select_corrections)
from .joint_groups import ExerciseType, get_joint_groups, get_rep_profile
from .landmarks import Frame, validate_landmarks
from .rep_counter import RepStateMachine, get_rep_signal
from .results import AnalysisContext, AnalysisResult, ExerciseState, FaultState
from .smoothing import TemporalSmoother
from .stability import coordination_score, stability_index

# --- Logger Setup ---
logger = logging.getLogger("MotionQualityAnalyzer")
if not logger.hasHandlers():
    handler = logging.StreamHandler()
    formatter = logging.Formatter('%(asctime)s %(levelname)s %(message)s')
    handler.setFormatter(formatter)
    logger.addHandler(handler)
logger.setLevel(logging.INFO)


def _clamp(value: float) -> float:
    return float(min(1.0, max(0.0, value)))


@dataclass
class _FrameAnalysis:
    """Everything computed for a frame, held until the frame is committed."""
    raw: Frame
    smoothed: Frame
    quality: float
    smoothing_confidence: float
    sudden_movement: bool
    scores: Dict[str, float]
    rep_value: Optional[float]
    result: AnalysisResult


class MotionQualityAnalyzer:
    """
    Movement quality analyzer owning one History, smoother, rep counter and fault state.

    Each instance serves a single session and must be driven from one thread.
    ``analyze_frame`` never raises: malformed frames and scoring faults are
    counted by the fault controller and answered with a degraded result.
    """

    def __init__(self, exercise_type="squat", config: Optional[AnalyzerConfig] = None,
                 user_level=None):
        """
        Args:
            exercise_type: ExerciseType or its name ("squat", "pushup", ...)
            config: Engine constants; defaults to the packaged engine_config.json
            user_level: Optional UserLevel (or name) tuning tolerances and grading
        """
        self.config = config if config is not None else load_analyzer_config()
        self._exercise = ExerciseType.parse(exercise_type)
        self._groups = get_joint_groups(self._exercise)
        self._user_level: Optional[UserLevel] = None
        self._level = None

        self._history = deque(maxlen=self.config.history_size)
        self._quality_history = deque(maxlen=self.config.history_size)
        self._smoother = TemporalSmoother(self.config.smoothing_window, self.config.smoothing_confidence_threshold)
        self._smoothing_confidence = 0.0
        self._sudden_movement = False
        self._weights = AdaptiveWeights(
            rate=self.config.adaptation_rate,
            min_weight=self.config.min_weight,
            max_weight=self.config.max_weight,
            default_blend=self.config.temporal_blend,
        )
        self._fault = FaultController(self.config.max_consecutive_errors)
        self._rep_machine, self._rep_signal = self._build_rep_counter()

        if user_level is not None:
            self.set_user_level(user_level)
        logger.info(f"MotionQualityAnalyzer initialized for {self._exercise.value} "
                    f"(user level: {self._user_level.value if self._user_level else 'default'})")

    # --- Public API ---

    def analyze_frame(self, landmarks: Any, timestamp: Optional[float] = None,
                      context: Optional[AnalysisContext] = None) -> AnalysisResult:
        """
        Analyze one landmark frame.

        Args:
            landmarks: Raw landmark records from the pose model
            timestamp: Capture time in seconds; defaults to ``time.monotonic()``
            context: Optional workout context (fatigue relaxes stability,
                coordination and grading)

        Returns:
            AnalysisResult for this frame. Nothing is committed to History,
            the smoother, the rep counter or the adaptive weights unless the
            whole frame is analyzed successfully.
        """
        if timestamp is None:
            timestamp = time.monotonic()
        try:
            frame = validate_landmarks(landmarks, self.config.schema_size, timestamp)
            if frame is None:
                raise InputError("Malformed or incomplete landmark frame")
            analysis = self._analyze(frame, context)
            self._commit(analysis)
        except InputError as e:
            logger.debug(f"Frame rejected: {e}")
            return self._handle_failure(e, timestamp)
        except Exception as e:
            logger.warning(f"Frame analysis failed: {e}", exc_info=True)
            return self._handle_failure(ProcessingFault(str(e), e), timestamp)

        self._fault.record_success()
        return analysis.result

    def set_exercise(self, exercise_type) -> None:
        """Switch exercise; resets repetition and fault state, keeps History and adaptive weights."""
        exercise = ExerciseType.parse(exercise_type)
        if exercise == self._exercise:
            return
        logger.info(f"Switching exercise {self._exercise.value} -> {exercise.value}")
        self._exercise = exercise
        self._groups = get_joint_groups(exercise)
        self._rep_machine, self._rep_signal = self._build_rep_counter()
        self._fault.reset()

    def set_user_level(self, user_level) -> None:
        """Apply a user experience level, or None for the untuned defaults."""
        if user_level is None:
            self._user_level = None
            self._level = None
            history_size = self.config.history_size
        else:
            level = UserLevel.parse(user_level)
            level_config = self.config.level_config(level)
            if level_config is None:
                raise ValueError(f"No configuration for user level: {level.value}")
            self._user_level = level
            self._level = level_config
            history_size = level_config.history_size
        self._history = deque(self._history, maxlen=history_size)
        self._quality_history = deque(self._quality_history, maxlen=history_size)

    def reset(self) -> None:
        """Start a new set: clear History, smoother, rep and fault state. Adaptive weights are kept."""
        self._history.clear()
        self._quality_history.clear()
        self._smoother.reset()
        self._smoothing_confidence = 0.0
        self._sudden_movement = False
        if self._rep_machine is not None:
            self._rep_machine.reset()
        self._fault.reset()

    def get_stats(self) -> Dict[str, Any]:
        exercise_state = self.exercise_state
        return {
            "history_size": len(self._history),
            "history_capacity": self._history.maxlen,
            "fallback_active": self._fault.fallback_active,
            "consecutive_errors": self._fault.consecutive_errors,
            "error_rate": self._fault.error_rate,
            "adaptive_weight_count": len(self._weights),
            "exercise": self._exercise.value,
            "rep_count": exercise_state.rep_count,
            "phase": exercise_state.phase.value,
            "smoothing_confidence": self._smoothing_confidence,
            "smoothing_quality": self._smoother.smoothing_quality(),
            "sudden_movement": self._sudden_movement,
        }

    @property
    def exercise_type(self) -> ExerciseType:
        return self._exercise

    @property
    def user_level(self) -> Optional[UserLevel]:
        return self._user_level

    @property
    def exercise_state(self) -> ExerciseState:
        if self._rep_machine is None:
            return ExerciseState()
        return self._rep_machine.state

    @property
    def fault_state(self) -> FaultState:
        return self._fault.state

    @property
    def adaptive_weights(self) -> Dict[Tuple[str, str], float]:
        return self._weights.snapshot()

    @property
    def history(self) -> Tuple[Frame, ...]:
        return tuple(self._history)

    # --- Internals ---

    def _build_rep_counter(self):
        profile = get_rep_profile(self._exercise)
        if profile is None:
            return None, None
        return RepStateMachine(profile.low, profile.high), get_rep_signal(profile.signal)

    def _handle_failure(self, error: Exception, timestamp: float) -> AnalysisResult:
        self._fault.record_failure(error)
        exercise_state = self.exercise_state
        if self._fault.fallback_active:
            return FaultController.fallback_result(self._exercise.value, exercise_state, timestamp)
        return FaultController.default_result(self._exercise.value, exercise_state, timestamp)

    def _analyze(self, frame: Frame, context: Optional[AnalysisContext]) -> _FrameAnalysis:
        cfg = self.config
        level = self._level
        capacity = self._history.maxlen

        preview = self._smoother.preview(frame)
        smoothed = preview.frame
        sudden = self._smoother.detect_sudden_movement(frame, threshold=cfg.sudden_movement_threshold)
        history = (list(self._history) + [smoothed])[-capacity:]
        quality = instant_quality(smoothed, cfg.confidence_threshold)
        quality_history = (list(self._quality_history) + [quality])[-capacity:]

        # Weights are fixed for the whole frame; the adaptive update lands on commit
        weights = self._weights.effective_weights(self._exercise, self._groups)

        scores = {
            group.name: score_joint_group(
                smoothed, history, group,
                blend=self._weights.blend_factor(self._exercise, group.name),
                confidence_threshold=cfg.confidence_threshold,
                range_tolerance=level.range_tolerance if level else 1.0,
                transitions=cfg.temporal_transitions,
                displacement_scale=cfg.temporal_displacement_scale,
                default=cfg.temporal_default,
                min_frames=cfg.min_history_frames,
            )
            for group in self._groups
        }
        consistency = overall_consistency(scores, weights)

        stability = stability_index(
            history, self._groups, weights,
            default=cfg.stability_default,
            threshold=cfg.stability_threshold,
            window=cfg.stability_window,
            confidence_threshold=cfg.confidence_threshold,
        )
        coordination = coordination_score(
            smoothed, history, self._groups, weights,
            symmetry_weight=cfg.symmetry_weight,
            symmetry_tolerance=cfg.symmetry_tolerance,
            synchrony_window=cfg.synchrony_window,
            synchrony_tolerance=cfg.synchrony_tolerance,
            confidence_threshold=cfg.confidence_threshold,
            default=cfg.coordination_default,
        )
        if level is not None:
            stability *= level.stability_multiplier
            coordination *= level.coordination_multiplier
        if context is not None:
            stability *= 1.0 + context.fatigue_level * 0.2
            if context.fatigue_level > 0.7:
                coordination *= 1.1
        stability = _clamp(stability)
        coordination = _clamp(coordination)

        confidence = confidence_level(smoothed, self._groups, quality_history, capacity)

        composite = composite_score(consistency, stability, coordination)
        grade = grade_for(composite * grade_scale(level.grade_scale if level else 1.0, context))

        threshold = level.correction_threshold if level else cfg.correction_threshold
        corrections = select_corrections(self._exercise, scores, threshold, cfg.max_corrections)

        rep_value = self._rep_signal(smoothed) if self._rep_signal is not None else None
        exercise_state = (self._rep_machine.peek(rep_value) if self._rep_machine is not None
                          else ExerciseState())

        result = AnalysisResult(
            overall_consistency=consistency,
            group_scores=scores,
            stability_index=stability,
            coordination_score=coordination,
            confidence_level=confidence,
            corrections=tuple(corrections),
            grade=grade,
            rep_count=exercise_state.rep_count,
            phase=exercise_state.phase,
            exercise=self._exercise.value,
            timestamp=frame.timestamp,
        )
        return _FrameAnalysis(frame, smoothed, quality, preview.confidence, sudden, scores, rep_value, result)

    def _commit(self, analysis: _FrameAnalysis) -> None:
        self._smoother.push(analysis.raw)
        self._smoothing_confidence = analysis.smoothing_confidence
        self._sudden_movement = analysis.sudden_movement
        if analysis.sudden_movement:
            logger.debug(f"Sudden movement at t={analysis.raw.timestamp:.2f}")
        self._history.append(analysis.smoothed)
        self._quality_history.append(analysis.quality)
        if self._rep_machine is not None and self._rep_machine.update(analysis.rep_value):
            logger.info(f"{self._exercise.value} rep {self._rep_machine.rep_count} completed")
        self._weights.update(self._exercise, analysis.scores)
