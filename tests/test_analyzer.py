"""End-to-end tests for MotionQualityAnalyzer."""

from types import SimpleNamespace

import numpy as np
import pytest

from motion_coach.motion_analysis import (
    AnalysisContext,
    ExerciseType,
    MotionQualityAnalyzer,
    QualityGrade,
    RepPhase,
    UnknownExerciseError,
    UserLevel,
    load_analyzer_config,
)
from motion_coach.motion_analysis import analyzer as analyzer_module
from motion_coach.motion_analysis.fault_controller import DEFAULT_CORRECTION, FALLBACK_CORRECTION

GRADES = set(QualityGrade)
GRADE_RANK = {grade: rank for rank, grade in enumerate("SABCD")}


def _feed(analyzer, frames, start=0.0, step=1 / 30):
    results = []
    for i, landmarks in enumerate(frames):
        results.append(analyzer.analyze_frame(landmarks, timestamp=start + i * step))
    return results


def _squat_sequence(squat_pose_factory, angles, hold=6):
    """Each knee angle held for ``hold`` frames so the smoother settles on it."""
    return [squat_pose_factory(angle) for angle in angles for _ in range(hold)]


def _assert_bounded(result):
    for value in (result.overall_consistency, result.stability_index,
                  result.coordination_score, result.confidence_level):
        assert 0.0 <= value <= 1.0
    assert all(0.0 <= score <= 1.0 for score in result.group_scores.values())
    assert result.grade in GRADES
    assert len(result.corrections) <= 3


class TestAnalyzeFrame:

    def test_first_frame_scores_every_group(self, standing_records):
        result = MotionQualityAnalyzer("squat").analyze_frame(standing_records, timestamp=0.0)
        assert set(result.group_scores) == {
            "spinal_alignment", "knee_coordination", "hip_stability",
            "shoulder_stability", "overall_symmetry",
        }
        assert result.exercise == "squat"
        assert result.timestamp == 0.0
        _assert_bounded(result)

    def test_static_pose_is_fully_stable(self, standing_records):
        analyzer = MotionQualityAnalyzer("squat")
        result = _feed(analyzer, [standing_records] * 10)[-1]
        assert result.stability_index == pytest.approx(1.0)
        assert result.coordination_score == pytest.approx(1.0)
        # shoulders sit inside their optimal range and nothing moves
        assert result.group_scores["shoulder_stability"] == pytest.approx(1.0)

    def test_scores_bounded_for_noisy_input(self, pose_factory):
        rng = np.random.RandomState(11)
        analyzer = MotionQualityAnalyzer("pushup")
        for i in range(40):
            overrides = {j: (float(rng.rand()), float(rng.rand())) for j in range(33)}
            records = pose_factory(overrides, visibility=float(rng.rand()))
            _assert_bounded(analyzer.analyze_frame(records, timestamp=i / 30))

    def test_result_is_a_snapshot(self, standing_records):
        analyzer = MotionQualityAnalyzer("squat")
        result = analyzer.analyze_frame(standing_records, timestamp=0.0)
        result.group_scores["hip_stability"] = -1.0
        again = analyzer.analyze_frame(standing_records, timestamp=0.1)
        assert again.group_scores["hip_stability"] >= 0.0

    def test_history_is_bounded(self, standing_records):
        analyzer = MotionQualityAnalyzer("squat")
        _feed(analyzer, [standing_records] * 40)
        stats = analyzer.get_stats()
        assert stats["history_size"] == stats["history_capacity"] == 15

    def test_fatigue_context_relaxes_grading(self, standing_records):
        fresh = MotionQualityAnalyzer("squat")
        tired = MotionQualityAnalyzer("squat")
        context = AnalysisContext(fatigue_level=1.0)
        for i in range(8):
            fresh_result = fresh.analyze_frame(standing_records, timestamp=i)
            tired_result = tired.analyze_frame(standing_records, timestamp=i, context=context)
        assert tired_result.stability_index >= fresh_result.stability_index
        assert GRADE_RANK[tired_result.grade.value] <= GRADE_RANK[fresh_result.grade.value]


class TestRepCounting:

    def test_one_full_squat(self, squat_pose_factory):
        analyzer = MotionQualityAnalyzer("squat")
        results = _feed(analyzer, _squat_sequence(squat_pose_factory, [170, 170, 100, 95, 160, 165]))
        assert results[-1].rep_count == 1
        assert results[-1].phase == RepPhase.UP
        assert analyzer.exercise_state.rep_count == 1

    def test_shallow_oscillation_counts_nothing(self, squat_pose_factory):
        analyzer = MotionQualityAnalyzer("squat")
        results = _feed(analyzer, _squat_sequence(squat_pose_factory, [115, 140, 120, 135]))
        assert results[-1].rep_count == 0

    def test_plank_never_counts(self, squat_pose_factory):
        analyzer = MotionQualityAnalyzer("plank")
        results = _feed(analyzer, _squat_sequence(squat_pose_factory, [170, 90, 170, 90, 170]))
        assert all(result.rep_count == 0 for result in results)


class TestFaultHandling:

    def test_three_bad_frames_enter_fallback(self, standing_records):
        analyzer = MotionQualityAnalyzer("squat")
        first, second, third = _feed(analyzer, [[], None, "junk"])
        assert first.corrections == (DEFAULT_CORRECTION,)
        assert second.corrections == (DEFAULT_CORRECTION,)
        assert third.corrections == (FALLBACK_CORRECTION,)
        assert third.grade == QualityGrade.C
        assert analyzer.fault_state.fallback_active is True
        assert analyzer.fault_state.consecutive_errors == 3

    def test_clean_frame_leaves_fallback(self, standing_records):
        analyzer = MotionQualityAnalyzer("squat")
        _feed(analyzer, [[]] * 4)
        result = analyzer.analyze_frame(standing_records, timestamp=1.0)
        assert analyzer.fault_state.fallback_active is False
        assert analyzer.fault_state.consecutive_errors == 0
        assert FALLBACK_CORRECTION not in result.corrections
        assert "spinal_alignment" in result.group_scores

    def test_rejected_frame_commits_nothing(self, standing_records):
        analyzer = MotionQualityAnalyzer("squat")
        _feed(analyzer, [standing_records] * 3)
        weights = analyzer.adaptive_weights
        analyzer.analyze_frame(standing_records[:10], timestamp=5.0)
        assert len(analyzer.history) == 3
        assert analyzer.adaptive_weights == weights

    def test_scoring_fault_is_contained(self, standing_records, monkeypatch):
        analyzer = MotionQualityAnalyzer("squat")
        _feed(analyzer, [standing_records] * 3)
        weights = analyzer.adaptive_weights

        def boom(*args, **kwargs):
            raise RuntimeError("scorer exploded")

        monkeypatch.setattr(analyzer_module, "stability_index", boom)
        result = analyzer.analyze_frame(standing_records, timestamp=5.0)
        assert result.grade == QualityGrade.C
        assert result.corrections == (DEFAULT_CORRECTION,)
        assert len(analyzer.history) == 3
        assert analyzer.adaptive_weights == weights
        assert analyzer.fault_state.consecutive_errors == 1

    def test_error_rate_reported(self, standing_records):
        analyzer = MotionQualityAnalyzer("squat")
        analyzer.analyze_frame([], timestamp=0.0)
        analyzer.analyze_frame(standing_records, timestamp=0.1)
        assert analyzer.get_stats()["error_rate"] == 0.5

    def test_reset_starts_a_fresh_error_rate(self, standing_records):
        analyzer = MotionQualityAnalyzer("squat")
        _feed(analyzer, [[]] * 3)
        analyzer.reset()
        assert analyzer.get_stats()["error_rate"] == 0.0
        analyzer.analyze_frame(standing_records, timestamp=1.0)
        assert analyzer.get_stats()["error_rate"] == 0.0


class TestLifecycle:

    def test_reset_keeps_adaptive_weights(self, squat_pose_factory):
        analyzer = MotionQualityAnalyzer("squat")
        _feed(analyzer, _squat_sequence(squat_pose_factory, [170, 100, 165]))
        weights = analyzer.adaptive_weights
        assert weights

        analyzer.reset()
        assert analyzer.adaptive_weights == weights
        assert len(analyzer.history) == 0
        assert analyzer.exercise_state.rep_count == 0
        assert analyzer.fault_state.consecutive_errors == 0

    def test_switching_exercise_resets_rep_state_only(self, squat_pose_factory):
        analyzer = MotionQualityAnalyzer("squat")
        _feed(analyzer, _squat_sequence(squat_pose_factory, [170, 100, 165]))
        analyzer.analyze_frame([], timestamp=10.0)
        weights = analyzer.adaptive_weights
        history_len = len(analyzer.history)
        assert analyzer.exercise_state.rep_count == 1

        analyzer.set_exercise(ExerciseType.PUSHUP)
        assert analyzer.exercise_type == ExerciseType.PUSHUP
        assert analyzer.exercise_state.rep_count == 0
        assert analyzer.exercise_state.phase == RepPhase.UP
        assert analyzer.fault_state.consecutive_errors == 0
        assert len(analyzer.history) == history_len
        assert analyzer.adaptive_weights == weights

    def test_setting_same_exercise_is_a_no_op(self, squat_pose_factory):
        analyzer = MotionQualityAnalyzer("squat")
        _feed(analyzer, _squat_sequence(squat_pose_factory, [170, 100, 165]))
        analyzer.set_exercise("squat")
        assert analyzer.exercise_state.rep_count == 1

    def test_unknown_exercise(self):
        analyzer = MotionQualityAnalyzer("squat")
        with pytest.raises(UnknownExerciseError):
            analyzer.set_exercise("burpee")
        with pytest.raises(ValueError):
            MotionQualityAnalyzer("burpee")

    def test_instances_are_independent(self, standing_records):
        first = MotionQualityAnalyzer("squat")
        second = MotionQualityAnalyzer("squat")
        _feed(first, [standing_records] * 5)
        assert len(second.history) == 0
        assert second.adaptive_weights == {}


class TestUserLevel:

    @pytest.mark.parametrize("level,capacity", [
        (UserLevel.BEGINNER, 15),
        ("intermediate", 10),
        ("advanced", 8),
        (None, 15),
    ])
    def test_history_capacity(self, level, capacity):
        analyzer = MotionQualityAnalyzer("squat", user_level=level)
        assert analyzer.get_stats()["history_capacity"] == capacity

    def test_shrinking_keeps_recent_frames(self, standing_records):
        analyzer = MotionQualityAnalyzer("squat")
        _feed(analyzer, [standing_records] * 12)
        last = analyzer.history[-1]
        analyzer.set_user_level(UserLevel.ADVANCED)
        assert len(analyzer.history) == 8
        assert analyzer.history[-1] is last

    def test_unknown_level(self):
        with pytest.raises(ValueError):
            MotionQualityAnalyzer("squat", user_level="expert")

    def test_custom_config(self, standing_records):
        config = load_analyzer_config(history_size=4)
        analyzer = MotionQualityAnalyzer("squat", config=config)
        _feed(analyzer, [standing_records] * 10)
        assert len(analyzer.history) == 4


class TestSmoothingDiagnostics:

    def test_fresh_analyzer(self):
        stats = MotionQualityAnalyzer("squat").get_stats()
        assert stats["smoothing_confidence"] == 0.0
        assert stats["smoothing_quality"] == 0.5
        assert stats["sudden_movement"] is False

    def test_static_pose(self, standing_records):
        analyzer = MotionQualityAnalyzer("squat")
        _feed(analyzer, [standing_records] * 4)
        stats = analyzer.get_stats()
        assert stats["smoothing_confidence"] == pytest.approx(1.0)
        assert stats["smoothing_quality"] == pytest.approx(1.0)
        assert stats["sudden_movement"] is False

    def test_low_visibility_lowers_smoothing_confidence(self, pose_factory):
        analyzer = MotionQualityAnalyzer("squat")
        analyzer.analyze_frame(pose_factory(visibility=0.5), timestamp=0.0)
        assert analyzer.get_stats()["smoothing_confidence"] == 0.0

    def test_jump_is_flagged_for_one_frame(self, standing_records):
        analyzer = MotionQualityAnalyzer("squat")
        moved = [SimpleNamespace(x=r.x + 0.2, y=r.y, visibility=r.visibility) for r in standing_records]
        _feed(analyzer, [standing_records] * 3)

        analyzer.analyze_frame(moved, timestamp=1.0)
        stats = analyzer.get_stats()
        assert stats["sudden_movement"] is True
        assert stats["smoothing_quality"] < 1.0

        analyzer.analyze_frame(moved, timestamp=1.1)
        assert analyzer.get_stats()["sudden_movement"] is False

    def test_rejected_frame_keeps_diagnostics(self, standing_records):
        analyzer = MotionQualityAnalyzer("squat")
        _feed(analyzer, [standing_records] * 3)
        analyzer.analyze_frame([], timestamp=1.0)
        assert analyzer.get_stats()["smoothing_confidence"] == pytest.approx(1.0)

    def test_reset_clears_diagnostics(self, standing_records):
        analyzer = MotionQualityAnalyzer("squat")
        _feed(analyzer, [standing_records] * 3)
        analyzer.reset()
        stats = analyzer.get_stats()
        assert stats["smoothing_confidence"] == 0.0
        assert stats["smoothing_quality"] == 0.5
