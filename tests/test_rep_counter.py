"""Tests for the repetition state machine and rep signals."""

import pytest

from motion_coach.motion_analysis.rep_counter import (
    REP_SIGNAL_REGISTRY,
    RepStateMachine,
    get_rep_signal,
    knee_angle,
    trunk_lift,
)
from motion_coach.motion_analysis.results import ExerciseState, RepPhase


class TestRepStateMachine:

    def test_initial_state(self):
        machine = RepStateMachine(110, 150)
        assert machine.state == ExerciseState(RepPhase.UP, 0)

    def test_full_squat_counts_once(self):
        machine = RepStateMachine(110, 150)
        completed = [machine.update(angle) for angle in [170, 170, 100, 95, 160, 165]]
        assert machine.rep_count == 1
        assert completed == [False, False, False, False, True, False]
        assert machine.phase == RepPhase.UP

    def test_oscillation_inside_gap_never_counts(self):
        machine = RepStateMachine(110, 150)
        for angle in [115, 140, 120, 135]:
            machine.update(angle)
        assert machine.rep_count == 0
        assert machine.phase == RepPhase.UP

    def test_bottom_without_return_stays_down(self):
        machine = RepStateMachine(110, 150)
        for angle in [170, 100, 130, 140]:
            machine.update(angle)
        assert machine.phase == RepPhase.DOWN
        assert machine.rep_count == 0

    def test_multiple_reps(self):
        machine = RepStateMachine(90, 160)
        for _ in range(3):
            for angle in [170, 80, 170]:
                machine.update(angle)
        assert machine.rep_count == 3

    def test_missing_values_ignored(self):
        machine = RepStateMachine(110, 150)
        for angle in [170, None, 100, float("nan"), 160]:
            machine.update(angle)
        assert machine.rep_count == 1

    def test_peek_does_not_mutate(self):
        machine = RepStateMachine(110, 150)
        assert machine.peek(100) == ExerciseState(RepPhase.DOWN, 0)
        assert machine.state == ExerciseState(RepPhase.UP, 0)
        machine.update(100)
        assert machine.peek(160) == ExerciseState(RepPhase.UP, 1)
        assert machine.rep_count == 0

    def test_reset(self):
        machine = RepStateMachine(110, 150)
        for angle in [100, 160, 100]:
            machine.update(angle)
        machine.reset()
        assert machine.state == ExerciseState(RepPhase.UP, 0)

    def test_invalid_thresholds(self):
        with pytest.raises(ValueError):
            RepStateMachine(150, 110)


class TestRepSignals:

    def test_registry(self):
        assert {"knee_angle", "elbow_angle", "trunk_lift"} <= set(REP_SIGNAL_REGISTRY)
        with pytest.raises(ValueError):
            get_rep_signal("jump_height")

    def test_standing_knee_angle(self, standing_frame):
        assert knee_angle(standing_frame) == pytest.approx(180.0)

    @pytest.mark.parametrize("angle", [170, 120, 95])
    def test_squat_knee_angle(self, angle, frame_factory, squat_pose_factory):
        frame = frame_factory(squat_pose_factory(angle))
        assert knee_angle(frame) == pytest.approx(angle, abs=1e-6)

    def test_hidden_legs_give_no_signal(self, frame_factory, pose_factory):
        frame = frame_factory(pose_factory(visibility=0.2))
        assert knee_angle(frame) is None

    def test_trunk_lift_lying_flat(self, frame_factory, pose_factory):
        # shoulder, hip and knee on one horizontal line
        frame = frame_factory(pose_factory({11: (0.2, 0.8), 12: (0.2, 0.8), 23: (0.5, 0.8), 24: (0.5, 0.8),
                                            25: (0.7, 0.8), 26: (0.7, 0.8)}))
        assert trunk_lift(frame) == pytest.approx(0.0, abs=1e-6)

    def test_trunk_lift_sitting_up(self, frame_factory, pose_factory):
        # trunk vertical over the hip, thigh horizontal
        frame = frame_factory(pose_factory({11: (0.5, 0.5), 12: (0.5, 0.5), 23: (0.5, 0.8), 24: (0.5, 0.8),
                                            25: (0.7, 0.8), 26: (0.7, 0.8)}))
        assert trunk_lift(frame) == pytest.approx(90.0)
