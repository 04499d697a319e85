"""
Tests for the adaptive progression engine

Covers:
  1. Branch selection in calculate_next_week_targets
  2. Regression floor at the base weight
  3. Consecutive failure counting
  4. Best-set selection and PreviousWeekPerformance building
  5. Reason descriptions
"""

import pytest

from services.progression import (
    CompletedSet,
    DynamicProgressionEngine,
    ExerciseProgression,
    PreviousWeekPerformance,
    ProgressionReason,
    describe_reason,
    performance_history,
    select_best_set,
)


# ===================================================================
# Fixtures / helpers
# ===================================================================


def make_exercise(**overrides) -> ExerciseProgression:
    values = dict(
        exercise_id=1,
        plan_exercise_id=10,
        base_weight=100.0,
        base_reps=8,
        base_sets=3,
        weight_increment=5.0,
        min_reps=8,
        max_reps=12,
    )
    values.update(overrides)
    return ExerciseProgression(**values)


def make_performance(**overrides) -> PreviousWeekPerformance:
    values = dict(
        exercise_id=1,
        week_number=1,
        target_weight=100.0,
        target_reps=10,
        actual_weight=100.0,
        actual_reps=10,
        hit_target=True,
        consecutive_failures=0,
    )
    values.update(overrides)
    return PreviousWeekPerformance(**values)


@pytest.fixture
def engine():
    return DynamicProgressionEngine()


# ===================================================================
# GROUP 1: Branches
# ===================================================================


class TestNextWeekTargets:

    def test_no_history_is_first_week(self, engine):
        targets = engine.calculate_next_week_targets(make_exercise(), None)
        assert (targets.target_weight, targets.target_reps, targets.target_sets) == (100.0, 8, 3)
        assert targets.reason == ProgressionReason.FIRST_WEEK
        assert targets.week_number == 0

    def test_scenario_b_hit_max_reps_adds_weight(self, engine):
        previous = make_performance(actual_weight=100.0, actual_reps=12, hit_target=True)
        targets = engine.calculate_next_week_targets(make_exercise(), previous)
        assert targets.target_weight == 105.0
        assert targets.target_reps == 8
        assert targets.reason == ProgressionReason.HIT_MAX_REPS
        assert targets.week_number == 2

    def test_exceeding_max_reps_counts_as_hit_max(self, engine):
        previous = make_performance(actual_reps=15, hit_target=False)
        targets = engine.calculate_next_week_targets(make_exercise(), previous)
        assert targets.reason == ProgressionReason.HIT_MAX_REPS
        assert targets.target_weight == 105.0

    def test_hit_target_adds_one_rep(self, engine):
        previous = make_performance(actual_reps=10, hit_target=True)
        targets = engine.calculate_next_week_targets(make_exercise(), previous)
        assert (targets.target_weight, targets.target_reps) == (100.0, 11)
        assert targets.reason == ProgressionReason.HIT_TARGET

    def test_hit_target_rep_cap(self, engine):
        previous = make_performance(target_reps=11, actual_reps=11, hit_target=True)
        targets = engine.calculate_next_week_targets(make_exercise(), previous)
        assert targets.target_reps == 12

    def test_miss_above_floor_holds_prescription(self, engine):
        previous = make_performance(target_reps=10, actual_reps=9, hit_target=False)
        targets = engine.calculate_next_week_targets(make_exercise(), previous)
        assert (targets.target_weight, targets.target_reps) == (100.0, 10)
        assert targets.reason == ProgressionReason.HOLD

    def test_first_failure_holds_at_min_reps(self, engine):
        previous = make_performance(actual_reps=6, hit_target=False, consecutive_failures=1)
        targets = engine.calculate_next_week_targets(make_exercise(), previous)
        assert (targets.target_weight, targets.target_reps) == (100.0, 8)
        assert targets.reason == ProgressionReason.HOLD

    def test_second_failure_regresses(self, engine):
        exercise = make_exercise(base_weight=80.0)
        previous = make_performance(actual_weight=100.0, actual_reps=6, hit_target=False, consecutive_failures=2)
        targets = engine.calculate_next_week_targets(exercise, previous)
        assert (targets.target_weight, targets.target_reps) == (95.0, 8)
        assert targets.reason == ProgressionReason.REGRESS

    def test_scenario_c_regression_floor(self, engine):
        exercise = make_exercise(base_weight=80.0)
        previous = make_performance(
            target_weight=80.0, actual_weight=80.0, actual_reps=6, hit_target=False, consecutive_failures=2
        )
        targets = engine.calculate_next_week_targets(exercise, previous)
        assert targets.target_weight == 80.0
        assert targets.reason == ProgressionReason.REGRESS

    def test_deload_overrides_everything(self, engine):
        previous = make_performance(actual_weight=110.0, actual_reps=12, hit_target=True)
        targets = engine.calculate_next_week_targets(make_exercise(), previous, is_deload=True)
        assert targets.target_weight == 92.5
        assert targets.target_reps == 8
        assert targets.target_sets == 2
        assert targets.is_deload is True
        assert targets.reason == ProgressionReason.DELOAD

    def test_non_deload_keeps_base_sets(self, engine):
        previous = make_performance(actual_reps=12)
        targets = engine.calculate_next_week_targets(make_exercise(base_sets=4), previous)
        assert targets.target_sets == 4

    def test_fractional_increment(self, engine):
        previous = make_performance(actual_weight=50.0, actual_reps=12)
        targets = engine.calculate_next_week_targets(make_exercise(base_weight=40.0, weight_increment=1.25), previous)
        assert targets.target_weight == pytest.approx(51.25)

    @pytest.mark.parametrize("reps", [12, 13, 20])
    def test_max_reps_always_adds_exactly_one_increment(self, engine, reps):
        previous = make_performance(actual_weight=87.5, actual_reps=reps, hit_target=False)
        targets = engine.calculate_next_week_targets(make_exercise(weight_increment=2.5), previous)
        assert targets.target_weight == 90.0
        assert targets.target_reps == 8


class TestRegressionFloor:
    """Weight never falls below the base however long the failure streak."""

    def test_repeated_regressions_stop_at_base(self, engine):
        exercise = make_exercise(base_weight=90.0)
        weight = 110.0
        for week in range(1, 10):
            previous = make_performance(
                week_number=week,
                target_weight=weight,
                actual_weight=weight,
                actual_reps=5,
                hit_target=False,
                consecutive_failures=2,
            )
            weight = engine.calculate_next_week_targets(exercise, previous).target_weight
            assert weight >= exercise.base_weight
        assert weight == 90.0


# ===================================================================
# GROUP 2: Consecutive failures
# ===================================================================


class TestConsecutiveFailures:

    def test_counts_failures_at_same_weight(self, engine):
        history = [
            make_performance(week_number=3, actual_reps=6),
            make_performance(week_number=2, actual_reps=7),
            make_performance(week_number=1, actual_reps=6),
        ]
        assert engine.calculate_consecutive_failures(history, 100.0, 8) == 3

    def test_stops_at_success(self, engine):
        history = [
            make_performance(week_number=3, actual_reps=6),
            make_performance(week_number=2, actual_reps=9),
            make_performance(week_number=1, actual_reps=6),
        ]
        assert engine.calculate_consecutive_failures(history, 100.0, 8) == 1

    def test_stops_at_weight_change(self, engine):
        history = [
            make_performance(week_number=3, actual_reps=6),
            make_performance(week_number=2, target_weight=95.0, actual_weight=95.0, actual_reps=6),
        ]
        assert engine.calculate_consecutive_failures(history, 100.0, 8) == 1

    def test_empty_history(self, engine):
        assert engine.calculate_consecutive_failures([], 100.0, 8) == 0


# ===================================================================
# GROUP 3: Best set and performance building
# ===================================================================


class TestBestSet:

    def test_heavier_set_beats_more_reps(self):
        best = select_best_set([CompletedSet(100.0, 12), CompletedSet(105.0, 5)])
        assert (best.actual_weight, best.actual_reps) == (105.0, 5)

    def test_equal_weight_more_reps_wins(self):
        best = select_best_set([CompletedSet(100.0, 8), CompletedSet(100.0, 10), CompletedSet(95.0, 12)])
        assert (best.actual_weight, best.actual_reps) == (100.0, 10)

    def test_no_sets(self):
        assert select_best_set([]) is None


class TestBuildPreviousWeekPerformance:

    def test_returns_none_without_completed_sets(self, engine):
        assert engine.build_previous_week_performance(1, 2, 100.0, 10, [], 8) is None

    def test_hit_target_needs_weight_and_reps(self, engine):
        performance = engine.build_previous_week_performance(
            1, 2, 100.0, 10, [CompletedSet(100.0, 10), CompletedSet(100.0, 9)], 8
        )
        assert performance.hit_target is True
        assert performance.consecutive_failures == 0

    def test_heavier_best_set_can_miss_target(self, engine):
        performance = engine.build_previous_week_performance(
            1, 2, 100.0, 10, [CompletedSet(100.0, 12), CompletedSet(105.0, 5)], 8
        )
        assert (performance.actual_weight, performance.actual_reps) == (105.0, 5)
        assert performance.hit_target is False
        assert performance.consecutive_failures == 1

    def test_failure_extends_streak_at_same_weight(self, engine):
        history = [make_performance(week_number=1, target_weight=100.0, actual_reps=6, hit_target=False)]
        performance = engine.build_previous_week_performance(
            1, 2, 100.0, 8, [CompletedSet(100.0, 7)], 8, history
        )
        assert performance.consecutive_failures == 2

    def test_two_failures_then_regress(self, engine):
        exercise = make_exercise(base_weight=80.0)
        sessions = [
            {
                "exercise_id": 1,
                "week_number": week,
                "target_weight": 100.0,
                "target_reps": 8,
                "completed_sets": [CompletedSet(100.0, 6)],
            }
            for week in (1, 2)
        ]
        history = performance_history(engine, sessions, 8)
        assert [p.week_number for p in history] == [2, 1]
        assert history[0].consecutive_failures == 2

        targets = engine.calculate_next_week_targets(exercise, history[0])
        assert targets.reason == ProgressionReason.REGRESS
        assert targets.target_weight == 95.0
        assert targets.week_number == 3


class TestDescribeReason:

    def test_every_reason_has_a_description(self):
        for reason in ProgressionReason:
            assert describe_reason(reason)

    def test_accepts_raw_value(self):
        assert describe_reason("deload") == describe_reason(ProgressionReason.DELOAD)
