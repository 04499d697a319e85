"""
Tests for exercise history, personal records and adaptive next-week targets.
"""

import pytest

from core.exceptions import NotFoundError
from schemas import LogWorkoutSetInput
from services.exercise_history import build_performance_history, get_exercise_history, get_next_week_targets
from services.progression import ProgressionReason
from services.workout_set_service import WorkoutSetService

from fixtures.training_fixtures import (
    fixed_clock,
    make_exercise,
    make_plan,
    sets_of,
    start_mesocycle,
    workouts_of,
)


@pytest.fixture
def bench(db_session):
    return make_exercise(db_session, "Bench Press")


@pytest.fixture
def cycle(db_session, bench, monday):
    plan, day, rows = make_plan(db_session, [(bench, 3, 8, 100.0)], duration_weeks=3)
    mesocycle = start_mesocycle(db_session, plan, monday)
    return mesocycle, rows[0], workouts_of(db_session, mesocycle)


def log_workout(db, workout, exercise, performances, today):
    """Log (weight, reps) pairs into the workout's sets in order."""
    service = WorkoutSetService(db, today=fixed_clock(today))
    for workout_set, (weight, reps) in zip(sets_of(db, workout, exercise), performances):
        service.log(workout_set.id, LogWorkoutSetInput(actual_reps=reps, actual_weight=weight))


class TestExerciseHistory:

    def test_sessions_oldest_first_with_best_set(self, db_session, cycle, bench, monday):
        _, _, workouts = cycle
        log_workout(db_session, workouts[0], bench, [(100.0, 8), (100.0, 8), (100.0, 7)], monday)
        log_workout(db_session, workouts[1], bench, [(100.0, 10), (102.5, 6)], monday)

        history = get_exercise_history(db_session, bench.id)

        assert [s.workout_id for s in history.sessions] == [workouts[0].id, workouts[1].id]
        assert len(history.sessions[0].sets) == 3
        assert (history.sessions[0].best_weight, history.sessions[0].best_set_reps) == (100.0, 8)
        assert (history.sessions[1].best_weight, history.sessions[1].best_set_reps) == (102.5, 6)

    def test_personal_record(self, db_session, cycle, bench, monday):
        _, _, workouts = cycle
        log_workout(db_session, workouts[0], bench, [(100.0, 8)], monday)
        log_workout(db_session, workouts[1], bench, [(105.0, 5)], monday)
        log_workout(db_session, workouts[2], bench, [(105.0, 4)], monday)

        history = get_exercise_history(db_session, bench.id)

        assert (history.personal_record.actual_weight, history.personal_record.actual_reps) == (105.0, 5)
        assert history.personal_record_date == workouts[1].scheduled_date

    def test_skipped_and_pending_sets_ignored(self, db_session, cycle, bench, monday):
        _, _, workouts = cycle
        service = WorkoutSetService(db_session, today=fixed_clock(monday))
        service.skip(sets_of(db_session, workouts[0], bench)[0].id)

        history = get_exercise_history(db_session, bench.id)
        assert history.sessions == []
        assert history.personal_record is None

    def test_unknown_exercise(self, db_session):
        with pytest.raises(NotFoundError):
            get_exercise_history(db_session, 9999)


class TestPerformanceHistory:

    def test_newest_first_with_zero_based_weeks(self, db_session, cycle, bench, monday):
        _, _, workouts = cycle
        log_workout(db_session, workouts[0], bench, [(100.0, 8)], monday)
        log_workout(db_session, workouts[1], bench, [(100.0, 9)], monday)

        history = build_performance_history(db_session, bench.id, 8)

        assert [p.week_number for p in history] == [1, 0]
        assert history[0].target_reps == 9
        assert all(p.hit_target for p in history)


class TestNextWeekTargets:

    def test_no_history_uses_baseline(self, db_session, cycle):
        mesocycle, row, _ = cycle
        targets = get_next_week_targets(db_session, mesocycle.id, row.id)
        assert (targets.target_weight, targets.target_reps, targets.target_sets) == (100.0, 8, 3)
        assert targets.reason == ProgressionReason.FIRST_WEEK

    def test_max_reps_adds_weight(self, db_session, cycle, bench, monday):
        mesocycle, row, workouts = cycle
        log_workout(db_session, workouts[0], bench, [(100.0, 12), (100.0, 11), (100.0, 10)], monday)

        targets = get_next_week_targets(db_session, mesocycle.id, row.id)

        assert (targets.target_weight, targets.target_reps) == (105.0, 8)
        assert targets.reason == ProgressionReason.HIT_MAX_REPS
        assert targets.week_number == 1

    def test_two_failures_regress_to_floor(self, db_session, cycle, bench, monday):
        mesocycle, row, workouts = cycle
        log_workout(db_session, workouts[0], bench, [(100.0, 6)], monday)
        log_workout(db_session, workouts[1], bench, [(100.0, 6)], monday)

        targets = get_next_week_targets(db_session, mesocycle.id, row.id)

        # Regression never drops below the 100.0 base
        assert targets.reason == ProgressionReason.REGRESS
        assert (targets.target_weight, targets.target_reps) == (100.0, 8)

    def test_week_before_deload_triggers_deload(self, db_session, cycle, bench, monday):
        mesocycle, row, workouts = cycle
        log_workout(db_session, workouts[2], bench, [(105.0, 8), (105.0, 8), (105.0, 8)], monday)

        targets = get_next_week_targets(db_session, mesocycle.id, row.id)

        assert targets.is_deload is True
        assert (targets.target_weight, targets.target_reps, targets.target_sets) == (90.0, 8, 2)

    def test_unknown_plan_exercise(self, db_session, cycle):
        mesocycle, _, _ = cycle
        with pytest.raises(NotFoundError):
            get_next_week_targets(db_session, mesocycle.id, 9999)
