"""
Tests for set logging and per-workout set count changes.
"""

from datetime import date

import pytest

from core.exceptions import InvalidInputError, InvalidTransitionError, NotFoundError
from models import PlanModificationLog
from schemas import LogWorkoutSetInput
from services.workout_service import WorkoutService
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
def schedule(db_session, bench, monday):
    plan, day, rows = make_plan(db_session, [(bench, 3, 8, 100.0)], duration_weeks=3)
    mesocycle = start_mesocycle(db_session, plan, monday)
    return mesocycle, workouts_of(db_session, mesocycle)


@pytest.fixture
def service(db_session, monday):
    return WorkoutSetService(db_session, today=fixed_clock(monday))


class TestLogging:

    def test_log_records_actuals_and_starts_workout(self, db_session, service, schedule, bench):
        _, workouts = schedule
        first_set = sets_of(db_session, workouts[0], bench)[0]

        logged = service.log(first_set.id, LogWorkoutSetInput(actual_reps=9, actual_weight=100.0))

        assert (logged.status, logged.actual_reps, logged.actual_weight) == ("completed", 9, 100.0)
        assert workouts[0].status == "in_progress"
        assert workouts[0].started_at is not None

    def test_zero_reps_allowed(self, db_session, service, schedule, bench):
        _, workouts = schedule
        first_set = sets_of(db_session, workouts[0], bench)[0]
        logged = service.log(first_set.id, LogWorkoutSetInput(actual_reps=0, actual_weight=0.0))
        assert logged.actual_reps == 0

    @pytest.mark.parametrize(
        "reps, weight, message",
        [
            (-1, 100.0, "Reps must be a non-negative number"),
            (8, -5.0, "Weight must be a non-negative number"),
        ],
    )
    def test_negative_values_rejected(self, db_session, service, schedule, bench, reps, weight, message):
        _, workouts = schedule
        first_set = sets_of(db_session, workouts[0], bench)[0]

        with pytest.raises(InvalidInputError) as exc:
            service.log(first_set.id, LogWorkoutSetInput(actual_reps=reps, actual_weight=weight))

        assert exc.value.detail == message
        assert first_set.status == "pending"
        assert workouts[0].status == "pending"

    def test_skip_set(self, db_session, service, schedule, bench):
        _, workouts = schedule
        first_set = sets_of(db_session, workouts[0], bench)[0]
        skipped = service.skip(first_set.id)
        assert skipped.status == "skipped"
        assert skipped.actual_reps is None
        assert workouts[0].status == "in_progress"

    def test_unlog_reverts_to_pending(self, db_session, service, schedule, bench):
        _, workouts = schedule
        first_set = sets_of(db_session, workouts[0], bench)[0]
        service.log(first_set.id, LogWorkoutSetInput(actual_reps=8, actual_weight=100.0))

        reverted = service.unlog(first_set.id)

        assert (reverted.status, reverted.actual_reps, reverted.actual_weight) == ("pending", None, None)
        assert workouts[0].status == "in_progress"

    def test_completed_workout_rejects_logging(self, db_session, service, schedule, bench):
        _, workouts = schedule
        sets = sets_of(db_session, workouts[0], bench)
        service.log(sets[0].id, LogWorkoutSetInput(actual_reps=8, actual_weight=100.0))
        WorkoutService(db_session).complete(workouts[0].id)

        with pytest.raises(InvalidTransitionError) as exc:
            service.log(sets[1].id, LogWorkoutSetInput(actual_reps=8, actual_weight=100.0))
        assert exc.value.detail == "Cannot log sets for a completed workout"

    def test_skipped_workout_rejects_unlog(self, db_session, service, schedule, bench):
        _, workouts = schedule
        WorkoutService(db_session).skip(workouts[1].id)
        first_set = sets_of(db_session, workouts[1], bench)[0]
        with pytest.raises(InvalidTransitionError):
            service.unlog(first_set.id)

    def test_unknown_set(self, service, schedule):
        with pytest.raises(NotFoundError):
            service.log(99999, LogWorkoutSetInput(actual_reps=8, actual_weight=100.0))


class TestSetCount:

    def test_add_set_copies_targets_and_propagates(self, db_session, service, schedule, bench):
        mesocycle, workouts = schedule

        result = service.add_set_to_exercise(workouts[1].id, bench.id)

        new_set = result.current_workout_set
        assert (new_set.set_number, new_set.target_weight, new_set.target_reps) == (4, 100.0, 9)
        assert new_set.status == "pending"
        # Weeks 1 and 3 gain a set; deload week already has half of 4
        assert result.future_workouts_affected == 2
        assert result.future_sets_modified == 2
        assert [len(sets_of(db_session, w, bench)) for w in workouts] == [4, 4, 4, 2]

    def test_add_set_logs_audit_row(self, db_session, service, schedule, bench):
        mesocycle, workouts = schedule
        service.add_set_to_exercise(workouts[0].id, bench.id)
        db_session.flush()

        log = db_session.query(PlanModificationLog).filter_by(mesocycle_id=mesocycle.id).one()
        assert log.action == "set_count_change"
        assert log.source == "workout"
        assert log.before_state == {"workout_id": workouts[0].id, "sets": 3}
        assert log.after_state == {"workout_id": workouts[0].id, "sets": 4}

    def test_remove_set_takes_highest_pending(self, db_session, service, schedule, bench):
        _, workouts = schedule

        result = service.remove_set_from_exercise(workouts[0].id, bench.id)

        assert result.current_workout_set is None
        assert [s.set_number for s in sets_of(db_session, workouts[0], bench)] == [1, 2]
        # Weeks 2 and 3 drop to two sets, the deload week to one
        assert result.future_workouts_affected == 3
        assert [len(sets_of(db_session, w, bench)) for w in workouts] == [2, 2, 2, 1]

    def test_remove_skips_logged_last_set(self, db_session, service, schedule, bench):
        _, workouts = schedule
        sets = sets_of(db_session, workouts[0], bench)
        service.log(sets[2].id, LogWorkoutSetInput(actual_reps=8, actual_weight=100.0))

        service.remove_set_from_exercise(workouts[0].id, bench.id)

        remaining = sets_of(db_session, workouts[0], bench)
        assert [s.set_number for s in remaining] == [1, 3]
        assert remaining[-1].status == "completed"

    def test_cannot_remove_last_set(self, db_session, service, schedule, bench):
        _, workouts = schedule
        deload = workouts[-1]
        service.remove_set_from_exercise(deload.id, bench.id)

        with pytest.raises(InvalidTransitionError) as exc:
            service.remove_set_from_exercise(deload.id, bench.id)
        assert exc.value.detail == "Cannot remove the last set from an exercise"

    def test_deload_removal_moves_base_by_one(self, db_session, service, schedule, bench):
        _, workouts = schedule

        service.remove_set_from_exercise(workouts[-1].id, bench.id)

        # The deload count (2 -> 1) is not a base count; working weeks go 3 -> 2
        assert [len(sets_of(db_session, w, bench)) for w in workouts] == [2, 2, 2, 1]

    def test_deload_addition_moves_base_by_one(self, db_session, service, schedule, bench):
        _, workouts = schedule

        service.add_set_to_exercise(workouts[-1].id, bench.id)

        assert [len(sets_of(db_session, w, bench)) for w in workouts] == [4, 4, 4, 3]

    def test_no_pending_sets_to_remove(self, db_session, service, schedule, bench):
        _, workouts = schedule
        for workout_set in sets_of(db_session, workouts[0], bench):
            service.log(workout_set.id, LogWorkoutSetInput(actual_reps=8, actual_weight=100.0))

        with pytest.raises(InvalidTransitionError) as exc:
            service.remove_set_from_exercise(workouts[0].id, bench.id)
        assert exc.value.detail == "No pending sets to remove"

    def test_exercise_not_in_workout(self, db_session, service, schedule):
        _, workouts = schedule
        squat = make_exercise(db_session, "Back Squat")
        with pytest.raises(NotFoundError):
            service.add_set_to_exercise(workouts[0].id, squat.id)

    def test_terminal_workout_rejects_set_changes(self, db_session, service, schedule, bench):
        _, workouts = schedule
        WorkoutService(db_session).skip(workouts[0].id)
        with pytest.raises(InvalidTransitionError) as exc:
            service.add_set_to_exercise(workouts[0].id, bench.id)
        assert exc.value.detail == "Cannot add sets to a skipped workout"

    def test_past_workouts_not_propagated(self, db_session, schedule, bench):
        _, workouts = schedule
        later = WorkoutSetService(db_session, today=fixed_clock(date(2030, 1, 20)))

        result = later.add_set_to_exercise(workouts[2].id, bench.id)

        # Only the deload week is still ahead, and it already has two sets
        assert result.future_workouts_affected == 0
        assert [len(sets_of(db_session, w, bench)) for w in workouts] == [3, 3, 4, 2]
