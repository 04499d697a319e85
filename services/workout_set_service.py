"""
Workout Set Service

Per-set logging, skipping and undo, plus adding or removing one set of an
exercise inside a workout. Set-count changes are carried forward to the
other future workouts of the same training day.

Workout state machine:
    pending → in_progress (first set logged or skipped)
            → completed | skipped (WorkoutService)

Completed and skipped workouts reject every set operation.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Callable, Optional

from sqlalchemy.orm import Session

from core.exceptions import InvalidInputError, InvalidTransitionError, NotFoundError, UpdateFailedError
from core.logging import log_context
from models import Workout, WorkoutSet
from repositories import create_repositories
from schemas import LogWorkoutSetInput
from services import plan_audit
from services.plan_modification import PlanModificationResult, PlanModificationService
from services.progression import SetStatus, WorkoutStatus
from services.progression.constants import TERMINAL_WORKOUT_STATUSES

logger = logging.getLogger(__name__)


@dataclass
class ModifySetCountResult:
    current_workout_set: Optional[WorkoutSet]
    propagation: PlanModificationResult = field(default_factory=PlanModificationResult)

    @property
    def future_workouts_affected(self) -> int:
        return self.propagation.affected_workout_count

    @property
    def future_sets_modified(self) -> int:
        return (
            self.propagation.added_sets_count
            + self.propagation.removed_sets_count
            + self.propagation.modified_sets_count
        )


class WorkoutSetService:
    def __init__(self, db: Session, today: Callable[[], date] = date.today):
        self.db = db
        self.repos = create_repositories(db)
        self.today = today

    # -------------------------------------------------------------------------
    # Logging
    # -------------------------------------------------------------------------

    def log(self, set_id: int, data: LogWorkoutSetInput) -> WorkoutSet:
        """Record actual reps/weight; starts the workout if it is still pending."""
        workout_set = self._get_set(set_id)
        if data.actual_reps < 0:
            raise InvalidInputError("Reps must be a non-negative number", field="actual_reps")
        if data.actual_weight < 0:
            raise InvalidInputError("Weight must be a non-negative number", field="actual_weight")

        workout = self._get_open_workout(workout_set.workout_id, "log sets for")
        self._auto_start(workout)
        return self._update_set(
            set_id,
            actual_reps=data.actual_reps,
            actual_weight=data.actual_weight,
            status=SetStatus.COMPLETED.value,
        )

    def skip(self, set_id: int) -> WorkoutSet:
        workout_set = self._get_set(set_id)
        workout = self._get_open_workout(workout_set.workout_id, "skip sets for")
        self._auto_start(workout)
        return self._update_set(
            set_id,
            actual_reps=None,
            actual_weight=None,
            status=SetStatus.SKIPPED.value,
        )

    def unlog(self, set_id: int) -> WorkoutSet:
        """Revert a set to pending. The workout keeps its status."""
        workout_set = self._get_set(set_id)
        self._get_open_workout(workout_set.workout_id, "unlog sets for")
        return self._update_set(
            set_id,
            actual_reps=None,
            actual_weight=None,
            status=SetStatus.PENDING.value,
        )

    # -------------------------------------------------------------------------
    # Set count
    # -------------------------------------------------------------------------

    def add_set_to_exercise(self, workout_id: int, exercise_id: int) -> ModifySetCountResult:
        """
        Append one set, copying targets from the highest-numbered set.

        The new count is carried forward to the other future workouts of the
        same training day.
        """
        workout = self._get_open_workout(workout_id, "add sets to")
        existing = self.repos.workout_set.find_by_workout_and_exercise(workout_id, exercise_id)
        if not existing:
            raise NotFoundError("WorkoutSet", f"exercise {exercise_id} in workout {workout_id}")

        last = existing[-1]
        new_set = self.repos.workout_set.create(
            workout_id=workout_id,
            exercise_id=exercise_id,
            set_number=last.set_number + 1,
            target_reps=last.target_reps,
            target_weight=last.target_weight,
            status=SetStatus.PENDING.value,
        )
        propagation = self._propagate_set_count(workout, exercise_id, len(existing), len(existing) + 1)
        return ModifySetCountResult(current_workout_set=new_set, propagation=propagation)

    def remove_set_from_exercise(self, workout_id: int, exercise_id: int) -> ModifySetCountResult:
        """
        Delete the highest-numbered pending set.

        The last remaining set is never removed, and logged sets are never
        touched.
        """
        workout = self._get_open_workout(workout_id, "remove sets from")
        existing = self.repos.workout_set.find_by_workout_and_exercise(workout_id, exercise_id)
        if not existing:
            raise NotFoundError("WorkoutSet", f"exercise {exercise_id} in workout {workout_id}")
        if len(existing) == 1:
            raise InvalidTransitionError("Cannot remove the last set from an exercise")

        pending = [s for s in existing if s.status == SetStatus.PENDING.value]
        if not pending:
            raise InvalidTransitionError("No pending sets to remove")

        to_remove = max(pending, key=lambda s: s.set_number)
        if not self.repos.workout_set.delete(to_remove.id):
            logger.error(f"Failed to delete workout set {to_remove.id}")
            raise UpdateFailedError("WorkoutSet", to_remove.id)

        propagation = self._propagate_set_count(workout, exercise_id, len(existing), len(existing) - 1)
        return ModifySetCountResult(current_workout_set=None, propagation=propagation)

    def _propagate_set_count(
        self,
        workout: Workout,
        exercise_id: int,
        old_count: int,
        new_count: int,
    ) -> PlanModificationResult:
        exercise = self.repos.exercise.find_by_id(exercise_id)
        if exercise is None:
            raise NotFoundError("Exercise", exercise_id)

        template = self.repos.plan_day_exercise.find_by_plan_day_and_exercise(workout.plan_day_id, exercise_id)
        if template is None:
            # Exercise is no longer part of the day's template
            logger.debug(f"No template for exercise {exercise_id} on plan day {workout.plan_day_id}; not propagating",
                         extra=log_context(workout_id=workout.id, exercise_id=exercise_id))
            return PlanModificationResult()

        base_sets = new_count
        if self._is_deload_workout(workout):
            # A deload count is a reduced count; move the template base by the same delta
            base_sets = max(1, template.sets + new_count - old_count)

        result = PlanModificationService(self.db, today=self.today).update_exercise_targets_for_future_workouts(
            workout.mesocycle_id,
            workout.plan_day_id,
            exercise_id,
            {"sets": base_sets},
            exercise.weight_increment,
            exclude_workout_id=workout.id,
        )
        plan_audit.log_set_count_change(
            self.db,
            mesocycle_id=workout.mesocycle_id,
            plan_day_id=workout.plan_day_id,
            exercise_id=exercise_id,
            workout_id=workout.id,
            old_count=old_count,
            new_count=new_count,
            result=result.to_dict(),
        )
        return result

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _get_set(self, set_id: int) -> WorkoutSet:
        workout_set = self.repos.workout_set.find_by_id(set_id)
        if workout_set is None:
            raise NotFoundError("WorkoutSet", set_id)
        return workout_set

    def _is_deload_workout(self, workout: Workout) -> bool:
        mesocycle = self.repos.mesocycle.find_by_id(workout.mesocycle_id)
        if mesocycle is None:
            raise NotFoundError("Mesocycle", workout.mesocycle_id)
        return workout.week_number - 1 == mesocycle.plan.duration_weeks

    def _get_open_workout(self, workout_id: int, action: str) -> Workout:
        workout = self.repos.workout.find_by_id(workout_id)
        if workout is None:
            raise NotFoundError("Workout", workout_id)
        if workout.status in TERMINAL_WORKOUT_STATUSES:
            raise InvalidTransitionError(f"Cannot {action} a {workout.status} workout")
        return workout

    def _auto_start(self, workout: Workout) -> None:
        if workout.status != WorkoutStatus.PENDING.value:
            return
        updated = self.repos.workout.update(
            workout.id,
            status=WorkoutStatus.IN_PROGRESS.value,
            started_at=datetime.now(timezone.utc),
        )
        if updated is None:
            logger.error(f"Failed to start workout {workout.id}")
            raise UpdateFailedError("Workout", workout.id)
        logger.info(f"Workout {workout.id} started")

    def _update_set(self, set_id: int, **fields) -> WorkoutSet:
        updated = self.repos.workout_set.update(set_id, **fields)
        if updated is None:
            logger.error(f"Failed to update workout set {set_id}")
            raise UpdateFailedError("WorkoutSet", set_id)
        return updated
