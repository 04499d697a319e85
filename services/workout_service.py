"""
Workout Service

Whole-workout transitions: start, complete, skip. Per-set operations live
in WorkoutSetService.
"""
import logging
from datetime import date, datetime, timezone
from sqlalchemy.orm import Session
from typing import Callable, List, Optional

from core.exceptions import InvalidTransitionError, NotFoundError, UpdateFailedError
from models import Workout, WorkoutSet
from repositories import create_repositories
from services.progression import SetStatus, WorkoutStatus

logger = logging.getLogger(__name__)


class WorkoutService:
    def __init__(self, db: Session, today: Callable[[], date] = date.today):
        self.db = db
        self.repos = create_repositories(db)
        self.today = today

    def get_workout(self, workout_id: int) -> Workout:
        workout = self.repos.workout.find_by_id(workout_id)
        if workout is None:
            raise NotFoundError("Workout", workout_id)
        return workout

    def get_sets(self, workout_id: int) -> List[WorkoutSet]:
        self.get_workout(workout_id)
        return self.repos.workout_set.find_by_workout(workout_id)

    def get_todays_workout(self) -> Optional[Workout]:
        """The active mesocycle's workout scheduled for today, if any."""
        active = self.repos.mesocycle.find_active()
        if not active:
            return None
        today = self.today()
        for workout in self.repos.workout.find_by_mesocycle(active[0].id):
            if workout.scheduled_date == today:
                return workout
        return None

    def start(self, workout_id: int) -> Workout:
        workout = self.get_workout(workout_id)
        if workout.status != WorkoutStatus.PENDING.value:
            raise InvalidTransitionError(f"Cannot start a workout that is {workout.status}")
        return self._transition(
            workout,
            status=WorkoutStatus.IN_PROGRESS.value,
            started_at=datetime.now(timezone.utc),
        )

    def complete(self, workout_id: int) -> Workout:
        """
        Finish an in-progress workout.

        Sets left pending stay pending. The mesocycle's current week moves
        up to this workout's week.
        """
        workout = self.get_workout(workout_id)
        if workout.status != WorkoutStatus.IN_PROGRESS.value:
            raise InvalidTransitionError("Cannot complete workout that is not in progress")

        completed = self._transition(
            workout,
            status=WorkoutStatus.COMPLETED.value,
            completed_at=datetime.now(timezone.utc),
        )

        mesocycle = self.repos.mesocycle.find_by_id(workout.mesocycle_id)
        if mesocycle is not None and workout.week_number > mesocycle.current_week:
            self.repos.mesocycle.update(mesocycle.id, current_week=workout.week_number)
        return completed

    def skip(self, workout_id: int) -> Workout:
        """Skip a pending or in-progress workout; its pending sets become skipped."""
        workout = self.get_workout(workout_id)
        if workout.status not in (WorkoutStatus.PENDING.value, WorkoutStatus.IN_PROGRESS.value):
            raise InvalidTransitionError(f"Cannot skip a {workout.status} workout")

        for workout_set in self.repos.workout_set.find_by_workout(workout_id):
            if workout_set.status == SetStatus.PENDING.value:
                self._skip_set(workout_set.id)

        return self._transition(workout, status=WorkoutStatus.SKIPPED.value)

    def _skip_set(self, set_id: int) -> None:
        if self.repos.workout_set.update(set_id, status=SetStatus.SKIPPED.value) is None:
            logger.error(f"Failed to skip workout set {set_id}")
            raise UpdateFailedError("WorkoutSet", set_id)

    def _transition(self, workout: Workout, **fields) -> Workout:
        updated = self.repos.workout.update(workout.id, **fields)
        if updated is None:
            logger.error(f"Failed to update workout {workout.id}")
            raise UpdateFailedError("Workout", workout.id)
        logger.info(f"Workout {workout.id} -> {updated.status}")
        return updated
