"""
Mesocycle Service

Creates, starts and closes mesocycles. Starting one materializes every
workout and set of the cycle with the static progression, assuming each
week before is completed; the adaptive engine adjusts on demand later.

Schedule:
    week_number 1..N      working weeks
    week_number N + 1     deload week
    scheduled_date        start_date + 7 * (week_number - 1) days, moved
                          forward to the plan day's weekday (0 = Sunday)
"""

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Callable, Dict, List, Optional

from sqlalchemy.orm import Session

from core.exceptions import InvalidInputError, InvalidTransitionError, NotFoundError, UpdateFailedError
from core.logging import log_context
from models import Mesocycle, PlanDay
from repositories import create_repositories
from services.plan_service import to_exercise_progression
from services.progression import MesocycleStatus, ProgressionCalculator, SetStatus, WorkoutStatus

logger = logging.getLogger(__name__)


def sunday_based_weekday(day: date) -> int:
    """0 = Sunday ... 6 = Saturday."""
    return (day.weekday() + 1) % 7


def scheduled_date_for(start_date: date, week_number: int, day_of_week: int) -> date:
    week_start = start_date + timedelta(weeks=week_number - 1)
    offset = (day_of_week - sunday_based_weekday(week_start)) % 7
    return week_start + timedelta(days=offset)


@dataclass
class WeekSummary:
    week_number: int
    is_deload: bool
    total_workouts: int = 0
    completed_workouts: int = 0
    skipped_workouts: int = 0
    total_sets: int = 0
    completed_sets: int = 0


@dataclass
class MesocycleSummary:
    mesocycle: Mesocycle
    working_weeks: int
    weeks: List[WeekSummary] = field(default_factory=list)

    @property
    def total_workouts(self) -> int:
        return sum(w.total_workouts for w in self.weeks)

    @property
    def completed_workouts(self) -> int:
        return sum(w.completed_workouts for w in self.weeks)

    @property
    def total_sets(self) -> int:
        return sum(w.total_sets for w in self.weeks)

    @property
    def completed_sets(self) -> int:
        return sum(w.completed_sets for w in self.weeks)


class MesocycleService:
    def __init__(self, db: Session, today: Callable[[], date] = date.today):
        self.db = db
        self.repos = create_repositories(db)
        self.today = today

    def create(self, plan_id: int, start_date: date) -> Mesocycle:
        plan = self.repos.plan.find_by_id(plan_id)
        if plan is None:
            raise NotFoundError("Plan", plan_id)
        if not self.repos.plan_day.find_by_plan(plan_id):
            raise InvalidInputError("Plan has no workout days configured", field="plan_id")

        mesocycle = self.repos.mesocycle.create(
            plan_id=plan_id,
            start_date=start_date,
            current_week=1,
            status=MesocycleStatus.PENDING.value,
        )
        logger.info(f"Created mesocycle {mesocycle.id} for plan {plan_id} starting {start_date.isoformat()}")
        return mesocycle

    def get(self, mesocycle_id: int) -> Mesocycle:
        mesocycle = self.repos.mesocycle.find_by_id(mesocycle_id)
        if mesocycle is None:
            raise NotFoundError("Mesocycle", mesocycle_id)
        return mesocycle

    def get_active(self) -> Optional[Mesocycle]:
        active = self.repos.mesocycle.find_active()
        return active[0] if active else None

    def list_mesocycles(self) -> List[Mesocycle]:
        """Newest start date first."""
        return sorted(self.repos.mesocycle.find_all(), key=lambda m: (m.start_date, m.id), reverse=True)

    def start(self, mesocycle_id: int) -> Mesocycle:
        """
        Activate a pending mesocycle and materialize its schedule.

        Only one mesocycle may be active at a time.
        """
        mesocycle = self.get(mesocycle_id)
        if mesocycle.status != MesocycleStatus.PENDING.value:
            raise InvalidTransitionError("Only pending mesocycles can be started")
        if self.repos.mesocycle.find_active():
            raise InvalidTransitionError("An active mesocycle already exists")

        started = self.repos.mesocycle.update(mesocycle_id, status=MesocycleStatus.ACTIVE.value)
        if started is None:
            logger.error(f"Failed to start mesocycle {mesocycle_id}")
            raise UpdateFailedError("Mesocycle", mesocycle_id)

        workout_count, set_count = self._materialize(started)
        logger.info(
            f"Started mesocycle {mesocycle_id}: {workout_count} workouts, {set_count} sets scheduled",
            extra=log_context(mesocycle_id=mesocycle_id, plan_id=started.plan_id, start_date=started.start_date),
        )
        return started

    def complete(self, mesocycle_id: int) -> Mesocycle:
        return self._close(mesocycle_id, MesocycleStatus.COMPLETED, "completed")

    def cancel(self, mesocycle_id: int) -> Mesocycle:
        """Stop an active mesocycle. Its workouts and logged data are kept."""
        return self._close(mesocycle_id, MesocycleStatus.CANCELLED, "cancelled")

    def get_summary(self, mesocycle_id: int) -> MesocycleSummary:
        mesocycle = self.get(mesocycle_id)
        working_weeks = mesocycle.plan.duration_weeks
        weeks: Dict[int, WeekSummary] = {
            week_number: WeekSummary(week_number=week_number, is_deload=week_number == working_weeks + 1)
            for week_number in range(1, working_weeks + 2)
        }

        for workout in self.repos.workout.find_by_mesocycle(mesocycle_id):
            week = weeks.setdefault(
                workout.week_number,
                WeekSummary(week_number=workout.week_number, is_deload=workout.week_number == working_weeks + 1),
            )
            week.total_workouts += 1
            if workout.status == WorkoutStatus.COMPLETED.value:
                week.completed_workouts += 1
            elif workout.status == WorkoutStatus.SKIPPED.value:
                week.skipped_workouts += 1
            for workout_set in self.repos.workout_set.find_by_workout(workout.id):
                week.total_sets += 1
                if workout_set.status == SetStatus.COMPLETED.value:
                    week.completed_sets += 1

        return MesocycleSummary(
            mesocycle=mesocycle,
            working_weeks=working_weeks,
            weeks=[weeks[k] for k in sorted(weeks)],
        )

    def _close(self, mesocycle_id: int, target: MesocycleStatus, verb: str) -> Mesocycle:
        mesocycle = self.get(mesocycle_id)
        if mesocycle.status != MesocycleStatus.ACTIVE.value:
            raise InvalidTransitionError(f"Only active mesocycles can be {verb}")
        updated = self.repos.mesocycle.update(mesocycle_id, status=target.value)
        if updated is None:
            logger.error(f"Failed to close mesocycle {mesocycle_id}")
            raise UpdateFailedError("Mesocycle", mesocycle_id)
        logger.info(f"Mesocycle {mesocycle_id} {verb}")
        return updated

    def _materialize(self, mesocycle: Mesocycle):
        working_weeks = mesocycle.plan.duration_weeks
        calculator = ProgressionCalculator(deload_week=working_weeks)
        days: List[PlanDay] = self.repos.plan_day.find_by_plan(mesocycle.plan_id)

        progressions = {
            day.id: [
                to_exercise_progression(row, row.exercise.weight_increment)
                for row in self.repos.plan_day_exercise.find_by_plan_day(day.id)
            ]
            for day in days
        }

        workout_count = set_count = 0
        for week_number in range(1, working_weeks + 2):
            for day in days:
                workout = self.repos.workout.create(
                    mesocycle_id=mesocycle.id,
                    plan_day_id=day.id,
                    week_number=week_number,
                    scheduled_date=scheduled_date_for(mesocycle.start_date, week_number, day.day_of_week),
                    status=WorkoutStatus.PENDING.value,
                )
                workout_count += 1
                for progression in progressions[day.id]:
                    targets = calculator.calculate_targets_for_week(progression, week_number - 1, True)
                    for set_number in range(1, targets.target_sets + 1):
                        self.repos.workout_set.create(
                            workout_id=workout.id,
                            exercise_id=progression.exercise_id,
                            set_number=set_number,
                            target_reps=targets.target_reps,
                            target_weight=targets.target_weight,
                            status=SetStatus.PENDING.value,
                        )
                        set_count += 1
        return workout_count, set_count
