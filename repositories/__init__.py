"""Repositories over the training record store."""
from dataclasses import dataclass

from sqlalchemy.orm import Session

from repositories.base import BaseRepository
from repositories.exercise import ExerciseRepository
from repositories.mesocycle import MesocycleRepository, WorkoutRepository, WorkoutSetRepository
from repositories.plan import PlanDayExerciseRepository, PlanDayRepository, PlanRepository


@dataclass
class Repositories:
    exercise: ExerciseRepository
    plan: PlanRepository
    plan_day: PlanDayRepository
    plan_day_exercise: PlanDayExerciseRepository
    mesocycle: MesocycleRepository
    workout: WorkoutRepository
    workout_set: WorkoutSetRepository


def create_repositories(db: Session) -> Repositories:
    return Repositories(
        exercise=ExerciseRepository(db),
        plan=PlanRepository(db),
        plan_day=PlanDayRepository(db),
        plan_day_exercise=PlanDayExerciseRepository(db),
        mesocycle=MesocycleRepository(db),
        workout=WorkoutRepository(db),
        workout_set=WorkoutSetRepository(db),
    )


__all__ = [
    "BaseRepository",
    "ExerciseRepository",
    "MesocycleRepository",
    "PlanDayExerciseRepository",
    "PlanDayRepository",
    "PlanRepository",
    "Repositories",
    "WorkoutRepository",
    "WorkoutSetRepository",
    "create_repositories",
]
