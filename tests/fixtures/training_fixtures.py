"""Builders for training records used across service tests.

Every helper flushes through the real services or repositories so the rows
look exactly like production data.
"""
from datetime import date
from typing import Callable, List, Optional, Sequence, Tuple

from models import Exercise, Mesocycle, Plan, PlanDay, PlanDayExercise, Workout, WorkoutSet
from repositories import create_repositories
from schemas import ExerciseCreate, PlanDayExercisePrescription
from services.exercise_catalog import create_exercise
from services.mesocycle_service import MesocycleService
from services.plan_service import add_exercise_to_plan_day, add_plan_day, create_plan


def fixed_clock(day: date) -> Callable[[], date]:
    return lambda: day


def make_exercise(
    db,
    name: str = "Bench Press",
    weight_increment: float = 5.0,
    min_reps: int = 8,
    max_reps: int = 12,
) -> Exercise:
    return create_exercise(
        db,
        ExerciseCreate(name=name, weight_increment=weight_increment, min_reps=min_reps, max_reps=max_reps),
    )


def make_plan(
    db,
    exercises: Sequence[Tuple[Exercise, int, int, float]],
    duration_weeks: int = 3,
    day_of_week: int = 1,
    name: str = "Upper A",
) -> Tuple[Plan, PlanDay, List[PlanDayExercise]]:
    """One-day plan; exercises are (exercise, sets, reps, weight)."""
    plan = create_plan(db, "Test Plan", duration_weeks=duration_weeks)
    day = add_plan_day(db, plan.id, day_of_week, name)
    rows = [
        add_exercise_to_plan_day(
            db,
            day.id,
            PlanDayExercisePrescription(
                exercise_id=exercise.id, sets=sets, reps=reps, weight=weight, sort_order=i
            ),
        )
        for i, (exercise, sets, reps, weight) in enumerate(exercises)
    ]
    return plan, day, rows


def start_mesocycle(db, plan: Plan, start: date, today: Optional[date] = None) -> Mesocycle:
    service = MesocycleService(db, today=fixed_clock(today or start))
    mesocycle = service.create(plan.id, start)
    return service.start(mesocycle.id)


def workouts_of(db, mesocycle: Mesocycle) -> List[Workout]:
    return create_repositories(db).workout.find_by_mesocycle(mesocycle.id)


def sets_of(db, workout: Workout, exercise: Exercise) -> List[WorkoutSet]:
    return create_repositories(db).workout_set.find_by_workout_and_exercise(workout.id, exercise.id)


def force_logged(db, workout_set: WorkoutSet, reps: int = 8, weight: float = 100.0) -> WorkoutSet:
    """Mark a set completed without touching its workout's status."""
    return create_repositories(db).workout_set.update(
        workout_set.id, status="completed", actual_reps=reps, actual_weight=weight
    )
