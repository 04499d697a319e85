"""
Plan Template Service

Plans, their training days, and the per-exercise prescriptions those days
carry. Editing a day that a running mesocycle uses goes through
PlanModificationService.edit_plan_day so the change reaches future workouts.
"""
import logging
from sqlalchemy.orm import Session
from typing import List, Optional

from core.config import settings
from core.exceptions import InvalidInputError, NotFoundError
from models import Exercise, Plan, PlanDay, PlanDayExercise
from repositories import create_repositories
from schemas import PlanDayExercisePrescription
from services.exercise_catalog import validate_rep_range
from services.progression import ExerciseProgression

logger = logging.getLogger(__name__)


def create_plan(db: Session, name: str, duration_weeks: Optional[int] = None) -> Plan:
    """duration_weeks counts working weeks; the deload week comes on top."""
    weeks = duration_weeks if duration_weeks is not None else settings.MESOCYCLE_WORKING_WEEKS
    if weeks < 1:
        raise InvalidInputError("A plan needs at least one working week", field="duration_weeks")
    if not name or not name.strip():
        raise InvalidInputError("Plan name is required", field="name")

    plan = create_repositories(db).plan.create(name=name.strip(), duration_weeks=weeks)
    logger.info(f"Created plan {plan.id} ({plan.name}, {weeks} working weeks)")
    return plan


def add_plan_day(
    db: Session,
    plan_id: int,
    day_of_week: int,
    name: str,
    sort_order: Optional[int] = None,
) -> PlanDay:
    repos = create_repositories(db)
    if repos.plan.find_by_id(plan_id) is None:
        raise NotFoundError("Plan", plan_id)
    if not 0 <= day_of_week <= 6:
        raise InvalidInputError("day_of_week must be between 0 (Sunday) and 6 (Saturday)", field="day_of_week")

    if sort_order is None:
        sort_order = len(repos.plan_day.find_by_plan(plan_id))

    return repos.plan_day.create(
        plan_id=plan_id,
        day_of_week=day_of_week,
        name=name,
        sort_order=sort_order,
    )


def validate_prescription(prescription: PlanDayExercisePrescription) -> None:
    if prescription.sets < 1:
        raise InvalidInputError("An exercise needs at least one set", field="sets")
    if prescription.reps < 1:
        raise InvalidInputError("Reps must be at least 1", field="reps")
    if prescription.weight < 0:
        raise InvalidInputError("Weight cannot be negative", field="weight")
    if prescription.rest_seconds < 0:
        raise InvalidInputError("Rest cannot be negative", field="rest_seconds")


def resolve_rep_range(prescription: PlanDayExercisePrescription, exercise: Exercise):
    """Prescription bounds win over the catalog defaults."""
    min_reps = prescription.min_reps if prescription.min_reps is not None else exercise.min_reps
    max_reps = prescription.max_reps if prescription.max_reps is not None else exercise.max_reps
    validate_rep_range(min_reps, max_reps)
    return min_reps, max_reps


def add_exercise_to_plan_day(
    db: Session,
    plan_day_id: int,
    prescription: PlanDayExercisePrescription,
) -> PlanDayExercise:
    """
    Attach an exercise to a training day template.

    This only changes the template. Use PlanModificationService to push the
    change into a running mesocycle.
    """
    repos = create_repositories(db)
    if repos.plan_day.find_by_id(plan_day_id) is None:
        raise NotFoundError("PlanDay", plan_day_id)
    exercise = repos.exercise.find_by_id(prescription.exercise_id)
    if exercise is None:
        raise NotFoundError("Exercise", prescription.exercise_id)

    validate_prescription(prescription)
    min_reps, max_reps = resolve_rep_range(prescription, exercise)

    if repos.plan_day_exercise.find_by_plan_day_and_exercise(plan_day_id, exercise.id) is not None:
        raise InvalidInputError(
            f"Exercise {exercise.id} is already on plan day {plan_day_id}",
            field="exercise_id",
        )

    return repos.plan_day_exercise.create(
        plan_day_id=plan_day_id,
        exercise_id=exercise.id,
        sets=prescription.sets,
        reps=prescription.reps,
        weight=prescription.weight,
        rest_seconds=prescription.rest_seconds,
        sort_order=prescription.sort_order,
        min_reps=min_reps,
        max_reps=max_reps,
    )


def get_plan_day_prescriptions(db: Session, plan_day_id: int) -> List[PlanDayExercisePrescription]:
    repos = create_repositories(db)
    if repos.plan_day.find_by_id(plan_day_id) is None:
        raise NotFoundError("PlanDay", plan_day_id)
    return [
        PlanDayExercisePrescription.model_validate(row)
        for row in repos.plan_day_exercise.find_by_plan_day(plan_day_id)
    ]


def to_exercise_progression(plan_exercise: PlanDayExercise, weight_increment: float) -> ExerciseProgression:
    """Progression baseline for one exercise on one training day."""
    return ExerciseProgression(
        exercise_id=plan_exercise.exercise_id,
        plan_exercise_id=plan_exercise.id,
        base_weight=plan_exercise.weight,
        base_reps=plan_exercise.reps,
        base_sets=plan_exercise.sets,
        weight_increment=weight_increment,
        min_reps=plan_exercise.min_reps,
        max_reps=plan_exercise.max_reps,
    )
