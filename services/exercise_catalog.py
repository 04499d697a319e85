"""
Exercise Catalog Service

Reference data for lifts: load step and default rep range. Progression code
reads these rows and never changes them.
"""
import logging
from sqlalchemy.orm import Session
from typing import List

from core.config import settings
from core.exceptions import InvalidInputError, NotFoundError
from models import Exercise
from repositories.exercise import ExerciseRepository
from schemas import ExerciseCreate

logger = logging.getLogger(__name__)


def validate_rep_range(min_reps: int, max_reps: int) -> None:
    if min_reps < 1:
        raise InvalidInputError("min_reps must be at least 1", field="min_reps")
    if min_reps > max_reps:
        raise InvalidInputError(
            f"min_reps ({min_reps}) cannot exceed max_reps ({max_reps})",
            field="min_reps",
        )


def create_exercise(db: Session, data: ExerciseCreate) -> Exercise:
    """
    Add an exercise to the catalog.

    Missing increment or rep bounds fall back to the configured defaults.
    Names are unique.
    """
    weight_increment = (
        data.weight_increment if data.weight_increment is not None else settings.DEFAULT_WEIGHT_INCREMENT
    )
    min_reps = data.min_reps if data.min_reps is not None else settings.DEFAULT_MIN_REPS
    max_reps = data.max_reps if data.max_reps is not None else settings.DEFAULT_MAX_REPS

    if weight_increment <= 0:
        raise InvalidInputError("Weight increment must be positive", field="weight_increment")
    validate_rep_range(min_reps, max_reps)

    name = data.name.strip()
    if not name:
        raise InvalidInputError("Exercise name is required", field="name")

    repo = ExerciseRepository(db)
    if repo.find_by_name(name) is not None:
        raise InvalidInputError(f"Exercise '{name}' already exists", field="name")

    exercise = repo.create(
        name=name,
        weight_increment=weight_increment,
        min_reps=min_reps,
        max_reps=max_reps,
        is_custom=data.is_custom,
    )
    logger.info(f"Created exercise {exercise.id} ({name})")
    return exercise


def get_exercise(db: Session, exercise_id: int) -> Exercise:
    exercise = ExerciseRepository(db).find_by_id(exercise_id)
    if exercise is None:
        raise NotFoundError("Exercise", exercise_id)
    return exercise


def list_exercises(db: Session) -> List[Exercise]:
    """All catalog entries, alphabetically."""
    return sorted(ExerciseRepository(db).find_all(), key=lambda e: e.name.lower())
