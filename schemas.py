from pydantic import BaseModel, ConfigDict, Field
from typing import Optional

from core.config import settings


class ExerciseCreate(BaseModel):
    name: str
    weight_increment: Optional[float] = None  # Falls back to settings.DEFAULT_WEIGHT_INCREMENT
    min_reps: Optional[int] = None
    max_reps: Optional[int] = None
    is_custom: bool = False


class PlanDayExercisePrescription(BaseModel):
    """
    One exercise as written in a training-day template.

    Built from form input or straight from a PlanDayExercise row.
    Exercises are matched across template versions by exercise_id.
    """
    exercise_id: int
    sets: int
    reps: int
    weight: float
    rest_seconds: int = Field(default_factory=lambda: settings.DEFAULT_REST_SECONDS)
    sort_order: int = 0
    min_reps: Optional[int] = None  # Falls back to the catalog entry's range
    max_reps: Optional[int] = None
    id: Optional[int] = None  # PlanDayExercise id once persisted

    model_config = ConfigDict(from_attributes=True)


class LogWorkoutSetInput(BaseModel):
    """Actual performance for one set. Range checks happen in the service."""
    actual_reps: int
    actual_weight: float
