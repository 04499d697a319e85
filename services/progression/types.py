"""
Value types shared by the static calculator and the adaptive engine.

All of these are computed on demand; none is a source of truth.
"""

from dataclasses import dataclass
from typing import Any, Optional

from core.exceptions import InvalidInputError
from services.progression.constants import ProgressionReason


@dataclass(frozen=True)
class ExerciseProgression:
    """Base prescription of one exercise on one training day."""

    exercise_id: Any
    plan_exercise_id: Any
    base_weight: float
    base_reps: int
    base_sets: int
    weight_increment: float
    min_reps: int
    max_reps: int

    def __post_init__(self):
        if self.min_reps > self.max_reps:
            raise InvalidInputError(
                f"Invalid rep range for exercise {self.exercise_id}: "
                f"min_reps {self.min_reps} > max_reps {self.max_reps}",
                field="min_reps",
            )
        if self.weight_increment <= 0:
            raise InvalidInputError(
                "Weight increment must be positive", field="weight_increment"
            )


@dataclass(frozen=True)
class WeekTargets:
    exercise_id: Any
    plan_exercise_id: Any
    week_number: int
    target_weight: float
    target_reps: int
    target_sets: int
    is_deload: bool
    reason: ProgressionReason


@dataclass(frozen=True)
class CompletionStatus:
    """Whether every prescribed set of an exercise was done in a week."""

    exercise_id: Any
    week_number: int
    all_sets_completed: bool
    completed_sets: int
    prescribed_sets: int


@dataclass(frozen=True)
class CompletedSet:
    actual_weight: float
    actual_reps: int


@dataclass(frozen=True)
class PreviousWeekPerformance:
    """The best set of one session, judged against that session's targets."""

    exercise_id: Any
    week_number: int
    target_weight: float
    target_reps: int
    actual_weight: float
    actual_reps: int
    hit_target: bool
    consecutive_failures: int = 0


def select_best_set(sets) -> Optional[Any]:
    """
    Heaviest set wins; equal weight falls back to more reps.

    Works on anything exposing actual_weight/actual_reps.
    """
    best = None
    for candidate in sets:
        if best is None or (candidate.actual_weight, candidate.actual_reps) > (
            best.actual_weight,
            best.actual_reps,
        ):
            best = candidate
    return best
