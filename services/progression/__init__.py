"""
Progression Package

Pure week-target calculations for strength training cycles:

- static_calculator: plan preview, driven by whether each week was completed
- dynamic_engine: adjustment driven by actual logged performance

Neither touches the database.
"""

from .constants import (
    ProgressionReason,
    WorkoutStatus,
    SetStatus,
    MesocycleStatus,
    DEFAULT_DELOAD_WEEK,
    DEFAULT_WORKING_WEEKS,
    round_to_nearest,
    deload_weight,
    deload_sets,
)
from .types import (
    ExerciseProgression,
    WeekTargets,
    CompletionStatus,
    CompletedSet,
    PreviousWeekPerformance,
    select_best_set,
)
from .static_calculator import ProgressionCalculator
from .dynamic_engine import DynamicProgressionEngine, describe_reason, performance_history

__all__ = [
    "ProgressionReason",
    "WorkoutStatus",
    "SetStatus",
    "MesocycleStatus",
    "DEFAULT_DELOAD_WEEK",
    "DEFAULT_WORKING_WEEKS",
    "round_to_nearest",
    "deload_weight",
    "deload_sets",
    "ExerciseProgression",
    "WeekTargets",
    "CompletionStatus",
    "CompletedSet",
    "PreviousWeekPerformance",
    "select_best_set",
    "ProgressionCalculator",
    "DynamicProgressionEngine",
    "describe_reason",
    "performance_history",
]
