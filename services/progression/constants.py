"""
Constants for progressive overload.

The numeric factors are product decisions pinned by tests; they are not
configuration.
"""

import math
from enum import Enum


class ProgressionReason(str, Enum):
    """Why a week's targets came out the way they did."""
    FIRST_WEEK = "first_week"        # No previous data, baseline used
    HIT_MAX_REPS = "hit_max_reps"    # Top of rep range reached, weight goes up
    HIT_TARGET = "hit_target"        # Target met, one more rep
    HOLD = "hold"                    # Target missed, same prescription again
    REGRESS = "regress"              # Repeated failure at one weight, weight comes down
    DELOAD = "deload"                # Recovery week


class WorkoutStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    SKIPPED = "skipped"


class SetStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    SKIPPED = "skipped"


class MesocycleStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# Workouts in these states accept no further set edits
TERMINAL_WORKOUT_STATUSES = {WorkoutStatus.COMPLETED.value, WorkoutStatus.SKIPPED.value}

# 6 working weeks (0-5) then the deload week
DEFAULT_WORKING_WEEKS = 6
DEFAULT_DELOAD_WEEK = DEFAULT_WORKING_WEEKS

DELOAD_WEIGHT_FACTOR = 0.85
DELOAD_VOLUME_FACTOR = 0.5

# Half of the smallest standard plate jump; deload loads snap to this
# regardless of the exercise's own increment.
WEIGHT_ROUNDING_INCREMENT = 2.5

# Second failure at the same weight triggers a regression
CONSECUTIVE_FAILURE_THRESHOLD = 2


def round_to_nearest(value: float, increment: float = WEIGHT_ROUNDING_INCREMENT) -> float:
    """Round half up to the nearest multiple of increment."""
    return math.floor(value / increment + 0.5) * increment


def deload_weight(weight: float) -> float:
    return round_to_nearest(weight * DELOAD_WEIGHT_FACTOR)


def deload_sets(base_sets: int) -> int:
    return max(1, math.ceil(base_sets * DELOAD_VOLUME_FACTOR))
