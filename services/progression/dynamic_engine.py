"""
Adaptive Progression Engine

Derives next week's targets from what was actually lifted, not from a
completed/not-completed flag.

Decision order (first match wins):
    1. No previous performance       → first_week (baseline)
    2. Deload week                   → deload from the previous actual weight
    3. actual_reps >= max_reps       → +weight_increment, reps to min_reps
    4. Target hit below max_reps     → same weight, +1 rep (capped at max)
    5. actual_reps >= min_reps       → hold the prescribed targets
    6. Failure, fewer than 2 in a row → hold at min_reps, same weight
    7. Failure, 2 in a row           → regress by one increment, never
                                        below the base weight

The failure threshold of 2 is a fixed product rule.
"""

import logging
from typing import Iterable, List, Optional, Sequence

from services.progression.constants import (
    CONSECUTIVE_FAILURE_THRESHOLD,
    ProgressionReason,
    deload_sets,
    deload_weight,
)
from services.progression.types import (
    CompletedSet,
    ExerciseProgression,
    PreviousWeekPerformance,
    WeekTargets,
    select_best_set,
)

logger = logging.getLogger(__name__)


_REASON_DESCRIPTIONS = {
    ProgressionReason.FIRST_WEEK: "No previous performance, starting from the plan's prescription.",
    ProgressionReason.HIT_MAX_REPS: "Reached the top of the rep range, adding weight and dropping to the bottom of the range.",
    ProgressionReason.HIT_TARGET: "Hit the target, adding one rep at the same weight.",
    ProgressionReason.HOLD: "Target missed, repeating the same prescription.",
    ProgressionReason.REGRESS: "Missed the rep floor twice at this weight, reducing the load.",
    ProgressionReason.DELOAD: "Deload week: lighter weight and fewer sets for recovery.",
}


def describe_reason(reason: ProgressionReason) -> str:
    """Human-readable explanation for a progression reason."""
    return _REASON_DESCRIPTIONS[ProgressionReason(reason)]


class DynamicProgressionEngine:
    """
    Performance-driven progression.

    Stateless; history is passed in by the caller.
    """

    def calculate_next_week_targets(
        self,
        exercise: ExerciseProgression,
        previous: Optional[PreviousWeekPerformance],
        is_deload: bool = False,
    ) -> WeekTargets:
        """
        Targets for the week after `previous`.

        Args:
            exercise: Base prescription and rep range
            previous: Best set of the last session, or None when nothing is logged
            is_deload: Whether the coming week is the deload week

        Returns:
            WeekTargets with the reason for the adjustment
        """
        if previous is None:
            return self._targets(
                exercise,
                week_number=0,
                weight=exercise.base_weight,
                reps=exercise.base_reps,
                reason=ProgressionReason.FIRST_WEEK,
            )

        next_week = previous.week_number + 1

        if is_deload:
            return WeekTargets(
                exercise_id=exercise.exercise_id,
                plan_exercise_id=exercise.plan_exercise_id,
                week_number=next_week,
                target_weight=deload_weight(previous.actual_weight),
                target_reps=exercise.min_reps,
                target_sets=deload_sets(exercise.base_sets),
                is_deload=True,
                reason=ProgressionReason.DELOAD,
            )

        if previous.actual_reps >= exercise.max_reps:
            return self._targets(
                exercise,
                week_number=next_week,
                weight=previous.actual_weight + exercise.weight_increment,
                reps=exercise.min_reps,
                reason=ProgressionReason.HIT_MAX_REPS,
            )

        if previous.hit_target:
            return self._targets(
                exercise,
                week_number=next_week,
                weight=previous.actual_weight,
                reps=min(previous.actual_reps + 1, exercise.max_reps),
                reason=ProgressionReason.HIT_TARGET,
            )

        if previous.actual_reps >= exercise.min_reps:
            return self._targets(
                exercise,
                week_number=next_week,
                weight=previous.target_weight,
                reps=previous.target_reps,
                reason=ProgressionReason.HOLD,
            )

        if previous.consecutive_failures < CONSECUTIVE_FAILURE_THRESHOLD:
            return self._targets(
                exercise,
                week_number=next_week,
                weight=previous.actual_weight,
                reps=exercise.min_reps,
                reason=ProgressionReason.HOLD,
            )

        regressed = max(exercise.base_weight, previous.actual_weight - exercise.weight_increment)
        logger.debug(
            f"Regressing exercise {exercise.exercise_id}: "
            f"{previous.actual_weight} -> {regressed} after {previous.consecutive_failures} failures"
        )
        return self._targets(
            exercise,
            week_number=next_week,
            weight=regressed,
            reps=exercise.min_reps,
            reason=ProgressionReason.REGRESS,
        )

    def calculate_consecutive_failures(
        self,
        history: Sequence[PreviousWeekPerformance],
        current_weight: float,
        min_reps: int,
    ) -> int:
        """
        Count failures at current_weight, newest first.

        history is ordered newest first. Counting stops at the first success
        or at the first session prescribed at a different weight.
        """
        failures = 0
        for entry in history:
            if entry.target_weight != current_weight:
                break
            if entry.actual_reps >= min_reps:
                break
            failures += 1
        return failures

    def build_previous_week_performance(
        self,
        exercise_id,
        week_number: int,
        target_weight: float,
        target_reps: int,
        completed_sets: Iterable[CompletedSet],
        min_reps: int,
        history: Sequence[PreviousWeekPerformance] = (),
    ) -> Optional[PreviousWeekPerformance]:
        """
        Reduce one session's completed sets to its best set.

        Returns None when no set was completed. consecutive_failures counts
        this session plus the unbroken run of earlier failures at the same
        weight in history (newest first).
        """
        best = select_best_set(list(completed_sets))
        if best is None:
            return None

        hit_target = best.actual_weight >= target_weight and best.actual_reps >= target_reps

        if best.actual_reps < min_reps:
            consecutive_failures = (
                self.calculate_consecutive_failures(history, best.actual_weight, min_reps) + 1
            )
        else:
            consecutive_failures = 0

        return PreviousWeekPerformance(
            exercise_id=exercise_id,
            week_number=week_number,
            target_weight=target_weight,
            target_reps=target_reps,
            actual_weight=best.actual_weight,
            actual_reps=best.actual_reps,
            hit_target=hit_target,
            consecutive_failures=consecutive_failures,
        )

    def _targets(
        self,
        exercise: ExerciseProgression,
        week_number: int,
        weight: float,
        reps: int,
        reason: ProgressionReason,
    ) -> WeekTargets:
        return WeekTargets(
            exercise_id=exercise.exercise_id,
            plan_exercise_id=exercise.plan_exercise_id,
            week_number=week_number,
            target_weight=weight,
            target_reps=reps,
            target_sets=exercise.base_sets,
            is_deload=False,
            reason=reason,
        )


def performance_history(
    engine: DynamicProgressionEngine,
    sessions: Iterable[dict],
    min_reps: int,
) -> List[PreviousWeekPerformance]:
    """
    Fold oldest-first sessions into a newest-first performance history.

    Each session dict carries exercise_id, week_number, target_weight,
    target_reps and completed_sets. Sessions without completed sets are
    dropped.
    """
    history: List[PreviousWeekPerformance] = []
    for session in sessions:
        performance = engine.build_previous_week_performance(
            session["exercise_id"],
            session["week_number"],
            session["target_weight"],
            session["target_reps"],
            session["completed_sets"],
            min_reps,
            history,
        )
        if performance is not None:
            history.insert(0, performance)
    return history
