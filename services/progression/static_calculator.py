"""
Static Progression Calculator for plan preview targets

Derives a week's target weight/reps/sets from the base prescription and a
single fact about the week before: was it fully completed?

Rules (0-based weeks, N working weeks then one deload week):
    Week 0        → baseline
    Odd weeks     → +1 rep on the previous week's computed reps
    Even weeks    → +weight_increment, reps reset to base_reps
    Not completed → repeat the previous week's targets (no regression)
    Deload week   → 85% of the last reached weight (rounded to 2.5),
                    last reached reps, half the base sets (at least 1)

Used when a mesocycle is materialized, before anything is logged. Actual
performance is handled by the adaptive engine instead.
"""

import logging
from dataclasses import replace
from typing import List, Sequence

from core.exceptions import InvalidInputError
from services.progression.constants import (
    DEFAULT_DELOAD_WEEK,
    ProgressionReason,
    deload_sets,
    deload_weight,
)
from services.progression.types import (
    CompletionStatus,
    ExerciseProgression,
    WeekTargets,
)

logger = logging.getLogger(__name__)


class ProgressionCalculator:
    """
    Stateless: all inputs are passed explicitly.  No database access.

    deload_week is the 0-based index of the deload week, which is also the
    number of working weeks before it.
    """

    def __init__(self, deload_week: int = DEFAULT_DELOAD_WEEK):
        if deload_week < 1:
            raise InvalidInputError("A cycle needs at least one working week", field="deload_week")
        self.deload_week = deload_week

    def is_deload_week(self, week_number: int) -> bool:
        return week_number == self.deload_week

    def calculate_targets_for_week(
        self,
        exercise: ExerciseProgression,
        week_number: int,
        previous_week_completed: bool,
    ) -> WeekTargets:
        """
        Targets for one week, assuming every week before the previous one
        went to plan.

        Args:
            exercise: Base prescription and rep range
            week_number: 0-based progression week
            previous_week_completed: Whether all sets of week_number - 1 were done

        Returns:
            WeekTargets for week_number
        """
        self._check_week(week_number)
        if week_number == 0:
            return self._baseline(exercise)

        ideal = self.calculate_progression_history(exercise, [])
        if self.is_deload_week(week_number):
            reached = ideal[week_number - 1] if previous_week_completed else ideal[max(week_number - 2, 0)]
            return self._deload(exercise, reached, week_number)
        return self._advance(exercise, ideal[week_number - 1], week_number, previous_week_completed)

    def calculate_progression_history(
        self,
        exercise: ExerciseProgression,
        completion_history: Sequence[CompletionStatus],
    ) -> List[WeekTargets]:
        """
        Targets for every week of the cycle, each derived from the one before.

        Weeks missing from completion_history count as completed.
        """
        completed_by_week = {
            status.week_number: status.all_sets_completed
            for status in completion_history
        }

        weeks = [self._baseline(exercise)]
        for week_number in range(1, self.deload_week + 1):
            previous_completed = completed_by_week.get(week_number - 1, True)
            if self.is_deload_week(week_number):
                # Deload from what was actually reached: an unfinished week
                # only repeated the one before it.
                reached = weeks[-1] if previous_completed else weeks[max(week_number - 2, 0)]
                weeks.append(self._deload(exercise, reached, week_number))
            else:
                weeks.append(self._advance(exercise, weeks[-1], week_number, previous_completed))
        return weeks

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def _baseline(self, exercise: ExerciseProgression) -> WeekTargets:
        return WeekTargets(
            exercise_id=exercise.exercise_id,
            plan_exercise_id=exercise.plan_exercise_id,
            week_number=0,
            target_weight=exercise.base_weight,
            target_reps=exercise.base_reps,
            target_sets=exercise.base_sets,
            is_deload=False,
            reason=ProgressionReason.FIRST_WEEK,
        )

    def _advance(
        self,
        exercise: ExerciseProgression,
        previous: WeekTargets,
        week_number: int,
        previous_completed: bool,
    ) -> WeekTargets:
        if not previous_completed:
            return replace(
                previous,
                week_number=week_number,
                is_deload=False,
                reason=ProgressionReason.HOLD,
            )

        if week_number % 2 == 1:
            return replace(
                previous,
                week_number=week_number,
                target_reps=previous.target_reps + 1,
                is_deload=False,
                reason=ProgressionReason.HIT_TARGET,
            )

        return replace(
            previous,
            week_number=week_number,
            target_weight=previous.target_weight + exercise.weight_increment,
            target_reps=exercise.base_reps,
            is_deload=False,
            reason=ProgressionReason.HIT_MAX_REPS,
        )

    def _deload(
        self,
        exercise: ExerciseProgression,
        reached: WeekTargets,
        week_number: int,
    ) -> WeekTargets:
        return WeekTargets(
            exercise_id=exercise.exercise_id,
            plan_exercise_id=exercise.plan_exercise_id,
            week_number=week_number,
            target_weight=deload_weight(reached.target_weight),
            target_reps=reached.target_reps,
            target_sets=deload_sets(exercise.base_sets),
            is_deload=True,
            reason=ProgressionReason.DELOAD,
        )

    def _check_week(self, week_number: int) -> None:
        if week_number < 0 or week_number > self.deload_week:
            raise InvalidInputError(
                f"Week {week_number} is outside the cycle (0-{self.deload_week})",
                field="week_number",
            )
