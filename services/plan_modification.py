"""
Plan Modification Service

Pushes training-day template changes into a running mesocycle.

A template edit is diffed per exercise (matched by exercise_id) and then
applied to every future workout that uses the training day:

    removed exercises  → pending sets deleted, logged sets preserved
    modified exercises → targets recalculated from the new base, set count
                         reconciled
    added exercises    → sets created with the static progression targets

"Future" means status 'pending' and scheduled today or later. Sets carrying
logged data are never deleted or overwritten; when they block a change the
operation still succeeds and reports a warning.

Every propagation is a fold over the affected workouts in schedule order
with a PropagationTally accumulator. Nothing here commits: the caller's
transaction makes the whole batch atomic, and each per-workout step
converges when re-run.
"""

import itertools
import logging
from dataclasses import asdict, dataclass, field, replace
from datetime import date
from functools import reduce
from typing import Any, Callable, Dict, FrozenSet, Iterable, List, Mapping, Optional, Sequence, Tuple

from sqlalchemy.orm import Session

from core.exceptions import InvalidInputError, NotFoundError, UpdateFailedError
from core.logging import log_context
from models import Exercise, Mesocycle, PlanDayExercise, Workout, WorkoutSet
from repositories import create_repositories
from schemas import PlanDayExercisePrescription
from services import plan_audit
from services.plan_service import resolve_rep_range, validate_prescription
from services.progression import (
    ExerciseProgression,
    MesocycleStatus,
    ProgressionCalculator,
    SetStatus,
    WeekTargets,
    WorkoutStatus,
)

logger = logging.getLogger(__name__)

# Prescription fields whose change is propagated into scheduled workouts
MODIFIABLE_FIELDS = ("sets", "reps", "weight", "rest_seconds")

# Mesocycles whose future workouts may still change
OPEN_MESOCYCLE_STATUSES = {MesocycleStatus.PENDING.value, MesocycleStatus.ACTIVE.value}


def has_logged_data(workout_set: WorkoutSet) -> bool:
    """A set is historical once it left 'pending' or holds any actual value."""
    return (
        workout_set.status != SetStatus.PENDING.value
        or workout_set.actual_reps is not None
        or workout_set.actual_weight is not None
    )


def preserved_warning(workout: Workout) -> str:
    return f"Workout on {workout.scheduled_date.isoformat()} has logged data - exercise sets preserved"


# =============================================================================
# RESULT TYPES
# =============================================================================

@dataclass
class ExerciseModification:
    """An exercise present in both template versions with changed fields."""
    exercise_id: int
    changes: Dict[str, Any]
    old: PlanDayExercisePrescription
    new: PlanDayExercisePrescription


@dataclass
class PlanDayDiff:
    plan_day_id: int
    added_exercises: List[PlanDayExercisePrescription] = field(default_factory=list)
    removed_exercises: List[PlanDayExercisePrescription] = field(default_factory=list)
    modified_exercises: List[ExerciseModification] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.added_exercises or self.removed_exercises or self.modified_exercises)


@dataclass
class PlanModificationResult:
    affected_workout_count: int = 0
    added_sets_count: int = 0
    removed_sets_count: int = 0
    modified_sets_count: int = 0
    preserved_count: int = 0
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class PropagationTally:
    """
    Accumulator for one propagation fold.

    Workouts are tracked by id so a workout touched by several exercises
    counts once.
    """
    workout_ids: FrozenSet[int] = frozenset()
    added_sets: int = 0
    removed_sets: int = 0
    modified_sets: int = 0
    preserved_sets: int = 0
    warnings: Tuple[str, ...] = ()

    @classmethod
    def for_workout(
        cls,
        workout_id: int,
        added: int = 0,
        removed: int = 0,
        modified: int = 0,
        preserved: int = 0,
        warnings: Tuple[str, ...] = (),
    ) -> "PropagationTally":
        touched = added or removed or modified or preserved
        return cls(
            workout_ids=frozenset({workout_id}) if touched else frozenset(),
            added_sets=added,
            removed_sets=removed,
            modified_sets=modified,
            preserved_sets=preserved,
            warnings=warnings,
        )

    def merge(self, other: "PropagationTally") -> "PropagationTally":
        return PropagationTally(
            workout_ids=self.workout_ids | other.workout_ids,
            added_sets=self.added_sets + other.added_sets,
            removed_sets=self.removed_sets + other.removed_sets,
            modified_sets=self.modified_sets + other.modified_sets,
            preserved_sets=self.preserved_sets + other.preserved_sets,
            warnings=self.warnings + other.warnings,
        )

    def to_result(self) -> PlanModificationResult:
        return PlanModificationResult(
            affected_workout_count=len(self.workout_ids),
            added_sets_count=self.added_sets,
            removed_sets_count=self.removed_sets,
            modified_sets_count=self.modified_sets,
            preserved_count=self.preserved_sets,
            warnings=list(self.warnings),
        )


def fold_workouts(
    workouts: Iterable[Workout],
    step: Callable[[Workout], PropagationTally],
    initial: Optional[PropagationTally] = None,
) -> PropagationTally:
    return reduce(lambda tally, workout: tally.merge(step(workout)), workouts, initial or PropagationTally())


def as_prescription(row: Any) -> PlanDayExercisePrescription:
    if isinstance(row, PlanDayExercisePrescription):
        return row
    return PlanDayExercisePrescription.model_validate(row)


# =============================================================================
# SERVICE
# =============================================================================

class PlanModificationService:
    """
    Applies template changes to one mesocycle at a time.

    Args:
        db: Session owned by the caller
        today: Clock for the "future workout" test
    """

    def __init__(self, db: Session, today: Callable[[], date] = date.today):
        self.db = db
        self.repos = create_repositories(db)
        self.today = today

    # -------------------------------------------------------------------------
    # Diff
    # -------------------------------------------------------------------------

    def diff_plan_day_exercises(
        self,
        plan_day_id: int,
        old_prescriptions: Sequence[Any],
        new_prescriptions: Sequence[Any],
    ) -> PlanDayDiff:
        """Compare two versions of a training day's exercises by exercise_id."""
        old_by_exercise = {p.exercise_id: p for p in map(as_prescription, old_prescriptions)}
        new_by_exercise = {p.exercise_id: p for p in map(as_prescription, new_prescriptions)}

        diff = PlanDayDiff(plan_day_id=plan_day_id)
        for exercise_id, new in new_by_exercise.items():
            old = old_by_exercise.get(exercise_id)
            if old is None:
                diff.added_exercises.append(new)
                continue
            changes = {
                name: getattr(new, name)
                for name in MODIFIABLE_FIELDS
                if getattr(new, name) != getattr(old, name)
            }
            if changes:
                diff.modified_exercises.append(
                    ExerciseModification(exercise_id=exercise_id, changes=changes, old=old, new=new)
                )
        for exercise_id, old in old_by_exercise.items():
            if exercise_id not in new_by_exercise:
                diff.removed_exercises.append(old)
        return diff

    # -------------------------------------------------------------------------
    # Future workouts
    # -------------------------------------------------------------------------

    def get_future_workouts(self, cycle_id: int) -> List[Workout]:
        """
        Pending workouts scheduled today or later, in schedule order.

        A workout scheduled today is included until it is started. Closed
        mesocycles have no future workouts.
        """
        mesocycle = self._get_mesocycle(cycle_id)
        if mesocycle.status not in OPEN_MESOCYCLE_STATUSES:
            return []
        today = self.today()
        return [
            workout
            for workout in self.repos.workout.find_by_mesocycle(cycle_id)
            if workout.status == WorkoutStatus.PENDING.value and workout.scheduled_date >= today
        ]

    def _future_workouts_for_day(
        self,
        cycle_id: int,
        plan_day_id: int,
        exclude_workout_id: Optional[int] = None,
    ) -> List[Workout]:
        return [
            workout
            for workout in self.get_future_workouts(cycle_id)
            if workout.plan_day_id == plan_day_id and workout.id != exclude_workout_id
        ]

    # -------------------------------------------------------------------------
    # Propagation primitives
    # -------------------------------------------------------------------------

    def add_exercise_to_future_workouts(
        self,
        cycle_id: int,
        plan_day_id: int,
        prescription: Any,
        exercise: Exercise,
    ) -> PlanModificationResult:
        """
        Create the exercise's sets in every future workout of the day.

        Targets follow the static progression for each workout's week.
        Workouts that already hold the exercise are left alone.
        """
        tally = self._add(cycle_id, plan_day_id, prescription, exercise)
        logger.info(
            f"Added exercise {exercise.id} to mesocycle {cycle_id} day {plan_day_id}: "
            f"{tally.added_sets} sets in {len(tally.workout_ids)} workouts"
        )
        return tally.to_result()

    def remove_exercise_from_future_workouts(
        self,
        cycle_id: int,
        plan_day_id: int,
        exercise_id: int,
    ) -> PlanModificationResult:
        """
        Delete the exercise's pending sets from every future workout of the day.

        Sets with logged data stay; each one counts toward preserved_count.
        """
        tally = self._remove(cycle_id, plan_day_id, exercise_id)
        logger.info(
            f"Removed exercise {exercise_id} from mesocycle {cycle_id} day {plan_day_id}: "
            f"{tally.removed_sets} sets removed, {tally.preserved_sets} preserved"
        )
        return tally.to_result()

    def update_exercise_targets_for_future_workouts(
        self,
        cycle_id: int,
        plan_day_id: int,
        exercise_id: int,
        changes: Mapping[str, Any],
        weight_increment: float,
        prescription: Optional[Any] = None,
        exclude_workout_id: Optional[int] = None,
    ) -> PlanModificationResult:
        """
        Recalculate targets and reconcile set counts for one exercise.

        The new base is `prescription` when given, otherwise the stored
        template row with `changes` applied. The stored template itself is
        not modified.

        Args:
            cycle_id: Mesocycle to update
            plan_day_id: Training day whose workouts are affected
            exercise_id: Exercise whose sets change
            changes: Changed prescription fields (sets, reps, weight, rest_seconds)
            weight_increment: Load step of the exercise
            prescription: Full new prescription, if already known
            exclude_workout_id: Workout to leave alone (the one edited by hand)
        """
        tally = self._update(
            cycle_id, plan_day_id, exercise_id, changes, weight_increment, prescription, exclude_workout_id
        )
        logger.info(
            f"Updated exercise {exercise_id} in mesocycle {cycle_id} day {plan_day_id}: "
            f"{len(tally.workout_ids)} workouts, {tally.modified_sets} sets retargeted, "
            f"+{tally.added_sets}/-{tally.removed_sets} sets, {tally.preserved_sets} preserved"
        )
        return tally.to_result()

    def apply_diff_to_mesocycle(
        self,
        cycle_id: int,
        diff: PlanDayDiff,
        exercises: Optional[Mapping[int, Exercise]] = None,
        source: str = "plan_edit",
    ) -> PlanModificationResult:
        """
        Apply removals, then modifications, then additions.

        Args:
            cycle_id: Mesocycle to update
            diff: Output of diff_plan_day_exercises
            exercises: Catalog rows by exercise_id; missing ones are loaded
            source: Audit source label

        Returns:
            Combined counts and warnings for the whole diff
        """
        exercises = dict(exercises or {})
        plan_day_id = diff.plan_day_id
        tally = PropagationTally()

        for removed in diff.removed_exercises:
            step = self._remove(cycle_id, plan_day_id, removed.exercise_id)
            plan_audit.log_exercise_removed(
                self.db, cycle_id, plan_day_id, removed, step.to_result().to_dict(), source=source
            )
            tally = tally.merge(step)

        for modification in diff.modified_exercises:
            exercise = self._exercise(exercises, modification.exercise_id)
            step = self._update(
                cycle_id,
                plan_day_id,
                modification.exercise_id,
                modification.changes,
                exercise.weight_increment,
                prescription=modification.new,
            )
            plan_audit.log_exercise_modified(
                self.db,
                cycle_id,
                plan_day_id,
                modification.exercise_id,
                modification.changes,
                modification.old,
                step.to_result().to_dict(),
                source=source,
            )
            tally = tally.merge(step)

        for added in diff.added_exercises:
            exercise = self._exercise(exercises, added.exercise_id)
            step = self._add(cycle_id, plan_day_id, added, exercise)
            plan_audit.log_exercise_added(
                self.db, cycle_id, plan_day_id, added, step.to_result().to_dict(), source=source
            )
            tally = tally.merge(step)

        result = tally.to_result()
        logger.info(
            f"Applied plan day {plan_day_id} diff to mesocycle {cycle_id}: "
            f"{result.affected_workout_count} workouts, +{result.added_sets_count} "
            f"-{result.removed_sets_count} ~{result.modified_sets_count} sets, "
            f"{result.preserved_count} preserved",
            extra=log_context(mesocycle_id=cycle_id, plan_day_id=plan_day_id, source=source),
        )
        return result

    def sync_plan_to_mesocycle(
        self,
        cycle_id: int,
        plan_day_id: int,
        plan_exercises: Sequence[Any],
        exercise_map: Mapping[int, Exercise],
    ) -> PlanModificationResult:
        """
        Bring every future workout of a day in line with the given template.

        Exercises not in the template are removed, present ones are
        retargeted and their set counts reconciled, missing ones are added.
        Same preservation rules as the individual primitives.
        """
        calculator = self._calculator_for(cycle_id)
        progressions = [
            self._progression(as_prescription(p), self._exercise(exercise_map, p.exercise_id))
            for p in plan_exercises
        ]
        planned_ids = {p.exercise_id for p in progressions}

        def sync_workout(workout: Workout) -> PropagationTally:
            scheduled_ids = {s.exercise_id for s in self.repos.workout_set.find_by_workout(workout.id)}
            tally = PropagationTally()
            for exercise_id in sorted(scheduled_ids - planned_ids):
                tally = tally.merge(self._remove_step(workout, exercise_id))
            for progression in progressions:
                if progression.exercise_id in scheduled_ids:
                    tally = tally.merge(self._reconcile_step(workout, progression, calculator))
                else:
                    tally = tally.merge(self._add_step(workout, progression, calculator))
            return tally

        tally = fold_workouts(self._future_workouts_for_day(cycle_id, plan_day_id), sync_workout)
        result = tally.to_result()
        plan_audit.log_modification(
            self.db,
            mesocycle_id=cycle_id,
            plan_day_id=plan_day_id,
            action="sync_plan",
            after_state={"exercises": [plan_audit.serialize_prescription(as_prescription(p)) for p in plan_exercises]},
            result=result.to_dict(),
            source="sync",
        )
        logger.info(
            f"Synced plan day {plan_day_id} into mesocycle {cycle_id}: "
            f"{result.affected_workout_count} workouts, +{result.added_sets_count} "
            f"-{result.removed_sets_count} ~{result.modified_sets_count} sets",
            extra=log_context(mesocycle_id=cycle_id, plan_day_id=plan_day_id, source="sync"),
        )
        return result

    def edit_plan_day(
        self,
        cycle_id: int,
        plan_day_id: int,
        new_prescriptions: Sequence[PlanDayExercisePrescription],
    ) -> PlanModificationResult:
        """
        Replace a training day's template and push the change into the mesocycle.

        Validates the new template, diffs it against the stored one, applies
        the diff to future workouts, then rewrites the template rows.
        """
        mesocycle = self._get_mesocycle(cycle_id)
        plan_day = self.repos.plan_day.find_by_id(plan_day_id)
        if plan_day is None:
            raise NotFoundError("PlanDay", plan_day_id)
        if plan_day.plan_id != mesocycle.plan_id:
            raise InvalidInputError(
                f"Plan day {plan_day_id} does not belong to mesocycle {cycle_id}'s plan",
                field="plan_day_id",
            )

        exercises: Dict[int, Exercise] = {}
        seen = set()
        for prescription in new_prescriptions:
            if prescription.exercise_id in seen:
                raise InvalidInputError(
                    f"Exercise {prescription.exercise_id} appears twice on plan day {plan_day_id}",
                    field="exercise_id",
                )
            seen.add(prescription.exercise_id)
            validate_prescription(prescription)
            exercise = self._exercise(exercises, prescription.exercise_id)
            resolve_rep_range(prescription, exercise)

        stored = self.repos.plan_day_exercise.find_by_plan_day(plan_day_id)
        diff = self.diff_plan_day_exercises(plan_day_id, stored, new_prescriptions)
        result = self.apply_diff_to_mesocycle(cycle_id, diff, exercises)
        self._rewrite_template(plan_day_id, stored, new_prescriptions, exercises)
        return result

    # -------------------------------------------------------------------------
    # Folds
    # -------------------------------------------------------------------------

    def _add(self, cycle_id, plan_day_id, prescription, exercise: Exercise) -> PropagationTally:
        calculator = self._calculator_for(cycle_id)
        progression = self._progression(as_prescription(prescription), exercise)
        return fold_workouts(
            self._future_workouts_for_day(cycle_id, plan_day_id),
            lambda workout: self._add_step(workout, progression, calculator),
        )

    def _remove(self, cycle_id, plan_day_id, exercise_id) -> PropagationTally:
        return fold_workouts(
            self._future_workouts_for_day(cycle_id, plan_day_id),
            lambda workout: self._remove_step(workout, exercise_id),
        )

    def _update(
        self,
        cycle_id,
        plan_day_id,
        exercise_id,
        changes,
        weight_increment,
        prescription=None,
        exclude_workout_id=None,
    ) -> PropagationTally:
        calculator = self._calculator_for(cycle_id)
        if prescription is None:
            stored = self.repos.plan_day_exercise.find_by_plan_day_and_exercise(plan_day_id, exercise_id)
            if stored is None:
                raise NotFoundError("PlanDayExercise", f"{plan_day_id}/{exercise_id}")
            prescription = as_prescription(stored).model_copy(update=dict(changes))
        else:
            prescription = as_prescription(prescription)

        exercise = self.repos.exercise.find_by_id(exercise_id)
        if exercise is None:
            raise NotFoundError("Exercise", exercise_id)
        progression = replace(
            self._progression(prescription, exercise),
            weight_increment=weight_increment,
        )
        return fold_workouts(
            self._future_workouts_for_day(cycle_id, plan_day_id, exclude_workout_id),
            lambda workout: self._reconcile_step(workout, progression, calculator),
        )

    # -------------------------------------------------------------------------
    # Per-workout steps
    # -------------------------------------------------------------------------

    def _add_step(
        self,
        workout: Workout,
        progression: ExerciseProgression,
        calculator: ProgressionCalculator,
    ) -> PropagationTally:
        # Sets left behind by an earlier removal stay; the missing numbers are filled in
        existing = self.repos.workout_set.find_by_workout_and_exercise(workout.id, progression.exercise_id)
        targets = self._targets_for(workout, progression, calculator)
        missing = targets.target_sets - len(existing)
        if missing <= 0:
            return PropagationTally()
        added = self._create_sets(workout, progression.exercise_id, targets, existing, count=missing)
        return PropagationTally.for_workout(workout.id, added=added)

    def _remove_step(self, workout: Workout, exercise_id: int) -> PropagationTally:
        removed = preserved = 0
        for workout_set in self.repos.workout_set.find_by_workout_and_exercise(workout.id, exercise_id):
            if has_logged_data(workout_set):
                preserved += 1
            else:
                self._delete_set(workout_set)
                removed += 1

        warnings: Tuple[str, ...] = ()
        if preserved:
            logger.warning(
                f"Workout {workout.id}: {preserved} logged sets of exercise {exercise_id} preserved",
                extra=log_context(workout_id=workout.id, exercise_id=exercise_id, scheduled_date=workout.scheduled_date),
            )
            warnings = (preserved_warning(workout),)
        return PropagationTally.for_workout(workout.id, removed=removed, preserved=preserved, warnings=warnings)

    def _reconcile_step(
        self,
        workout: Workout,
        progression: ExerciseProgression,
        calculator: ProgressionCalculator,
    ) -> PropagationTally:
        sets = self.repos.workout_set.find_by_workout_and_exercise(workout.id, progression.exercise_id)
        if not sets:
            return PropagationTally()

        targets = self._targets_for(workout, progression, calculator)
        added = removed = preserved = modified = 0
        warnings: Tuple[str, ...] = ()

        excess = len(sets) - targets.target_sets
        if excess > 0:
            # A workout that already holds logged sets keeps its structure
            if any(has_logged_data(s) for s in sets):
                preserved = excess
                logger.warning(
                    f"Workout {workout.id}: {excess} sets of exercise {progression.exercise_id} "
                    f"preserved because the workout has logged data",
                    extra=log_context(workout_id=workout.id, exercise_id=progression.exercise_id, scheduled_date=workout.scheduled_date),
                )
                warnings = (preserved_warning(workout),)
            else:
                for workout_set in sets[-excess:]:
                    self._delete_set(workout_set)
                removed = excess
                sets = sets[:-excess]
        elif excess < 0:
            added = self._create_sets(
                workout,
                progression.exercise_id,
                targets,
                sets,
                count=-excess,
            )

        for workout_set in sets:
            if has_logged_data(workout_set):
                continue
            if (workout_set.target_reps, workout_set.target_weight) == (targets.target_reps, targets.target_weight):
                continue
            self._update_set(
                workout_set.id,
                target_reps=targets.target_reps,
                target_weight=targets.target_weight,
            )
            modified += 1

        return PropagationTally.for_workout(
            workout.id,
            added=added,
            removed=removed,
            modified=modified,
            preserved=preserved,
            warnings=warnings,
        )

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _get_mesocycle(self, cycle_id: int) -> Mesocycle:
        mesocycle = self.repos.mesocycle.find_by_id(cycle_id)
        if mesocycle is None:
            raise NotFoundError("Mesocycle", cycle_id)
        return mesocycle

    def _calculator_for(self, cycle_id: int) -> ProgressionCalculator:
        mesocycle = self._get_mesocycle(cycle_id)
        return ProgressionCalculator(deload_week=mesocycle.plan.duration_weeks)

    def _exercise(self, cache: Dict[int, Exercise], exercise_id: int) -> Exercise:
        exercise = cache.get(exercise_id)
        if exercise is None:
            exercise = self.repos.exercise.find_by_id(exercise_id)
            if exercise is None:
                raise NotFoundError("Exercise", exercise_id)
            if isinstance(cache, dict):
                cache[exercise_id] = exercise
        return exercise

    def _progression(self, prescription: PlanDayExercisePrescription, exercise: Exercise) -> ExerciseProgression:
        min_reps, max_reps = resolve_rep_range(prescription, exercise)
        return ExerciseProgression(
            exercise_id=prescription.exercise_id,
            plan_exercise_id=prescription.id,
            base_weight=prescription.weight,
            base_reps=prescription.reps,
            base_sets=prescription.sets,
            weight_increment=exercise.weight_increment,
            min_reps=min_reps,
            max_reps=max_reps,
        )

    def _targets_for(
        self,
        workout: Workout,
        progression: ExerciseProgression,
        calculator: ProgressionCalculator,
    ) -> WeekTargets:
        # Workouts number weeks from 1; progression weeks start at 0
        return calculator.calculate_targets_for_week(progression, workout.week_number - 1, True)

    def _create_sets(
        self,
        workout: Workout,
        exercise_id: int,
        targets: WeekTargets,
        existing: Sequence[WorkoutSet],
        count: int,
    ) -> int:
        """Create `count` pending sets at the lowest set numbers not already taken."""
        taken = {s.set_number for s in existing}
        open_numbers = (n for n in itertools.count(1) if n not in taken)
        for set_number in itertools.islice(open_numbers, count):
            self.repos.workout_set.create(
                workout_id=workout.id,
                exercise_id=exercise_id,
                set_number=set_number,
                target_reps=targets.target_reps,
                target_weight=targets.target_weight,
                status=SetStatus.PENDING.value,
            )
        return count

    def _update_set(self, set_id: int, **fields) -> WorkoutSet:
        updated = self.repos.workout_set.update(set_id, **fields)
        if updated is None:
            logger.error(f"Failed to update workout set {set_id} during propagation")
            raise UpdateFailedError("WorkoutSet", set_id)
        return updated

    def _delete_set(self, workout_set: WorkoutSet) -> None:
        if not self.repos.workout_set.delete(workout_set.id):
            logger.error(f"Failed to delete workout set {workout_set.id} during propagation")
            raise UpdateFailedError("WorkoutSet", workout_set.id)

    def _rewrite_template(
        self,
        plan_day_id: int,
        stored: Sequence[PlanDayExercise],
        new_prescriptions: Sequence[PlanDayExercisePrescription],
        exercises: Mapping[int, Exercise],
    ) -> None:
        stored_by_exercise = {row.exercise_id: row for row in stored}
        new_ids = {p.exercise_id for p in new_prescriptions}

        for row in stored:
            if row.exercise_id not in new_ids:
                self.repos.plan_day_exercise.delete(row.id)

        for prescription in new_prescriptions:
            min_reps, max_reps = resolve_rep_range(prescription, exercises[prescription.exercise_id])
            values = dict(
                sets=prescription.sets,
                reps=prescription.reps,
                weight=prescription.weight,
                rest_seconds=prescription.rest_seconds,
                sort_order=prescription.sort_order,
                min_reps=min_reps,
                max_reps=max_reps,
            )
            row = stored_by_exercise.get(prescription.exercise_id)
            if row is None:
                self.repos.plan_day_exercise.create(
                    plan_day_id=plan_day_id, exercise_id=prescription.exercise_id, **values
                )
            elif self.repos.plan_day_exercise.update(row.id, **values) is None:
                logger.error(f"Failed to update plan day exercise {row.id}")
                raise UpdateFailedError("PlanDayExercise", row.id)
