"""
Plan Modification Audit Service

Records every template change that was pushed into a mesocycle's future
workouts, with before/after snapshots and the propagation outcome.
"""

from typing import Optional, Any
from sqlalchemy.orm import Session

from models import PlanModificationLog


def serialize_prescription(prescription: Any) -> Optional[dict]:
    """Snapshot a PlanDayExercise row or prescription schema as a JSON-compatible dict."""
    if prescription is None:
        return None
    return {
        "exercise_id": prescription.exercise_id,
        "sets": prescription.sets,
        "reps": prescription.reps,
        "weight": prescription.weight,
        "rest_seconds": prescription.rest_seconds,
        "min_reps": prescription.min_reps,
        "max_reps": prescription.max_reps,
    }


def log_modification(
    db: Session,
    mesocycle_id: int,
    plan_day_id: int,
    action: str,
    exercise_id: Optional[int] = None,
    before_state: Optional[dict] = None,
    after_state: Optional[dict] = None,
    result: Optional[dict] = None,
    source: str = "plan_edit",
) -> PlanModificationLog:
    """
    Log a propagated plan modification.

    Args:
        db: Database session
        mesocycle_id: Mesocycle whose workouts were changed
        plan_day_id: Training day the change applies to
        action: add_exercise, remove_exercise, modify_exercise, set_count_change or sync_plan
        exercise_id: Exercise affected (if applicable)
        before_state: JSON-serializable state before modification
        after_state: JSON-serializable state after modification
        result: Counts and warnings produced by the propagation
        source: Where the change came from (plan_edit, workout, sync)

    Returns:
        Created PlanModificationLog entry
    """
    log_entry = PlanModificationLog(
        mesocycle_id=mesocycle_id,
        plan_day_id=plan_day_id,
        exercise_id=exercise_id,
        action=action,
        before_state=before_state,
        after_state=after_state,
        result=result,
        source=source,
    )

    db.add(log_entry)
    # Don't commit here - let the caller manage the transaction

    return log_entry


def log_exercise_added(
    db: Session,
    mesocycle_id: int,
    plan_day_id: int,
    prescription: Any,
    result: dict,
    source: str = "plan_edit",
) -> PlanModificationLog:
    return log_modification(
        db=db,
        mesocycle_id=mesocycle_id,
        plan_day_id=plan_day_id,
        action="add_exercise",
        exercise_id=prescription.exercise_id,
        after_state=serialize_prescription(prescription),
        result=result,
        source=source,
    )


def log_exercise_removed(
    db: Session,
    mesocycle_id: int,
    plan_day_id: int,
    prescription: Any,
    result: dict,
    source: str = "plan_edit",
) -> PlanModificationLog:
    return log_modification(
        db=db,
        mesocycle_id=mesocycle_id,
        plan_day_id=plan_day_id,
        action="remove_exercise",
        exercise_id=prescription.exercise_id,
        before_state=serialize_prescription(prescription),
        result=result,
        source=source,
    )


def log_exercise_modified(
    db: Session,
    mesocycle_id: int,
    plan_day_id: int,
    exercise_id: int,
    changes: dict,
    before: Any,
    result: dict,
    source: str = "plan_edit",
) -> PlanModificationLog:
    """Log a sets/reps/weight/rest change; after_state holds only the changed fields."""
    return log_modification(
        db=db,
        mesocycle_id=mesocycle_id,
        plan_day_id=plan_day_id,
        action="modify_exercise",
        exercise_id=exercise_id,
        before_state=serialize_prescription(before),
        after_state=dict(changes),
        result=result,
        source=source,
    )


def log_set_count_change(
    db: Session,
    mesocycle_id: int,
    plan_day_id: int,
    exercise_id: int,
    workout_id: int,
    old_count: int,
    new_count: int,
    result: dict,
) -> PlanModificationLog:
    """Log a manual add/remove-set in one workout that was carried forward."""
    return log_modification(
        db=db,
        mesocycle_id=mesocycle_id,
        plan_day_id=plan_day_id,
        action="set_count_change",
        exercise_id=exercise_id,
        before_state={"workout_id": workout_id, "sets": old_count},
        after_state={"workout_id": workout_id, "sets": new_count},
        result=result,
        source="workout",
    )
