"""
Exercise History Service

Completed sets of one exercise grouped into sessions, the best set of each
session, and the personal record. Also builds the performance history the
adaptive engine needs and answers "what should I lift next week".
"""
import logging
from dataclasses import dataclass, field
from datetime import date
from itertools import groupby
from sqlalchemy.orm import Session
from typing import List, Optional

from core.exceptions import NotFoundError
from models import Exercise
from repositories import create_repositories
from services.plan_service import to_exercise_progression
from services.progression import (
    CompletedSet,
    DynamicProgressionEngine,
    PreviousWeekPerformance,
    WeekTargets,
    performance_history,
    select_best_set,
)

logger = logging.getLogger(__name__)


@dataclass
class HistorySet:
    set_number: int
    target_reps: int
    target_weight: float
    actual_reps: int
    actual_weight: float


@dataclass
class HistorySession:
    """One workout's completed sets for the exercise."""
    workout_id: int
    mesocycle_id: int
    plan_day_id: int
    week_number: int
    scheduled_date: date
    sets: List[HistorySet] = field(default_factory=list)

    @property
    def best_set(self) -> HistorySet:
        return select_best_set(self.sets)

    @property
    def best_weight(self) -> float:
        return self.best_set.actual_weight

    @property
    def best_set_reps(self) -> int:
        return self.best_set.actual_reps


@dataclass
class ExerciseHistory:
    exercise: Exercise
    sessions: List[HistorySession] = field(default_factory=list)  # Oldest first
    personal_record: Optional[HistorySet] = None
    personal_record_date: Optional[date] = None


def _load_sessions(
    db: Session,
    exercise_id: int,
    mesocycle_id: Optional[int] = None,
    plan_day_id: Optional[int] = None,
) -> List[HistorySession]:
    rows = create_repositories(db).workout_set.find_completed_by_exercise(exercise_id)
    if mesocycle_id is not None:
        rows = [(s, w) for s, w in rows if w.mesocycle_id == mesocycle_id]
    if plan_day_id is not None:
        rows = [(s, w) for s, w in rows if w.plan_day_id == plan_day_id]

    sessions = []
    for _, group in groupby(rows, key=lambda row: row[1].id):
        group = list(group)
        workout = group[0][1]
        sessions.append(
            HistorySession(
                workout_id=workout.id,
                mesocycle_id=workout.mesocycle_id,
                plan_day_id=workout.plan_day_id,
                week_number=workout.week_number,
                scheduled_date=workout.scheduled_date,
                sets=[
                    HistorySet(
                        set_number=s.set_number,
                        target_reps=s.target_reps,
                        target_weight=s.target_weight,
                        actual_reps=s.actual_reps,
                        actual_weight=s.actual_weight,
                    )
                    for s, _ in group
                ],
            )
        )
    return sessions


def get_exercise_history(db: Session, exercise_id: int) -> ExerciseHistory:
    """
    All completed sessions of an exercise, oldest first.

    The personal record is the heaviest best set (more reps breaks ties);
    the earliest session wins when two are identical.
    """
    exercise = create_repositories(db).exercise.find_by_id(exercise_id)
    if exercise is None:
        raise NotFoundError("Exercise", exercise_id)

    sessions = _load_sessions(db, exercise_id)
    history = ExerciseHistory(exercise=exercise, sessions=sessions)
    for session in sessions:
        best = session.best_set
        record = history.personal_record
        if record is None or (best.actual_weight, best.actual_reps) > (record.actual_weight, record.actual_reps):
            history.personal_record = best
            history.personal_record_date = session.scheduled_date
    return history


def build_performance_history(
    db: Session,
    exercise_id: int,
    min_reps: int,
    mesocycle_id: Optional[int] = None,
    plan_day_id: Optional[int] = None,
    engine: Optional[DynamicProgressionEngine] = None,
) -> List[PreviousWeekPerformance]:
    """
    Sessions as PreviousWeekPerformance entries, newest first.

    Each session is judged against its first set's targets. Week numbers are
    0-based progression weeks.
    """
    engine = engine or DynamicProgressionEngine()
    sessions = [
        {
            "exercise_id": exercise_id,
            "week_number": session.week_number - 1,
            "target_weight": session.sets[0].target_weight,
            "target_reps": session.sets[0].target_reps,
            "completed_sets": [CompletedSet(s.actual_weight, s.actual_reps) for s in session.sets],
        }
        for session in _load_sessions(db, exercise_id, mesocycle_id, plan_day_id)
    ]
    return performance_history(engine, sessions, min_reps)


def get_next_week_targets(
    db: Session,
    mesocycle_id: int,
    plan_day_exercise_id: int,
    engine: Optional[DynamicProgressionEngine] = None,
) -> WeekTargets:
    """
    Adaptive targets for the week after the latest logged session of this
    exercise on this training day. Deload rules apply when that week is the
    mesocycle's deload week.
    """
    repos = create_repositories(db)
    mesocycle = repos.mesocycle.find_by_id(mesocycle_id)
    if mesocycle is None:
        raise NotFoundError("Mesocycle", mesocycle_id)
    plan_exercise = repos.plan_day_exercise.find_by_id(plan_day_exercise_id)
    if plan_exercise is None:
        raise NotFoundError("PlanDayExercise", plan_day_exercise_id)

    engine = engine or DynamicProgressionEngine()
    progression = to_exercise_progression(plan_exercise, plan_exercise.exercise.weight_increment)
    history = build_performance_history(
        db,
        plan_exercise.exercise_id,
        plan_exercise.min_reps,
        mesocycle_id=mesocycle_id,
        plan_day_id=plan_exercise.plan_day_id,
        engine=engine,
    )
    previous = history[0] if history else None
    is_deload = previous is not None and previous.week_number + 1 == mesocycle.plan.duration_weeks

    targets = engine.calculate_next_week_targets(progression, previous, is_deload)
    logger.debug(
        f"Next targets for plan exercise {plan_day_exercise_id} in mesocycle {mesocycle_id}: "
        f"{targets.target_weight} x {targets.target_reps} ({targets.reason.value})"
    )
    return targets
