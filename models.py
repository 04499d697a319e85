from sqlalchemy import Column, Integer, Boolean, CheckConstraint, Float, Date, DateTime, ForeignKey, Text, JSON, Index, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from core.database import Base


class Exercise(Base):
    """
    Catalog entry for a lift.

    Reference data: progression code reads it and never mutates it.
    The rep range here is the default a plan-day prescription inherits.
    """
    __tablename__ = "exercise"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(Text, unique=True, nullable=False)
    weight_increment = Column(Float, default=5.0, nullable=False)  # Smallest meaningful load step, may be fractional
    min_reps = Column(Integer, default=8, nullable=False)
    max_reps = Column(Integer, default=12, nullable=False)
    is_custom = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        CheckConstraint("weight_increment > 0", name="ck_exercise_weight_increment_positive"),
        CheckConstraint("min_reps <= max_reps", name="ck_exercise_rep_range"),
    )


class Plan(Base):
    """
    Training plan template.

    duration_weeks counts working weeks; a mesocycle built from the plan
    appends one deload week after them.
    """
    __tablename__ = "plan"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(Text, nullable=False)
    duration_weeks = Column(Integer, default=6, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    days = relationship("PlanDay", back_populates="plan", order_by="PlanDay.sort_order")


class PlanDay(Base):
    """One training day of a plan (e.g. "Push Day" on Mondays)."""
    __tablename__ = "plan_day"

    id = Column(Integer, primary_key=True, autoincrement=True)
    plan_id = Column(Integer, ForeignKey("plan.id"), nullable=False)
    day_of_week = Column(Integer, nullable=False)  # 0=Sunday, 6=Saturday
    name = Column(Text, nullable=False)
    sort_order = Column(Integer, default=0, nullable=False)

    plan = relationship("Plan", back_populates="days")
    exercises = relationship("PlanDayExercise", back_populates="plan_day", order_by="PlanDayExercise.sort_order")

    __table_args__ = (
        CheckConstraint("day_of_week >= 0 AND day_of_week <= 6", name="ck_plan_day_day_of_week"),
        Index("ix_plan_day_plan_id", "plan_id"),
    )


class PlanDayExercise(Base):
    """
    Base prescription for one exercise on a training day.

    The week-0 targets of every scheduled set derive from these values.
    """
    __tablename__ = "plan_day_exercise"

    id = Column(Integer, primary_key=True, autoincrement=True)
    plan_day_id = Column(Integer, ForeignKey("plan_day.id"), nullable=False)
    exercise_id = Column(Integer, ForeignKey("exercise.id"), nullable=False)
    sets = Column(Integer, nullable=False)
    reps = Column(Integer, nullable=False)
    weight = Column(Float, nullable=False)
    rest_seconds = Column(Integer, default=90, nullable=False)
    sort_order = Column(Integer, default=0, nullable=False)
    min_reps = Column(Integer, default=8, nullable=False)  # Drop to this after adding weight
    max_reps = Column(Integer, default=12, nullable=False)  # Reaching this triggers a weight increase

    plan_day = relationship("PlanDay", back_populates="exercises")
    exercise = relationship("Exercise")

    __table_args__ = (
        UniqueConstraint("plan_day_id", "exercise_id", name="uq_plan_day_exercise"),
        CheckConstraint("sets >= 1", name="ck_plan_day_exercise_sets"),
        CheckConstraint("min_reps <= max_reps", name="ck_plan_day_exercise_rep_range"),
        Index("ix_plan_day_exercise_plan_day_id", "plan_day_id"),
    )


class Mesocycle(Base):
    """
    A run of a plan: N working weeks followed by one deload week.

    Status: 'pending' -> 'active' -> 'completed' | 'cancelled'.
    """
    __tablename__ = "mesocycle"

    id = Column(Integer, primary_key=True, autoincrement=True)
    plan_id = Column(Integer, ForeignKey("plan.id"), nullable=False)
    start_date = Column(Date, nullable=False)
    current_week = Column(Integer, default=1, nullable=False)
    status = Column(Text, default="pending", nullable=False)  # 'pending', 'active', 'completed', 'cancelled'
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    plan = relationship("Plan")

    __table_args__ = (
        Index("ix_mesocycle_status", "status"),
    )


class Workout(Base):
    """
    One scheduled session of a plan day inside a mesocycle.

    Status: 'pending' -> 'in_progress' (first set logged/skipped)
    -> 'completed' | 'skipped'. The last two are terminal.
    """
    __tablename__ = "workout"

    id = Column(Integer, primary_key=True, autoincrement=True)
    mesocycle_id = Column(Integer, ForeignKey("mesocycle.id"), nullable=False)
    plan_day_id = Column(Integer, ForeignKey("plan_day.id"), nullable=False)
    week_number = Column(Integer, nullable=False)  # 1-based; the last week is the deload week
    scheduled_date = Column(Date, nullable=False)
    status = Column(Text, default="pending", nullable=False)  # 'pending', 'in_progress', 'completed', 'skipped'
    started_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    sets = relationship("WorkoutSet", back_populates="workout", order_by="WorkoutSet.set_number")

    __table_args__ = (
        Index("ix_workout_mesocycle_id", "mesocycle_id"),
        Index("ix_workout_scheduled_date", "scheduled_date"),
    )


class WorkoutSet(Base):
    """
    One prescribed set of one exercise in a workout.

    set_number is 1-based and dense per (workout, exercise).
    A pending set never carries actual values.
    """
    __tablename__ = "workout_set"

    id = Column(Integer, primary_key=True, autoincrement=True)
    workout_id = Column(Integer, ForeignKey("workout.id"), nullable=False)
    exercise_id = Column(Integer, ForeignKey("exercise.id"), nullable=False)
    set_number = Column(Integer, nullable=False)
    target_reps = Column(Integer, nullable=False)
    target_weight = Column(Float, nullable=False)
    actual_reps = Column(Integer, nullable=True)
    actual_weight = Column(Float, nullable=True)
    status = Column(Text, default="pending", nullable=False)  # 'pending', 'completed', 'skipped'

    workout = relationship("Workout", back_populates="sets")

    __table_args__ = (
        CheckConstraint(
            "status != 'pending' OR (actual_reps IS NULL AND actual_weight IS NULL)",
            name="ck_workout_set_pending_has_no_actuals",
        ),
        Index("ix_workout_set_workout_exercise", "workout_id", "exercise_id"),
    )


class PlanModificationLog(Base):
    """
    Audit log for template changes pushed into a mesocycle.

    Actions:
    - 'add_exercise': Exercise added to a plan day's future workouts
    - 'remove_exercise': Exercise removed from future workouts
    - 'modify_exercise': Sets/reps/weight/rest changed for future workouts
    - 'set_count_change': A set added/removed in one workout, carried forward
    - 'sync_plan': Future workouts reconciled with the whole day template
    """
    __tablename__ = "plan_modification_log"

    id = Column(Integer, primary_key=True, autoincrement=True)
    mesocycle_id = Column(Integer, ForeignKey("mesocycle.id"), nullable=False)
    plan_day_id = Column(Integer, ForeignKey("plan_day.id"), nullable=False)
    exercise_id = Column(Integer, ForeignKey("exercise.id"), nullable=True)

    action = Column(Text, nullable=False)

    # State snapshots
    before_state = Column(JSON, nullable=True)
    after_state = Column(JSON, nullable=True)

    # Counts and warnings produced by the propagation
    result = Column(JSON, nullable=True)
    source = Column(Text, default="plan_edit", nullable=False)  # 'plan_edit', 'workout', 'sync'

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        Index("ix_plan_modification_log_mesocycle_id", "mesocycle_id"),
    )
