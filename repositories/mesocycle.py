from typing import List, Tuple

from models import Mesocycle, Workout, WorkoutSet
from repositories.base import BaseRepository


class MesocycleRepository(BaseRepository[Mesocycle]):
    model = Mesocycle

    def find_active(self) -> List[Mesocycle]:
        return self.find_by(status="active")


class WorkoutRepository(BaseRepository[Workout]):
    model = Workout

    def find_by_mesocycle(self, mesocycle_id: int) -> List[Workout]:
        """All workouts of a mesocycle in schedule order."""
        return (
            self.db.query(Workout)
            .filter(Workout.mesocycle_id == mesocycle_id)
            .order_by(Workout.scheduled_date, Workout.id)
            .all()
        )


class WorkoutSetRepository(BaseRepository[WorkoutSet]):
    model = WorkoutSet

    def find_by_workout(self, workout_id: int) -> List[WorkoutSet]:
        return (
            self.db.query(WorkoutSet)
            .filter(WorkoutSet.workout_id == workout_id)
            .order_by(WorkoutSet.exercise_id, WorkoutSet.set_number)
            .all()
        )

    def find_by_workout_and_exercise(
        self, workout_id: int, exercise_id: int
    ) -> List[WorkoutSet]:
        return (
            self.db.query(WorkoutSet)
            .filter(
                WorkoutSet.workout_id == workout_id,
                WorkoutSet.exercise_id == exercise_id,
            )
            .order_by(WorkoutSet.set_number)
            .all()
        )

    def find_completed_by_exercise(self, exercise_id: int) -> List[Tuple[WorkoutSet, Workout]]:
        """Completed sets of an exercise with their workout, oldest session first."""
        return (
            self.db.query(WorkoutSet, Workout)
            .join(Workout, WorkoutSet.workout_id == Workout.id)
            .filter(
                WorkoutSet.exercise_id == exercise_id,
                WorkoutSet.status == "completed",
                WorkoutSet.actual_reps.isnot(None),
                WorkoutSet.actual_weight.isnot(None),
            )
            .order_by(Workout.scheduled_date, Workout.id, WorkoutSet.set_number)
            .all()
        )
