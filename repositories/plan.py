from typing import List, Optional

from models import Plan, PlanDay, PlanDayExercise
from repositories.base import BaseRepository


class PlanRepository(BaseRepository[Plan]):
    model = Plan


class PlanDayRepository(BaseRepository[PlanDay]):
    model = PlanDay

    def find_by_plan(self, plan_id: int) -> List[PlanDay]:
        return (
            self.db.query(PlanDay)
            .filter(PlanDay.plan_id == plan_id)
            .order_by(PlanDay.sort_order, PlanDay.id)
            .all()
        )


class PlanDayExerciseRepository(BaseRepository[PlanDayExercise]):
    model = PlanDayExercise

    def find_by_plan_day(self, plan_day_id: int) -> List[PlanDayExercise]:
        return (
            self.db.query(PlanDayExercise)
            .filter(PlanDayExercise.plan_day_id == plan_day_id)
            .order_by(PlanDayExercise.sort_order, PlanDayExercise.id)
            .all()
        )

    def find_by_plan_day_and_exercise(
        self, plan_day_id: int, exercise_id: int
    ) -> Optional[PlanDayExercise]:
        return (
            self.db.query(PlanDayExercise)
            .filter(
                PlanDayExercise.plan_day_id == plan_day_id,
                PlanDayExercise.exercise_id == exercise_id,
            )
            .first()
        )
