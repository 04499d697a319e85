from typing import Optional

from models import Exercise
from repositories.base import BaseRepository


class ExerciseRepository(BaseRepository[Exercise]):
    model = Exercise

    def find_by_name(self, name: str) -> Optional[Exercise]:
        return self.db.query(Exercise).filter(Exercise.name == name).first()
