"""
Session-backed repository base.

Each repository wraps the caller's Session. Writes are flushed, never
committed: the caller owns the transaction, so a multi-record operation
commits or rolls back as one unit.
"""
from typing import Any, Generic, List, Optional, Type, TypeVar

from sqlalchemy.orm import Session

from core.database import Base

ModelT = TypeVar("ModelT", bound=Base)


class BaseRepository(Generic[ModelT]):
    model: Type[ModelT]

    def __init__(self, db: Session):
        self.db = db

    def find_by_id(self, id: Any) -> Optional[ModelT]:
        return self.db.get(self.model, id)

    def find_all(self) -> List[ModelT]:
        return self.db.query(self.model).order_by(self.model.id).all()

    def find_by(self, **filters: Any) -> List[ModelT]:
        return (
            self.db.query(self.model)
            .filter_by(**filters)
            .order_by(self.model.id)
            .all()
        )

    def create(self, **fields: Any) -> ModelT:
        entity = self.model(**fields)
        self.db.add(entity)
        self.db.flush()
        return entity

    def update(self, id: Any, **fields: Any) -> Optional[ModelT]:
        """Apply field changes; None when the row no longer exists."""
        entity = self.find_by_id(id)
        if entity is None:
            return None
        for key, value in fields.items():
            setattr(entity, key, value)
        self.db.flush()
        return entity

    def delete(self, id: Any) -> bool:
        entity = self.find_by_id(id)
        if entity is None:
            return False
        self.db.delete(entity)
        self.db.flush()
        return True
