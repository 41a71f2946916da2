from typing import Generic, TypeVar, Type, Optional, Any, Dict
from sqlalchemy.orm import Session
from watchlog.db import Base

ModelType = TypeVar("ModelType", bound=Base)

class BaseRepository(Generic[ModelType]):
    """Primary-key lookups and single-row writes shared by the repositories"""

    def __init__(self, model: Type[ModelType], db: Session):
        self.model = model
        self.db = db

    def get(self, id: Any) -> Optional[ModelType]:
        return self.db.query(self.model).filter(self.model.id == id).first()

    def find_one(self, **kwargs) -> Optional[ModelType]:
        return self.db.query(self.model).filter_by(**kwargs).first()

    def create(self, fields: Dict[str, Any]) -> ModelType:
        """Insert one row and commit"""
        db_obj = self.model(**fields)
        self.db.add(db_obj)
        self.db.commit()
        self.db.refresh(db_obj)
        return db_obj

    def delete(self, db_obj: ModelType) -> None:
        """Delete a loaded row; ORM cascades apply"""
        self.db.delete(db_obj)
        self.db.commit()
