"""Repository pattern implementation for retention persistence."""

import logging
from typing import List, Optional, Any

from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from .models import RetentionRecordModel, CleanupTaskModel

logger = logging.getLogger(__name__)


class BaseRepository:
    """Base repository with common CRUD operations."""

    def __init__(self, db: Session, model):
        self.db = db
        self.model = model

    def get(self, id: str) -> Optional[Any]:
        """Get a single record by ID."""
        try:
            return self.db.get(self.model, id)
        except SQLAlchemyError as e:
            logger.error(f"Error getting {self.model.__name__} by id: {e}")
            raise

    def get_all(self) -> List[Any]:
        try:
            return self.db.query(self.model).all()
        except SQLAlchemyError as e:
            logger.error(f"Error getting all {self.model.__name__}: {e}")
            raise

    def upsert(self, id: str, **kwargs) -> Any:
        """Create a record or overwrite an existing one."""
        try:
            db_obj = self.get(id)
            if db_obj is None:
                db_obj = self.model(id=id, **kwargs)
                self.db.add(db_obj)
            else:
                for key, value in kwargs.items():
                    setattr(db_obj, key, value)
            self.db.commit()
            self.db.refresh(db_obj)
            return db_obj
        except SQLAlchemyError as e:
            logger.error(f"Error saving {self.model.__name__}: {e}")
            self.db.rollback()
            raise

    def delete(self, id: str) -> bool:
        """Delete a record."""
        try:
            db_obj = self.get(id)
            if db_obj:
                self.db.delete(db_obj)
                self.db.commit()
                return True
            return False
        except SQLAlchemyError as e:
            logger.error(f"Error deleting {self.model.__name__}: {e}")
            self.db.rollback()
            raise

    def delete_all(self) -> int:
        try:
            count = self.db.query(self.model).delete()
            self.db.commit()
            return count
        except SQLAlchemyError as e:
            logger.error(f"Error clearing {self.model.__name__}: {e}")
            self.db.rollback()
            raise


class RetentionRecordRepository(BaseRepository):
    """Repository for retention record operations."""

    def __init__(self, db: Session):
        super().__init__(db, RetentionRecordModel)


class CleanupTaskRepository(BaseRepository):
    """Repository for cleanup task operations."""

    def __init__(self, db: Session):
        super().__init__(db, CleanupTaskModel)
