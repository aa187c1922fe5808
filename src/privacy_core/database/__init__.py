"""Database package for retention persistence."""

from .database import create_db_engine, create_session_factory, init_db, get_db_context
from .models import Base, RetentionRecordModel, CleanupTaskModel
from .repositories import BaseRepository, RetentionRecordRepository, CleanupTaskRepository

__all__ = [
    "create_db_engine",
    "create_session_factory",
    "init_db",
    "get_db_context",
    "Base",
    "RetentionRecordModel",
    "CleanupTaskModel",
    "BaseRepository",
    "RetentionRecordRepository",
    "CleanupTaskRepository",
]
