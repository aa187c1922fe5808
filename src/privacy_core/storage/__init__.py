"""Retention records and their persistence backends."""

from .retention_models import (
    CleanupStatus,
    CleanupTask,
    CleanupVerification,
    RetentionPolicy,
    RetentionRecord,
    DEFAULT_RETENTION_POLICIES
)
from .retention_store import (
    RetentionStore,
    InMemoryRetentionStore,
    SQLAlchemyRetentionStore
)

__all__ = [
    "CleanupStatus",
    "CleanupTask",
    "CleanupVerification",
    "RetentionPolicy",
    "RetentionRecord",
    "DEFAULT_RETENTION_POLICIES",
    "RetentionStore",
    "InMemoryRetentionStore",
    "SQLAlchemyRetentionStore",
]
