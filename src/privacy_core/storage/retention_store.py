"""
Retention persistence.

Store interface for retention records and cleanup tasks, with an in-memory
implementation and a SQLAlchemy-backed implementation for durable storage.
"""

import asyncio
import copy
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from sqlalchemy.orm import sessionmaker

from privacy_core.database.database import get_db_context
from privacy_core.database.models import RetentionRecordModel, CleanupTaskModel
from privacy_core.database.repositories import RetentionRecordRepository, CleanupTaskRepository
from .retention_models import CleanupStatus, CleanupTask, RetentionRecord

logger = logging.getLogger(__name__)

RecordPredicate = Callable[[RetentionRecord], bool]


class RetentionStore(ABC):
    """Abstract store for retention records and cleanup tasks."""

    @abstractmethod
    async def get_record(self, record_id: str) -> Optional[RetentionRecord]:
        pass

    @abstractmethod
    async def put_record(self, record: RetentionRecord) -> None:
        pass

    @abstractmethod
    async def delete_record(self, record_id: str) -> bool:
        pass

    @abstractmethod
    async def list_records(self, predicate: Optional[RecordPredicate] = None) -> List[RetentionRecord]:
        pass

    @abstractmethod
    async def get_task(self, task_id: str) -> Optional[CleanupTask]:
        pass

    @abstractmethod
    async def put_task(self, task: CleanupTask) -> None:
        pass

    @abstractmethod
    async def list_tasks(self) -> List[CleanupTask]:
        pass

    @abstractmethod
    async def clear(self) -> None:
        """Remove every record and task."""
        pass


class InMemoryRetentionStore(RetentionStore):
    """Dict-backed store. Objects are copied in and out like a real backend."""

    def __init__(self):
        self._records: Dict[str, RetentionRecord] = {}
        self._tasks: Dict[str, CleanupTask] = {}
        self._lock = asyncio.Lock()

    async def get_record(self, record_id: str) -> Optional[RetentionRecord]:
        record = self._records.get(record_id)
        return copy.deepcopy(record) if record else None

    async def put_record(self, record: RetentionRecord) -> None:
        async with self._lock:
            self._records[record.id] = copy.deepcopy(record)

    async def delete_record(self, record_id: str) -> bool:
        async with self._lock:
            return self._records.pop(record_id, None) is not None

    async def list_records(self, predicate: Optional[RecordPredicate] = None) -> List[RetentionRecord]:
        return [
            copy.deepcopy(record) for record in self._records.values()
            if predicate is None or predicate(record)
        ]

    async def get_task(self, task_id: str) -> Optional[CleanupTask]:
        task = self._tasks.get(task_id)
        return copy.deepcopy(task) if task else None

    async def put_task(self, task: CleanupTask) -> None:
        async with self._lock:
            self._tasks[task.id] = copy.deepcopy(task)

    async def list_tasks(self) -> List[CleanupTask]:
        return [copy.deepcopy(task) for task in self._tasks.values()]

    async def clear(self) -> None:
        async with self._lock:
            self._records.clear()
            self._tasks.clear()


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite drops tzinfo on read
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _record_from_model(model: RetentionRecordModel) -> RetentionRecord:
    return RetentionRecord(
        id=model.id,
        data_type=model.data_type,
        content_hash=model.content_hash,
        created_at=_as_utc(model.created_at),
        expires_at=_as_utc(model.expires_at),
        policy_id=model.policy_id,
        metadata=dict(model.record_metadata or {}),
        is_archived=bool(model.is_archived),
        security_level=model.security_level,
        last_accessed=_as_utc(model.last_accessed)
    )


def _task_from_model(model: CleanupTaskModel) -> CleanupTask:
    return CleanupTask(
        id=model.id,
        policy_id=model.policy_id,
        scheduled_at=_as_utc(model.scheduled_at),
        status=CleanupStatus(model.status),
        records_found=model.records_found or 0,
        records_deleted=model.records_deleted or 0,
        records_archived=model.records_archived or 0,
        errors=list(model.errors or []),
        completed_at=_as_utc(model.completed_at),
        verification_hash=model.verification_hash
    )


class SQLAlchemyRetentionStore(RetentionStore):
    """Relational store backed by the retention_records and cleanup_tasks tables."""

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    async def get_record(self, record_id: str) -> Optional[RetentionRecord]:
        with get_db_context(self.session_factory) as db:
            model = RetentionRecordRepository(db).get(record_id)
            return _record_from_model(model) if model else None

    async def put_record(self, record: RetentionRecord) -> None:
        with get_db_context(self.session_factory) as db:
            RetentionRecordRepository(db).upsert(
                record.id,
                data_type=record.data_type,
                content_hash=record.content_hash,
                created_at=record.created_at,
                expires_at=record.expires_at,
                last_accessed=record.last_accessed,
                policy_id=record.policy_id,
                is_archived=record.is_archived,
                security_level=record.security_level,
                record_metadata=dict(record.metadata)
            )

    async def delete_record(self, record_id: str) -> bool:
        with get_db_context(self.session_factory) as db:
            return RetentionRecordRepository(db).delete(record_id)

    async def list_records(self, predicate: Optional[RecordPredicate] = None) -> List[RetentionRecord]:
        with get_db_context(self.session_factory) as db:
            records = [_record_from_model(m) for m in RetentionRecordRepository(db).get_all()]
        if predicate is None:
            return records
        return [record for record in records if predicate(record)]

    async def get_task(self, task_id: str) -> Optional[CleanupTask]:
        with get_db_context(self.session_factory) as db:
            model = CleanupTaskRepository(db).get(task_id)
            return _task_from_model(model) if model else None

    async def put_task(self, task: CleanupTask) -> None:
        with get_db_context(self.session_factory) as db:
            CleanupTaskRepository(db).upsert(
                task.id,
                policy_id=task.policy_id,
                scheduled_at=task.scheduled_at,
                completed_at=task.completed_at,
                status=task.status.value,
                records_found=task.records_found,
                records_deleted=task.records_deleted,
                records_archived=task.records_archived,
                errors=list(task.errors),
                verification_hash=task.verification_hash
            )

    async def list_tasks(self) -> List[CleanupTask]:
        with get_db_context(self.session_factory) as db:
            return [_task_from_model(m) for m in CleanupTaskRepository(db).get_all()]

    async def clear(self) -> None:
        with get_db_context(self.session_factory) as db:
            records = RetentionRecordRepository(db).delete_all()
            tasks = CleanupTaskRepository(db).delete_all()
        logger.info(f"Cleared {records} retention records and {tasks} cleanup tasks")
