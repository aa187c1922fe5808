"""
Data Retention Manager

Tracks anonymized records against retention policies and enforces cleanup:
archival when the policy requires it, secure deletion with a deletion
certificate, and a verification hash per cleanup run that lets an auditor
confirm how many records were processed without learning which ones.
"""

import asyncio
import hashlib
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional, Union
from uuid import uuid4

from pydantic import ValidationError

from privacy_core.config.privacy_config import RetentionConfig, get_retention_config
from privacy_core.exceptions import (
    RetentionPolicyNotFoundError,
    InvalidRetentionPolicyError,
    CleanupTaskNotFoundError,
    CleanupAlreadyRunningError,
    InvalidTaskStateError
)
from privacy_core.storage.retention_models import (
    CleanupStatus,
    CleanupTask,
    CleanupVerification,
    RetentionPolicy,
    RetentionRecord,
    DEFAULT_RETENTION_POLICIES
)
from privacy_core.storage.retention_store import RetentionStore, InMemoryRetentionStore

logger = logging.getLogger(__name__)

HASH_PREFIX_LENGTH = 16


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _sha256(*parts: str) -> str:
    digest = hashlib.sha256()
    for part in parts:
        digest.update(part.encode("utf-8"))
    return digest.hexdigest()


class RetentionManager:
    """Retention policy enforcement over a pluggable record store."""

    def __init__(
        self,
        store: Optional[RetentionStore] = None,
        config: Optional[RetentionConfig] = None,
        clock: Callable[[], datetime] = utc_now
    ):
        self.store = store or InMemoryRetentionStore()
        self.config = config or get_retention_config()
        self.clock = clock

        self._policies: Dict[str, RetentionPolicy] = {
            policy.id: policy.model_copy() for policy in DEFAULT_RETENTION_POLICIES
        }
        self._cleanup_lock = asyncio.Lock()

    # Policies

    def set_retention_policy(self, policy: Union[RetentionPolicy, Dict[str, Any]]) -> RetentionPolicy:
        """Add or replace a retention policy after validation."""
        try:
            if isinstance(policy, RetentionPolicy):
                policy = RetentionPolicy.model_validate(policy.model_dump())
            else:
                policy = RetentionPolicy.model_validate(policy)
        except ValidationError as e:
            raise InvalidRetentionPolicyError(e.errors()) from e

        self._policies[policy.id] = policy
        logger.info(f"Retention policy set: {policy.id} ({policy.retention_days} days)")
        return policy

    def get_retention_policy(self, policy_id: str) -> Optional[RetentionPolicy]:
        return self._policies.get(policy_id)

    def list_retention_policies(self) -> List[RetentionPolicy]:
        return list(self._policies.values())

    def _require_policy(self, policy_id: str) -> RetentionPolicy:
        policy = self._policies.get(policy_id)
        if policy is None:
            raise RetentionPolicyNotFoundError(policy_id)
        return policy

    # Records

    async def register_for_retention(
        self,
        data_id: str,
        data_type: str,
        content_hash: str,
        policy_id: str,
        metadata: Optional[Dict[str, Any]] = None,
        security_level: str = "medium"
    ) -> RetentionRecord:
        """
        Register data for retention tracking.

        Args:
            data_id: Identifier of the tracked item
            data_type: Data type label
            content_hash: Hash of the tracked content
            policy_id: Governing retention policy
            metadata: Additional hash-only metadata
            security_level: low, medium, high or critical

        Returns:
            The stored retention record
        """
        policy = self._require_policy(policy_id)

        now = self.clock()
        record = RetentionRecord(
            id=data_id,
            data_type=data_type,
            content_hash=content_hash,
            created_at=now,
            expires_at=now + timedelta(days=policy.retention_days),
            policy_id=policy_id,
            metadata={
                **(metadata or {}),
                "registration_hash": _sha256(data_id, content_hash, now.isoformat())
            },
            security_level=security_level
        )

        await self.store.put_record(record)
        logger.info(f"Registered {data_id} for retention under {policy_id}, expires {record.expires_at.isoformat()}")
        return record

    async def update_last_accessed(self, data_id: str) -> bool:
        record = await self.store.get_record(data_id)
        if record is None:
            return False

        record.last_accessed = self.clock()
        await self.store.put_record(record)
        return True

    async def find_expired_records(
        self,
        policy_id: Optional[str] = None,
        data_type: Optional[str] = None
    ) -> List[RetentionRecord]:
        """Records past expiry, oldest expiry first."""
        now = self.clock()
        records = await self.store.list_records(
            lambda record: (
                record.expires_at <= now
                and (not policy_id or record.policy_id == policy_id)
                and (not data_type or record.data_type == data_type)
            )
        )
        return sorted(records, key=lambda record: record.expires_at)

    async def find_expiring_records(
        self,
        policy_id: Optional[str] = None,
        data_type: Optional[str] = None
    ) -> List[RetentionRecord]:
        """Records inside their policy's notification window before expiry."""
        now = self.clock()

        def in_notification_window(record: RetentionRecord) -> bool:
            if policy_id and record.policy_id != policy_id:
                return False
            if data_type and record.data_type != data_type:
                return False

            policy = self._policies.get(record.policy_id)
            if policy is None:
                return False

            notify_from = record.expires_at - timedelta(days=policy.notification_threshold_days)
            return notify_from <= now < record.expires_at

        records = await self.store.list_records(in_notification_window)
        return sorted(records, key=lambda record: record.expires_at)

    # Cleanup tasks

    async def schedule_cleanup(
        self,
        policy_id: str,
        scheduled_at: Optional[datetime] = None
    ) -> CleanupTask:
        self._require_policy(policy_id)

        now = self.clock()
        task = CleanupTask(
            id=f"cleanup-{int(now.timestamp() * 1000)}-{uuid4().hex[:9]}",
            policy_id=policy_id,
            scheduled_at=scheduled_at or now
        )

        await self.store.put_task(task)
        logger.info(f"Scheduled cleanup task {task.id} for policy {policy_id}")
        return task

    async def get_cleanup_task(self, task_id: str) -> CleanupTask:
        task = await self.store.get_task(task_id)
        if task is None:
            raise CleanupTaskNotFoundError(task_id)
        return task

    async def cancel_cleanup(self, task_id: str) -> CleanupTask:
        """Cancel a pending cleanup task."""
        task = await self.get_cleanup_task(task_id)
        if task.status != CleanupStatus.PENDING:
            raise InvalidTaskStateError(task_id, task.status.value, CleanupStatus.CANCELLED.value)

        task.status = CleanupStatus.CANCELLED
        task.completed_at = self.clock()
        await self.store.put_task(task)
        logger.info(f"Cancelled cleanup task {task_id}")
        return task

    async def execute_cleanup(self, task_id: str) -> CleanupTask:
        """
        Execute a pending cleanup task.

        Only one cleanup may run at a time across all policies; a concurrent
        call raises CleanupAlreadyRunningError immediately. Expired records are
        processed oldest expiry first. A failing record is reported in
        task.errors and the batch continues.

        Returns:
            The finished task, completed or failed
        """
        if self._cleanup_lock.locked():
            raise CleanupAlreadyRunningError()

        async with self._cleanup_lock:
            task = await self.get_cleanup_task(task_id)
            if task.status != CleanupStatus.PENDING:
                raise InvalidTaskStateError(task_id, task.status.value, CleanupStatus.RUNNING.value)

            task.status = CleanupStatus.RUNNING
            await self.store.put_task(task)
            logger.info(f"Starting cleanup task {task_id} for policy {task.policy_id}")

            try:
                policy = self._require_policy(task.policy_id)

                expired_records = await self.find_expired_records(task.policy_id)
                task.records_found = len(expired_records)

                for record in expired_records:
                    try:
                        if policy.archive_before_delete and self.config.archive_enabled:
                            await self._archive_record(record, policy)
                            task.records_archived += 1

                        await self._secure_delete_record(record)
                        task.records_deleted += 1

                    except Exception as e:
                        task.errors.append(f"Failed to process record {record.id}: {e}")
                        logger.warning(f"Cleanup task {task_id} failed to process record {record.id}: {e}")

                task.verification_hash = self._generate_verification_hash(task)
                task.status = CleanupStatus.COMPLETED
                task.completed_at = self.clock()

                logger.info(
                    f"Cleanup task {task_id} completed: found={task.records_found} "
                    f"deleted={task.records_deleted} archived={task.records_archived} "
                    f"errors={len(task.errors)}"
                )

            except Exception as e:
                task.errors.append(f"Cleanup task failed: {e}")
                task.status = CleanupStatus.FAILED
                task.completed_at = self.clock()
                logger.error(f"Cleanup task {task_id} failed: {e}")

            await self.store.put_task(task)
            return task

    async def verify_cleanup(self, task_id: str) -> CleanupVerification:
        """Check that a cleanup run left no expired records behind for its policy."""
        task = await self.get_cleanup_task(task_id)
        remaining = await self.find_expired_records(task.policy_id)

        return CleanupVerification(
            task_id=task_id,
            is_complete=task.status == CleanupStatus.COMPLETED and not remaining,
            verification_hash=task.verification_hash or "",
            deleted_count=task.records_deleted,
            remaining_count=len(remaining),
            verified_at=self.clock(),
            errors=list(task.errors)
        )

    async def run_automatic_cleanup(self) -> List[CleanupTask]:
        """Clean up every auto-cleanup policy that has expired records."""
        tasks = []

        for policy in list(self._policies.values()):
            if not policy.auto_cleanup:
                continue

            expired = await self.find_expired_records(policy.id)
            if not expired:
                continue

            task = await self.schedule_cleanup(policy.id)
            tasks.append(await self.execute_cleanup(task.id))

        return tasks

    async def _archive_record(self, record: RetentionRecord, policy: RetentionPolicy) -> None:
        # Only the hash and bookkeeping are archived, never content
        archived_at = self.clock()
        archive_hash = _sha256(record.id, record.content_hash, record.data_type, "ARCHIVED")

        record.is_archived = True
        record.metadata["archived_at"] = archived_at.isoformat()
        record.metadata["archive_hash"] = archive_hash
        record.metadata["archive_location"] = policy.archive_location or self.config.archive_location
        record.metadata["archive_expires_at"] = (
            archived_at + timedelta(days=self.config.archive_retention_days)
        ).isoformat()
        record.metadata["archive_encrypted"] = self.config.archive_encryption
        record.metadata["archive_compression_level"] = self.config.archive_compression_level
        await self.store.put_record(record)

        logger.info(f"Record archived: {record.id} ({record.data_type})")

    def _archive_settings(self) -> Dict[str, Any]:
        return {
            "enabled": self.config.archive_enabled,
            "location": self.config.archive_location,
            "encryption": self.config.archive_encryption,
            "compression_level": self.config.archive_compression_level,
            "max_archive_size_mb": self.config.max_archive_size_mb,
            "archive_retention_days": self.config.archive_retention_days
        }

    async def _secure_delete_record(self, record: RetentionRecord) -> str:
        deletion_hash = _sha256(record.content_hash, self.clock().isoformat(), "SECURELY_DELETED")

        if not await self.store.delete_record(record.id):
            raise ValueError(f"record {record.id} no longer exists")

        logger.info(
            f"Record securely deleted: {record.id} "
            f"(verification: {deletion_hash[:HASH_PREFIX_LENGTH]}...)"
        )
        return deletion_hash

    @staticmethod
    def _generate_verification_hash(task: CleanupTask) -> str:
        return _sha256(
            task.id,
            task.policy_id,
            str(task.records_deleted),
            str(task.records_archived),
            "CLEANUP_VERIFIED"
        )

    # Reporting

    async def get_retention_stats(self) -> Dict[str, Any]:
        records = await self.store.list_records()
        now = self.clock()

        records_by_type: Dict[str, int] = {}
        total_age_days = 0.0
        archived = 0

        for record in records:
            records_by_type[record.data_type] = records_by_type.get(record.data_type, 0) + 1
            if record.is_archived:
                archived += 1
            total_age_days += (now - record.created_at).total_seconds() / 86400

        expired = await self.find_expired_records()
        expiring = await self.find_expiring_records()

        return {
            "total_records": len(records),
            "records_by_type": records_by_type,
            "expired_records": len(expired),
            "expiring_records": len(expiring),
            "archived_records": archived,
            "average_retention_days": total_age_days / len(records) if records else 0.0,
            "oldest_record": min(r.created_at for r in records).isoformat() if records else None,
            "newest_record": max(r.created_at for r in records).isoformat() if records else None
        }

    async def export_retention_data(self) -> Dict[str, Any]:
        """Export policies, records and tasks for compliance review. Hashes only."""
        records = await self.store.list_records()
        tasks = await self.store.list_tasks()

        return {
            "policies": [policy.model_dump() for policy in self._policies.values()],
            "records": [record.to_dict() for record in records],
            "tasks": [task.to_dict() for task in tasks],
            "stats": await self.get_retention_stats(),
            "archive_settings": self._archive_settings(),
            "exported_at": self.clock().isoformat(),
            "privacy_compliant": True
        }

    async def clear_all_data(self) -> None:
        """Remove all records and tasks. Policies are kept."""
        await self.store.clear()
        logger.warning("All retention records and cleanup tasks cleared")
