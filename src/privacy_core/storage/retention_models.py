"""
Retention domain records.

Policies, tracked records and cleanup tasks. None of these types carry
original content, only hashes, counts, flags and timestamps.
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class CleanupStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class RetentionPolicy(BaseModel):
    """Rule set governing how long a data type may be retained."""
    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(min_length=1)
    name: str
    data_type: str
    retention_days: int = Field(ge=1, le=3650)
    auto_cleanup: bool = True
    secure_delete: bool = True
    archive_before_delete: bool = True
    archive_location: Optional[str] = None
    notification_threshold_days: int = Field(default=7, ge=1)


DEFAULT_RETENTION_POLICIES = [
    RetentionPolicy(
        id="analysis-results",
        name="Analysis Results",
        data_type="analysis_result",
        retention_days=90,
        auto_cleanup=True,
        archive_before_delete=True,
        notification_threshold_days=7
    ),
    RetentionPolicy(
        id="session-data",
        name="Session Data",
        data_type="session_data",
        retention_days=30,
        auto_cleanup=True,
        archive_before_delete=False,
        notification_threshold_days=3
    ),
    RetentionPolicy(
        id="audit-logs",
        name="Audit Logs",
        data_type="audit_log",
        retention_days=2555,  # ~7 years
        auto_cleanup=False,
        archive_before_delete=True,
        notification_threshold_days=30
    ),
    RetentionPolicy(
        id="quota-records",
        name="Quota Usage Records",
        data_type="quota_record",
        retention_days=365,
        auto_cleanup=True,
        archive_before_delete=True,
        notification_threshold_days=14
    ),
    RetentionPolicy(
        id="user-preferences",
        name="User Preferences",
        data_type="user_preference",
        retention_days=1095,
        auto_cleanup=False,
        archive_before_delete=True,
        notification_threshold_days=30
    ),
]


@dataclass
class RetentionRecord:
    """Tracked data item subject to a retention policy."""
    id: str
    data_type: str
    content_hash: str
    created_at: datetime
    expires_at: datetime
    policy_id: str
    metadata: Dict[str, Any] = field(default_factory=dict)
    is_archived: bool = False
    security_level: str = "medium"
    last_accessed: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["created_at"] = self.created_at.isoformat()
        data["expires_at"] = self.expires_at.isoformat()
        data["last_accessed"] = self.last_accessed.isoformat() if self.last_accessed else None
        return data


@dataclass
class CleanupTask:
    id: str
    policy_id: str
    scheduled_at: datetime
    status: CleanupStatus = CleanupStatus.PENDING
    records_found: int = 0
    records_deleted: int = 0
    records_archived: int = 0
    errors: List[str] = field(default_factory=list)
    completed_at: Optional[datetime] = None
    verification_hash: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["status"] = self.status.value
        data["scheduled_at"] = self.scheduled_at.isoformat()
        data["completed_at"] = self.completed_at.isoformat() if self.completed_at else None
        return data


@dataclass
class CleanupVerification:
    """Auditor-facing summary of a cleanup run."""
    task_id: str
    is_complete: bool
    verification_hash: str
    deleted_count: int
    remaining_count: int
    verified_at: datetime
    errors: List[str] = field(default_factory=list)
