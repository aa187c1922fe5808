"""SQLAlchemy models for retention tracking."""

from sqlalchemy import Column, String, Boolean, DateTime, Integer, JSON
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class RetentionRecordModel(Base):
    """Tracked data item. Holds the content hash only, never the content."""

    __tablename__ = "retention_records"

    id = Column(String(255), primary_key=True)
    data_type = Column(String(50), nullable=False, index=True)
    content_hash = Column(String(128), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)
    last_accessed = Column(DateTime(timezone=True))
    policy_id = Column(String(100), nullable=False, index=True)
    is_archived = Column(Boolean, default=False)
    security_level = Column(String(20), default="medium")
    record_metadata = Column(JSON, default=dict)

    def __repr__(self):
        return f"<RetentionRecordModel(id={self.id}, policy_id={self.policy_id})>"


class CleanupTaskModel(Base):
    """Cleanup task and its outcome counters."""

    __tablename__ = "cleanup_tasks"

    id = Column(String(100), primary_key=True)
    policy_id = Column(String(100), nullable=False, index=True)
    scheduled_at = Column(DateTime(timezone=True), nullable=False)
    completed_at = Column(DateTime(timezone=True))
    status = Column(String(20), nullable=False, default="pending", index=True)
    records_found = Column(Integer, default=0)
    records_deleted = Column(Integer, default=0)
    records_archived = Column(Integer, default=0)
    errors = Column(JSON, default=list)
    verification_hash = Column(String(64))

    def __repr__(self):
        return f"<CleanupTaskModel(id={self.id}, status={self.status})>"
