"""Preprocessing audit trail, data retention and background maintenance."""

from .audit_log import (
    AuditLog,
    AuditEntry,
    AuditEventType,
    SecurityLevel,
    PrivacyCompliance,
    PrivacyValidationResult,
    sanitize_error_message
)
from .retention_manager import RetentionManager
from .background_tasks import PrivacyBackgroundTaskManager

__all__ = [
    "AuditLog",
    "AuditEntry",
    "AuditEventType",
    "SecurityLevel",
    "PrivacyCompliance",
    "PrivacyValidationResult",
    "sanitize_error_message",
    "RetentionManager",
    "PrivacyBackgroundTaskManager",
]
