"""
Preprocessing Audit Log

Privacy-compliant audit trail for text preprocessing events. Entries carry
hashes, counts and timings only; every entry is scanned for PII and content
leaks, and any violation is recorded as a separate linked audit event.
"""

import asyncio
import json
import logging
import re
import time
from collections import deque
from dataclasses import dataclass, field, asdict
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Callable, Deque, Dict, Iterable, List, Optional, Set
from uuid import uuid4

from privacy_core.config.privacy_config import AuditConfig, get_audit_config
from privacy_core.security.hash_validation import is_sha256_hex

logger = logging.getLogger(__name__)

MAX_METADATA_CHARS = 1000
MAX_ERROR_MESSAGE_CHARS = 500
ACTIVE_SESSION_WINDOW = timedelta(hours=1)
ESTIMATED_ENTRY_BYTES = 1000

PII_PATTERNS = [
    re.compile(r"@\w+\.\w+"),  # email
    re.compile(r"\b\d{3}-\d{2}-\d{4}\b"),  # SSN
    re.compile(r"\b\d{4}[-\s]?\d{4}[-\s]?\d{4}[-\s]?\d{4}\b"),  # credit card
    re.compile(r"\b(?:\+1[-.\s]?)?\(?[0-9]{3}\)?[-.\s]?[0-9]{3}[-.\s]?[0-9]{4}\b"),  # phone
]

SUSPICIOUS_METADATA_KEYS = {"content", "originaltext", "userinput", "rawdata"}

_REDACTIONS = [
    (re.compile(r"""content[:\s]*["']([^"']{50,})["']""", re.IGNORECASE), "content: [REDACTED]"),
    (re.compile(r"""input[:\s]*["']([^"']{50,})["']""", re.IGNORECASE), "input: [REDACTED]"),
    (re.compile(r"""text[:\s]*["']([^"']{50,})["']""", re.IGNORECASE), "text: [REDACTED]"),
]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class AuditEventType(str, Enum):
    """Preprocessing event types."""
    CONTENT_RECEIVED = "content_received"
    CONTENT_NORMALIZED = "content_normalized"
    CONTENT_HASHED = "content_hashed"
    ANONYMIZATION_STARTED = "anonymization_started"
    ANONYMIZATION_COMPLETED = "anonymization_completed"
    DEDUPLICATION_CHECK = "deduplication_check"
    HASH_COMPARISON = "hash_comparison"
    PROCESSING_ERROR = "processing_error"
    PRIVACY_VIOLATION_DETECTED = "privacy_violation_detected"
    CONTENT_REJECTED = "content_rejected"


class SecurityLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


_RISK_ORDER = [SecurityLevel.LOW, SecurityLevel.MEDIUM, SecurityLevel.HIGH, SecurityLevel.CRITICAL]

DEFAULT_SECURITY_LEVELS = {
    AuditEventType.CONTENT_RECEIVED: SecurityLevel.MEDIUM,
    AuditEventType.CONTENT_NORMALIZED: SecurityLevel.LOW,
    AuditEventType.CONTENT_HASHED: SecurityLevel.HIGH,
    AuditEventType.ANONYMIZATION_STARTED: SecurityLevel.MEDIUM,
    AuditEventType.ANONYMIZATION_COMPLETED: SecurityLevel.HIGH,
    AuditEventType.DEDUPLICATION_CHECK: SecurityLevel.MEDIUM,
    AuditEventType.HASH_COMPARISON: SecurityLevel.HIGH,
    AuditEventType.PROCESSING_ERROR: SecurityLevel.CRITICAL,
    AuditEventType.PRIVACY_VIOLATION_DETECTED: SecurityLevel.CRITICAL,
    AuditEventType.CONTENT_REJECTED: SecurityLevel.HIGH,
}


@dataclass
class PrivacyCompliance:
    """Privacy attestation attached to each entry."""
    hash_only: bool
    validated: bool = False
    # Entries never carry raw text or PII fields
    contains_original_content: bool = field(default=False, init=False)
    contains_pii: bool = field(default=False, init=False)


@dataclass
class AuditEntry:
    id: str
    timestamp: datetime
    event_type: AuditEventType
    security_level: SecurityLevel
    privacy_compliance: PrivacyCompliance
    metadata: Dict[str, Any] = field(default_factory=dict)
    session_id: Optional[str] = None
    user_id: Optional[str] = None
    content_hash: Optional[str] = None
    processing_time_ms: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["timestamp"] = self.timestamp.isoformat()
        data["event_type"] = self.event_type.value
        data["security_level"] = self.security_level.value
        return data


@dataclass
class PrivacyValidationResult:
    is_compliant: bool
    violations: List[str]
    warnings: List[str]
    risk_level: SecurityLevel


@dataclass
class SessionMetrics:
    start_time: datetime
    last_activity: datetime
    events: int = 0
    errors: int = 0


def sanitize_error_message(message: str) -> str:
    """Redact long quoted content fragments and cap message length."""
    for pattern, replacement in _REDACTIONS:
        message = pattern.sub(replacement, message)
    return message[:MAX_ERROR_MESSAGE_CHARS]


def _raise_risk(current: SecurityLevel, candidate: SecurityLevel) -> SecurityLevel:
    return max(current, candidate, key=_RISK_ORDER.index)


def _metadata_keys(value: Any) -> Set[str]:
    keys: Set[str] = set()
    if isinstance(value, dict):
        for key, nested in value.items():
            keys.add(str(key))
            keys |= _metadata_keys(nested)
    elif isinstance(value, (list, tuple)):
        for item in value:
            keys |= _metadata_keys(item)
    return keys


class AuditLog:
    """Bounded, privacy-validated audit log for preprocessing events."""

    def __init__(
        self,
        config: Optional[AuditConfig] = None,
        clock: Callable[[], datetime] = utc_now
    ):
        self.config = config or get_audit_config()
        self.clock = clock
        self._entries: Deque[AuditEntry] = deque(maxlen=self.config.max_log_size)
        self._session_metrics: Dict[str, SessionMetrics] = {}
        self._lock = asyncio.Lock()

    async def log(
        self,
        event_type: AuditEventType,
        session_id: Optional[str] = None,
        user_id: Optional[str] = None,
        content_hash: Optional[str] = None,
        processing_time_ms: Optional[float] = None,
        metadata: Optional[Dict[str, Any]] = None,
        security_level: Optional[SecurityLevel] = None
    ) -> AuditEntry:
        """
        Record a preprocessing event with privacy validation.

        Args:
            event_type: Event type
            session_id: Analysis session
            user_id: Submitting user
            content_hash: SHA-256 content hash
            processing_time_ms: Processing duration
            metadata: Structural metadata (never raw content)
            security_level: Override for the event type's default level

        Returns:
            The stored entry. A compliance violation is recorded as an
            additional privacy_violation_detected entry linked by id.
        """
        start = time.perf_counter()
        event_type = AuditEventType(event_type)

        metadata = dict(metadata or {})
        if isinstance(metadata.get("error_message"), str):
            metadata["error_message"] = sanitize_error_message(metadata["error_message"])

        entry = AuditEntry(
            id=f"audit-{uuid4().hex}",
            timestamp=self.clock(),
            event_type=event_type,
            session_id=session_id,
            user_id=user_id,
            content_hash=content_hash,
            processing_time_ms=round(processing_time_ms, 3) if processing_time_ms is not None else None,
            metadata=metadata,
            security_level=SecurityLevel(security_level) if security_level else DEFAULT_SECURITY_LEVELS[event_type],
            privacy_compliance=PrivacyCompliance(hash_only=bool(content_hash))
        )

        validation = None
        if self.config.enable_privacy_validation:
            validation = self.validate_privacy_compliance(entry)
            entry.privacy_compliance.validated = True

        if self.config.enable_performance_tracking:
            entry.metadata["audit_log_time_ms"] = round((time.perf_counter() - start) * 1000, 3)

        async with self._lock:
            if session_id:
                self._update_session_metrics(session_id, entry)
            # deque(maxlen) drops the oldest entries once full
            self._entries.append(entry)

        if self.config.enable_detailed_logging:
            logger.debug(f"Audit event {event_type.value} recorded as {entry.id} (session={session_id})")

        if (
            validation is not None
            and not validation.is_compliant
            and event_type != AuditEventType.PRIVACY_VIOLATION_DETECTED
        ):
            await self._log_privacy_violation(entry, validation)

        return entry

    def validate_privacy_compliance(self, entry: AuditEntry) -> PrivacyValidationResult:
        """Scan an entry for PII, content fragments and malformed hashes."""
        violations: List[str] = []
        warnings: List[str] = []
        risk_level = SecurityLevel.LOW

        entry_string = json.dumps(entry.to_dict(), default=str)
        for pattern in PII_PATTERNS:
            if pattern.search(entry_string):
                violations.append(f"Potential PII detected matching pattern: {pattern.pattern}")
                risk_level = _raise_risk(risk_level, SecurityLevel.CRITICAL)

        if entry.metadata:
            metadata_string = json.dumps(entry.metadata, default=str)
            if len(metadata_string) > MAX_METADATA_CHARS:
                warnings.append("Large metadata object - review for potential content exposure")
                risk_level = _raise_risk(risk_level, SecurityLevel.MEDIUM)

            for key in sorted(_metadata_keys(entry.metadata)):
                if key.lower() in SUSPICIOUS_METADATA_KEYS:
                    violations.append(f"Suspicious metadata key detected: {key}")
                    risk_level = _raise_risk(risk_level, SecurityLevel.HIGH)

        if entry.content_hash is not None and not is_sha256_hex(entry.content_hash):
            violations.append("Invalid hash format - should be SHA-256 hex string")
            risk_level = _raise_risk(risk_level, SecurityLevel.HIGH)

        return PrivacyValidationResult(
            is_compliant=not violations,
            violations=violations,
            warnings=warnings,
            risk_level=risk_level
        )

    async def log_content_received(
        self,
        session_id: str,
        user_id: str,
        content_length: int,
        ip_address_hash: Optional[str] = None
    ) -> AuditEntry:
        """Log content processing start."""
        return await self.log(
            AuditEventType.CONTENT_RECEIVED,
            session_id=session_id,
            user_id=user_id,
            metadata={
                "content_length": content_length,
                "ip_address_hash": ip_address_hash,
                "processing_started": True
            },
            security_level=SecurityLevel.MEDIUM
        )

    async def log_content_normalized(
        self,
        session_id: str,
        original_length: int,
        normalized_length: int,
        processing_time_ms: float
    ) -> AuditEntry:
        """Log content normalization."""
        reduction = (original_length - normalized_length) / original_length if original_length else 0.0
        return await self.log(
            AuditEventType.CONTENT_NORMALIZED,
            session_id=session_id,
            processing_time_ms=processing_time_ms,
            metadata={
                "original_length": original_length,
                "normalized_length": normalized_length,
                "reduction_ratio": round(reduction, 4)
            },
            security_level=SecurityLevel.LOW
        )

    async def log_content_hashed(
        self,
        session_id: str,
        content_hash: str,
        hashing_time_ms: float,
        algorithm: str = "sha256"
    ) -> AuditEntry:
        """Log content hashing."""
        return await self.log(
            AuditEventType.CONTENT_HASHED,
            session_id=session_id,
            content_hash=content_hash,
            processing_time_ms=hashing_time_ms,
            metadata={
                "algorithm": algorithm,
                "hash_length": len(content_hash)
            },
            security_level=SecurityLevel.HIGH
        )

    async def log_anonymization_completed(
        self,
        session_id: str,
        content_hash: str,
        processing_time_ms: float,
        metadata: Optional[Dict[str, Any]] = None
    ) -> AuditEntry:
        """Log anonymization completion."""
        return await self.log(
            AuditEventType.ANONYMIZATION_COMPLETED,
            session_id=session_id,
            content_hash=content_hash,
            processing_time_ms=processing_time_ms,
            metadata={
                **(metadata or {}),
                "anonymization_method": "enhanced-hash",
                "privacy_level": "maximum"
            },
            security_level=SecurityLevel.HIGH
        )

    async def log_deduplication_check(
        self,
        session_id: str,
        content_hash: str,
        is_duplicate: bool,
        similarity: float,
        check_time_ms: float
    ) -> AuditEntry:
        """Log a deduplication check."""
        return await self.log(
            AuditEventType.DEDUPLICATION_CHECK,
            session_id=session_id,
            content_hash=content_hash,
            processing_time_ms=check_time_ms,
            metadata={
                "is_duplicate": is_duplicate,
                "similarity": round(similarity, 4),
                "deduplication_method": "hash-based"
            },
            security_level=SecurityLevel.MEDIUM
        )

    async def log_hash_comparison(
        self,
        session_id: str,
        hash1: str,
        hash2: str,
        is_match: bool,
        comparison_time_ms: float
    ) -> AuditEntry:
        """Log a hash comparison. Only hash lengths are recorded."""
        return await self.log(
            AuditEventType.HASH_COMPARISON,
            session_id=session_id,
            processing_time_ms=comparison_time_ms,
            metadata={
                "hash1_length": len(hash1),
                "hash2_length": len(hash2),
                "is_match": is_match,
                "comparison_method": "timing-safe"
            },
            security_level=SecurityLevel.HIGH
        )

    async def log_processing_error(
        self,
        session_id: str,
        error_type: str,
        error_message: str,
        stage: str
    ) -> AuditEntry:
        """Log a processing error with a sanitized message."""
        return await self.log(
            AuditEventType.PROCESSING_ERROR,
            session_id=session_id,
            metadata={
                "error_type": error_type,
                "error_message": sanitize_error_message(error_message),
                "stage": stage,
                "severity": "error"
            },
            security_level=SecurityLevel.CRITICAL
        )

    def get_session_logs(self, session_id: str) -> List[AuditEntry]:
        """Get audit entries for a session, oldest first."""
        return sorted(
            (entry for entry in self._entries if entry.session_id == session_id),
            key=lambda entry: entry.timestamp
        )

    def get_user_logs(self, user_id: str, limit: int = 100) -> List[AuditEntry]:
        """Get audit entries for a user, newest first."""
        entries = sorted(
            (entry for entry in self._entries if entry.user_id == user_id),
            key=lambda entry: entry.timestamp,
            reverse=True
        )
        return entries[:limit]

    def get_processing_stats(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None
    ) -> Dict[str, Any]:
        """
        Get processing statistics, optionally within a time window.

        Returns:
            Event counts, average processing time, error rate,
            privacy compliance rate and distinct session count
        """
        entries = [
            entry for entry in self._entries
            if (start is None or entry.timestamp >= start) and (end is None or entry.timestamp <= end)
        ]

        events_by_type: Dict[str, int] = {}
        total_processing_time = 0.0
        timed_events = 0
        error_count = 0
        compliant_count = 0
        sessions = set()

        for entry in entries:
            events_by_type[entry.event_type.value] = events_by_type.get(entry.event_type.value, 0) + 1

            if entry.processing_time_ms:
                total_processing_time += entry.processing_time_ms
                timed_events += 1

            if entry.event_type == AuditEventType.PROCESSING_ERROR:
                error_count += 1

            if entry.privacy_compliance.validated and entry.privacy_compliance.hash_only:
                compliant_count += 1

            if entry.session_id:
                sessions.add(entry.session_id)

        total = len(entries)
        return {
            "total_events": total,
            "events_by_type": events_by_type,
            "average_processing_time_ms": total_processing_time / timed_events if timed_events else 0.0,
            "error_rate": error_count / total if total else 0.0,
            "privacy_compliance_rate": compliant_count / total if total else 1.0,
            "session_count": len(sessions)
        }

    def export_audit_logs(
        self,
        session_id: Optional[str] = None,
        user_id: Optional[str] = None,
        event_types: Optional[Iterable[AuditEventType]] = None,
        security_level: Optional[SecurityLevel] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None
    ) -> Dict[str, Any]:
        """Export filtered audit entries for compliance review."""
        entries = list(self._entries)

        if session_id:
            entries = [e for e in entries if e.session_id == session_id]
        if user_id:
            entries = [e for e in entries if e.user_id == user_id]
        if event_types:
            wanted = {AuditEventType(t) for t in event_types}
            entries = [e for e in entries if e.event_type in wanted]
        if security_level:
            entries = [e for e in entries if e.security_level == SecurityLevel(security_level)]
        if start_date:
            entries = [e for e in entries if e.timestamp >= start_date]
        if end_date:
            entries = [e for e in entries if e.timestamp <= end_date]

        privacy_compliant = all(
            not e.privacy_compliance.contains_original_content and not e.privacy_compliance.contains_pii
            for e in entries
        )

        return {
            "logs": [e.to_dict() for e in entries],
            "summary": {
                "total_entries": len(entries),
                "exported_at": self.clock().isoformat(),
                "filters": {
                    "session_id": session_id,
                    "user_id": user_id,
                    "event_types": [AuditEventType(t).value for t in event_types] if event_types else None,
                    "security_level": SecurityLevel(security_level).value if security_level else None,
                    "start_date": start_date.isoformat() if start_date else None,
                    "end_date": end_date.isoformat() if end_date else None
                },
                "privacy_compliant": privacy_compliant
            }
        }

    def get_audit_stats(self) -> Dict[str, Any]:
        """Get current audit log statistics."""
        now = self.clock()
        active_sessions = sum(
            1 for metrics in self._session_metrics.values()
            if now - metrics.last_activity < ACTIVE_SESSION_WINDOW
        )

        memory_bytes = len(self._entries) * ESTIMATED_ENTRY_BYTES
        if memory_bytes > 1024 * 1024:
            memory_usage = f"{memory_bytes / (1024 * 1024):.2f} MB"
        else:
            memory_usage = f"{memory_bytes / 1024:.2f} KB"

        return {
            "total_logs": len(self._entries),
            "active_sessions": active_sessions,
            "memory_usage": memory_usage,
            "oldest_log": self._entries[0].timestamp.isoformat() if self._entries else None,
            "newest_log": self._entries[-1].timestamp.isoformat() if self._entries else None
        }

    def get_session_metrics(self, session_id: str) -> Optional[SessionMetrics]:
        return self._session_metrics.get(session_id)

    def __len__(self) -> int:
        return len(self._entries)

    async def purge_expired_logs(self) -> int:
        """Drop entries older than the configured log retention period."""
        cutoff = self.clock() - timedelta(days=self.config.log_retention_days)

        async with self._lock:
            # Entries are appended in time order
            purged = 0
            while self._entries and self._entries[0].timestamp < cutoff:
                self._entries.popleft()
                purged += 1

            stale_sessions = [
                session_id for session_id, metrics in self._session_metrics.items()
                if metrics.last_activity < cutoff
            ]
            for session_id in stale_sessions:
                del self._session_metrics[session_id]

        if purged:
            logger.info(f"Purged {purged} audit entries older than {self.config.log_retention_days} days")
        return purged

    async def clear_logs(self) -> None:
        async with self._lock:
            self._entries.clear()
            self._session_metrics.clear()

    async def _log_privacy_violation(
        self,
        original_entry: AuditEntry,
        validation: PrivacyValidationResult
    ) -> AuditEntry:
        logger.warning(
            f"Privacy violation detected in audit entry {original_entry.id} "
            f"({original_entry.event_type.value}): risk={validation.risk_level.value}"
        )
        return await self.log(
            AuditEventType.PRIVACY_VIOLATION_DETECTED,
            session_id=original_entry.session_id,
            metadata={
                "original_event_type": original_entry.event_type.value,
                "violations": validation.violations,
                "warnings": validation.warnings,
                "risk_level": validation.risk_level.value,
                "original_entry_id": original_entry.id
            },
            security_level=SecurityLevel.CRITICAL
        )

    def _update_session_metrics(self, session_id: str, entry: AuditEntry) -> None:
        metrics = self._session_metrics.get(session_id)
        if metrics is None:
            metrics = SessionMetrics(start_time=entry.timestamp, last_activity=entry.timestamp)
            self._session_metrics[session_id] = metrics

        metrics.events += 1
        metrics.last_activity = entry.timestamp
        if entry.event_type == AuditEventType.PROCESSING_ERROR:
            metrics.errors += 1
