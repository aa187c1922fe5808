"""
Content Deduplication Cache

TTL-bounded index from content hash to the session that first submitted it.
Duplicate submissions are detected by exact hash lookup and, optionally, by
structural fingerprint similarity. The cache is a best-effort index: losing
it only causes missed duplicates, never false positives.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from privacy_core.config.privacy_config import DeduplicationConfig, get_deduplication_config
from privacy_core.exceptions import DeduplicationError
from privacy_core.security.hash_comparison import SecureComparator
from privacy_core.security.hash_validation import normalize_hash
from .fingerprint import AnonymizedContent, ContentFingerprint, FingerprintEngine

logger = logging.getLogger(__name__)

ESTIMATED_ENTRY_BYTES = 500


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class DeduplicationMethod(str, Enum):
    HASH_EXACT = "hash-exact"
    STRUCTURAL = "structural"


@dataclass
class KnownSession:
    """Previously analysed session supplied by the caller."""
    id: str
    content_hash: str
    created_at: Optional[datetime] = None


@dataclass
class DeduplicationCacheEntry:
    session_id: str
    fingerprint: ContentFingerprint
    registered_at: datetime


@dataclass
class DeduplicationResult:
    """Outcome of a duplicate check."""
    is_duplicate: bool
    content_hash: str
    similarity: float
    method: DeduplicationMethod
    processing_time_ms: float
    existing_hash: Optional[str] = None
    existing_session_id: Optional[str] = None
    checked_at: datetime = field(default_factory=utc_now)


class DeduplicationCache:
    """Hash-keyed dedup index with exact and structural lookup."""

    def __init__(
        self,
        config: Optional[DeduplicationConfig] = None,
        engine: Optional[FingerprintEngine] = None,
        comparator: Optional[SecureComparator] = None,
        clock: Callable[[], datetime] = utc_now
    ):
        self.config = config or get_deduplication_config()
        self.engine = engine or FingerprintEngine()
        self.comparator = comparator or SecureComparator()
        self.clock = clock
        self.cache_ttl = timedelta(seconds=self.config.cache_ttl_seconds)

        self._entries: Dict[str, DeduplicationCacheEntry] = {}
        self._lock = asyncio.Lock()

    async def check_duplication(
        self,
        content: Union[ContentFingerprint, AnonymizedContent],
        known_sessions: Optional[Iterable[KnownSession]] = None
    ) -> DeduplicationResult:
        """
        Check whether content duplicates a previously registered submission.

        Args:
            content: Fingerprint, or anonymized content to fingerprint
            known_sessions: Extra sessions to match by exact hash

        Returns:
            Deduplication result
        """
        start = time.perf_counter()

        try:
            fingerprint = self._as_fingerprint(content)
            content_hash = normalize_hash(fingerprint.content_hash)

            async with self._lock:
                now = self.clock()

                existing_session_id = self._find_exact_match(content_hash, known_sessions, now)
                if existing_session_id is not None:
                    return DeduplicationResult(
                        is_duplicate=True,
                        content_hash=content_hash,
                        similarity=1.0,
                        method=DeduplicationMethod.HASH_EXACT,
                        processing_time_ms=self._elapsed_ms(start),
                        existing_hash=content_hash,
                        existing_session_id=existing_session_id
                    )

                if self.config.enable_structural_analysis:
                    match = self._find_structural_match(fingerprint, now)
                    if match is not None:
                        existing_hash, entry, score = match
                        return DeduplicationResult(
                            is_duplicate=True,
                            content_hash=content_hash,
                            similarity=score,
                            method=DeduplicationMethod.STRUCTURAL,
                            processing_time_ms=self._elapsed_ms(start),
                            existing_hash=existing_hash,
                            existing_session_id=entry.session_id
                        )

            return DeduplicationResult(
                is_duplicate=False,
                content_hash=content_hash,
                similarity=0.0,
                method=DeduplicationMethod.HASH_EXACT,
                processing_time_ms=self._elapsed_ms(start)
            )

        except DeduplicationError:
            raise
        except Exception as e:
            raise DeduplicationError(f"Deduplication check failed: {e}") from e

    async def register_content(
        self,
        session_id: str,
        content: Union[ContentFingerprint, AnonymizedContent]
    ) -> DeduplicationCacheEntry:
        """Register content for future dedup checks and evict expired entries."""
        fingerprint = self._as_fingerprint(content)

        async with self._lock:
            now = self.clock()
            entry = DeduplicationCacheEntry(
                session_id=session_id,
                fingerprint=fingerprint,
                registered_at=now
            )
            self._entries[normalize_hash(fingerprint.content_hash)] = entry
            self._evict_expired(now)

        return entry

    async def sweep_expired(self) -> int:
        """Evict every expired entry; returns the number evicted."""
        async with self._lock:
            evicted = self._evict_expired(self.clock())

        if evicted:
            logger.info(f"Dedup cache sweep evicted {evicted} expired entries")
        return evicted

    async def clear_cache(self) -> None:
        async with self._lock:
            self._entries.clear()

    def get_cache_stats(self) -> Dict[str, Any]:
        """Get cache statistics for monitoring."""
        now = self.clock()
        valid = sum(1 for entry in self._entries.values() if not self._is_expired(entry, now))
        total = len(self._entries)

        memory_bytes = total * ESTIMATED_ENTRY_BYTES
        if memory_bytes > 1024 * 1024:
            memory_usage = f"{memory_bytes / (1024 * 1024):.2f} MB"
        else:
            memory_usage = f"{memory_bytes / 1024:.2f} KB"

        return {
            "total_entries": total,
            "valid_entries": valid,
            "expired_entries": total - valid,
            "cache_hit_rate": valid / max(1, total),
            "memory_usage": memory_usage
        }

    def export_cache_data(self) -> List[Dict[str, Any]]:
        """Export non-expired entries for persistence. Contains hashes and metadata only."""
        now = self.clock()
        return [
            {
                "hash": content_hash,
                "session_id": entry.session_id,
                "timestamp": entry.registered_at.isoformat(),
                "fingerprint": entry.fingerprint.to_dict()
            }
            for content_hash, entry in self._entries.items()
            if not self._is_expired(entry, now)
        ]

    async def import_cache_data(self, data: List[Dict[str, Any]]) -> int:
        """Import exported entries, skipping expired ones."""
        imported = 0

        async with self._lock:
            now = self.clock()
            for item in data:
                registered_at = item["timestamp"]
                if isinstance(registered_at, str):
                    registered_at = datetime.fromisoformat(registered_at)
                if registered_at.tzinfo is None:
                    registered_at = registered_at.replace(tzinfo=timezone.utc)

                entry = DeduplicationCacheEntry(
                    session_id=item["session_id"],
                    fingerprint=ContentFingerprint.from_dict(item["fingerprint"]),
                    registered_at=registered_at
                )
                if self._is_expired(entry, now):
                    continue

                self._entries[normalize_hash(item["hash"])] = entry
                imported += 1

        return imported

    def _find_exact_match(
        self,
        content_hash: str,
        known_sessions: Optional[Iterable[KnownSession]],
        now: datetime
    ) -> Optional[str]:
        cached = self._entries.get(content_hash)
        if cached and not self._is_expired(cached, now):
            return cached.session_id

        for session in known_sessions or ():
            if self.comparator.compare(content_hash, session.content_hash).is_match:
                return session.id

        return None

    def _find_structural_match(self, target: ContentFingerprint, now: datetime):
        best = None
        best_score = 0.0

        for content_hash, entry in self._entries.items():
            if self._is_expired(entry, now):
                continue

            score = self.engine.similarity(target, entry.fingerprint)
            if score > best_score:
                best_score = score
                best = (content_hash, entry, score)

        if best is not None and best_score >= self.config.structural_threshold:
            return best
        return None

    def _evict_expired(self, now: datetime) -> int:
        expired = [key for key, entry in self._entries.items() if self._is_expired(entry, now)]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def _is_expired(self, entry: DeduplicationCacheEntry, now: datetime) -> bool:
        return now - entry.registered_at >= self.cache_ttl

    def _as_fingerprint(self, content: Union[ContentFingerprint, AnonymizedContent]) -> ContentFingerprint:
        if isinstance(content, ContentFingerprint):
            return content
        return self.engine.build(content)

    @staticmethod
    def _elapsed_ms(start: float) -> float:
        return (time.perf_counter() - start) * 1000
