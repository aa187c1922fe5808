"""Content fingerprinting and hash-based deduplication."""

from .fingerprint import (
    AnonymizedContent,
    AnonymizedMetadata,
    StructuralFeatures,
    ContentFingerprint,
    FingerprintFeatures,
    FingerprintEngine,
    numeric_similarity
)
from .deduplication_cache import (
    DeduplicationCache,
    DeduplicationCacheEntry,
    DeduplicationResult,
    DeduplicationMethod,
    KnownSession
)

__all__ = [
    "AnonymizedContent",
    "AnonymizedMetadata",
    "StructuralFeatures",
    "ContentFingerprint",
    "FingerprintFeatures",
    "FingerprintEngine",
    "numeric_similarity",
    "DeduplicationCache",
    "DeduplicationCacheEntry",
    "DeduplicationResult",
    "DeduplicationMethod",
    "KnownSession",
]
