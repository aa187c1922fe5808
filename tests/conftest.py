"""Shared fixtures for privacy core tests."""

import hashlib
from datetime import datetime, timedelta, timezone

import pytest

from privacy_core.config.privacy_config import (
    HashComparisonConfig,
    DeduplicationConfig,
    AuditConfig,
    RetentionConfig
)
from privacy_core.dedup.fingerprint import (
    AnonymizedContent,
    AnonymizedMetadata,
    StructuralFeatures,
    FingerprintEngine
)


class MutableClock:
    """Deterministic clock that tests advance explicitly."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


def sha256_hex(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def make_content(content_hash: str, **overrides) -> AnonymizedContent:
    metadata = {
        "word_count": 1200,
        "section_count": 8,
        "original_length": 7400,
        "paragraph_count": 24,
        "has_numbered_items": True,
        "has_legal_language": True,
        "structural_features": StructuralFeatures(has_lists=True, has_headers=True),
        "estimated_reading_time": 6,
    }
    metadata.update(overrides)
    return AnonymizedContent(content_hash=content_hash, metadata=AnonymizedMetadata(**metadata))


@pytest.fixture
def clock():
    return MutableClock(datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def hash_config():
    return HashComparisonConfig(hmac_key="test-comparison-key")


@pytest.fixture
def dedup_config():
    return DeduplicationConfig()


@pytest.fixture
def audit_config():
    return AuditConfig()


@pytest.fixture
def retention_config():
    return RetentionConfig(store_backend="memory")


@pytest.fixture
def hash_a():
    return sha256_hex("terms of service version one")


@pytest.fixture
def hash_b():
    return sha256_hex("privacy policy version two")


@pytest.fixture
def engine():
    return FingerprintEngine()


@pytest.fixture
def content_a(hash_a):
    return make_content(hash_a)


@pytest.fixture
def fingerprint_a(engine, content_a):
    return engine.build(content_a)
