"""Configuration module for the privacy core service."""

from .privacy_config import (
    HashComparisonConfig,
    DeduplicationConfig,
    AuditConfig,
    RetentionConfig,
    get_hash_comparison_config,
    get_deduplication_config,
    get_audit_config,
    get_retention_config,
)

__all__ = [
    "HashComparisonConfig",
    "DeduplicationConfig",
    "AuditConfig",
    "RetentionConfig",
    "get_hash_comparison_config",
    "get_deduplication_config",
    "get_audit_config",
    "get_retention_config",
]
