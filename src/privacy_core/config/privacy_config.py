"""
Privacy Core Configuration

Settings for secure hash comparison, content deduplication, preprocessing
audit logging and data retention enforcement.
"""

from typing import Literal
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class HashComparisonConfig(BaseSettings):
    """Timing-safe hash comparison configuration."""

    enable_timing_safety: bool = Field(default=True)
    require_hmac_verification: bool = Field(default=False)
    salt_length: int = Field(default=32, ge=1, le=512)
    hmac_key: SecretStr = Field(default=SecretStr("default-comparison-key"))
    max_hash_age_days: int = Field(default=7, ge=1)
    security_level: Literal["standard", "high", "maximum"] = Field(default="high")

    model_config = SettingsConfigDict(
        env_prefix="HASH_COMPARISON_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )


class DeduplicationConfig(BaseSettings):
    """Hash-based deduplication cache configuration."""

    exact_match_threshold: float = Field(default=1.0)
    # Informational only, the dedup decision is gated by structural_threshold
    similarity_threshold: float = Field(default=0.85, ge=0.0, le=1.0)
    structural_threshold: float = Field(default=0.7, ge=0.0, le=1.0)
    cache_ttl_seconds: int = Field(default=24 * 60 * 60, ge=1)
    enable_structural_analysis: bool = Field(default=True)
    cache_sweep_interval_minutes: int = Field(default=15, ge=1)

    model_config = SettingsConfigDict(
        env_prefix="DEDUP_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("exact_match_threshold")
    @classmethod
    def exact_match_is_fixed(cls, value: float) -> float:
        if value != 1.0:
            raise ValueError("exact_match_threshold is fixed at 1.0")
        return value


class AuditConfig(BaseSettings):
    """Preprocessing audit log configuration."""

    enable_detailed_logging: bool = Field(default=True)
    enable_performance_tracking: bool = Field(default=True)
    enable_privacy_validation: bool = Field(default=True)
    log_retention_days: int = Field(default=90, ge=1)
    security_level: Literal["basic", "standard", "strict"] = Field(default="standard")
    max_log_size: int = Field(default=10000, ge=1)

    model_config = SettingsConfigDict(
        env_prefix="AUDIT_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )


class RetentionConfig(BaseSettings):
    """Data retention, archival and cleanup configuration."""

    # Archive
    archive_enabled: bool = Field(default=True)
    archive_location: str = Field(default="/tmp/privacy-archive")
    archive_encryption: bool = Field(default=True)
    archive_compression_level: int = Field(default=6, ge=0, le=9)
    max_archive_size_mb: int = Field(default=100, ge=1)
    archive_retention_days: int = Field(default=2555, ge=1)  # ~7 years

    # Cleanup scheduling
    cleanup_interval_minutes: int = Field(default=60, ge=1)

    # Persistence
    store_backend: Literal["memory", "database"] = Field(default="memory")
    database_url: str = Field(default="sqlite:///./privacy_core.db")

    model_config = SettingsConfigDict(
        env_prefix="RETENTION_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )


def get_hash_comparison_config() -> HashComparisonConfig:
    """Get hash comparison configuration."""
    return HashComparisonConfig()


def get_deduplication_config() -> DeduplicationConfig:
    """Get deduplication configuration."""
    return DeduplicationConfig()


def get_audit_config() -> AuditConfig:
    """Get audit log configuration."""
    return AuditConfig()


def get_retention_config() -> RetentionConfig:
    """Get retention configuration."""
    return RetentionConfig()
