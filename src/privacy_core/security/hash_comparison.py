"""
Secure Hash Comparison

Timing-attack resistant hash comparison, HMAC verification and salted hashing
for privacy-safe content matching without exposing original data.
"""

import hashlib
import logging
import secrets
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from cryptography.hazmat.primitives import constant_time, hashes
from cryptography.hazmat.primitives import hmac as crypto_hmac

from privacy_core.config.privacy_config import HashComparisonConfig, get_hash_comparison_config
from privacy_core.exceptions import HashComparisonError
from .hash_validation import HashValidator, normalize_hash

logger = logging.getLogger(__name__)

DEFAULT_HMAC_KEY = "default-comparison-key"


class ComparisonMethod(str, Enum):
    """How a comparison result was obtained."""
    TIMING_SAFE = "timing-safe"
    HMAC_VERIFIED = "hmac-verified"
    SALTED_HASH = "salted-hash"


@dataclass
class ComparisonResult:
    """Outcome of a hash comparison."""
    is_match: bool
    confidence: float
    method: ComparisonMethod
    processing_time_ms: float
    security_level: str
    compared_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


def _hex_to_bytes(normalized: str) -> bytes:
    """Decode a normalized hex string, left-padding odd lengths."""
    if len(normalized) % 2:
        normalized = "0" + normalized
    return bytes.fromhex(normalized)


class SecureComparator:
    """Timing-safe hash comparison service."""

    def __init__(
        self,
        config: Optional[HashComparisonConfig] = None,
        validator: Optional[HashValidator] = None
    ):
        self.config = config or get_hash_comparison_config()
        self.validator = validator or HashValidator()
        self._hmac_key = self.config.hmac_key.get_secret_value().encode("utf-8")

    def compare(
        self,
        hash1: str,
        hash2: str,
        enable_hmac_verification: Optional[bool] = None
    ) -> ComparisonResult:
        """
        Compare two hashes without leaking the mismatch position.

        Args:
            hash1: First hex hash
            hash2: Second hex hash
            enable_hmac_verification: Request the HMAC second factor. Defaults
                to the configured require_hmac_verification flag.

        Returns:
            Comparison result; invalid input yields a non-match with confidence 0
        """
        start = time.perf_counter()

        if not self.validator.validate(hash1).is_valid or not self.validator.validate(hash2).is_valid:
            return self._result(False, ComparisonMethod.TIMING_SAFE, start)

        try:
            normalized1 = normalize_hash(hash1)
            normalized2 = normalize_hash(hash2)
            method = ComparisonMethod.TIMING_SAFE

            if self.config.enable_timing_safety:
                # Length only reveals the algorithm, never content
                is_match = (
                    len(normalized1) == len(normalized2)
                    and constant_time.bytes_eq(_hex_to_bytes(normalized1), _hex_to_bytes(normalized2))
                )
            else:
                is_match = normalized1 == normalized2

            if enable_hmac_verification is None:
                enable_hmac_verification = self.config.require_hmac_verification

            if enable_hmac_verification:
                is_match = is_match and self._verify_hmac_hashes(normalized1, normalized2)
                method = ComparisonMethod.HMAC_VERIFIED

            return self._result(is_match, method, start)

        except Exception as e:
            raise HashComparisonError(f"Hash comparison failed: {e}") from e

    def compare_content_hash(
        self,
        content: str,
        stored_hash: str,
        salt: Optional[str] = None
    ) -> ComparisonResult:
        """Re-hash content with a salt and compare against a stored hash."""
        start = time.perf_counter()
        try:
            content_hash = self.generate_secure_hash(content, salt)
            result = self.compare(content_hash, stored_hash)
        except HashComparisonError:
            raise
        except Exception as e:
            raise HashComparisonError(f"Content hash comparison failed: {e}") from e

        result.method = ComparisonMethod.SALTED_HASH
        result.processing_time_ms = (time.perf_counter() - start) * 1000
        return result

    def generate_secure_hash(
        self,
        content: str,
        salt: Optional[str] = None,
        algorithm: str = "sha256"
    ) -> str:
        """
        Hash content with a salt.

        Args:
            content: Content to hash
            salt: Salt to append; a random salt is generated when omitted
            algorithm: sha256 or sha512

        Returns:
            Hex digest of content || salt
        """
        if algorithm not in ("sha256", "sha512"):
            raise HashComparisonError(f"Unsupported hash algorithm: {algorithm}")

        try:
            actual_salt = salt if salt is not None else self.generate_salt()
            digest = hashlib.new(algorithm)
            digest.update((content + actual_salt).encode("utf-8"))
            return digest.hexdigest()
        except Exception as e:
            raise HashComparisonError(f"Secure hash generation failed: {e}") from e

    def validate_and_hash(self, content: str, salt: Optional[str] = None) -> str:
        """Produce a salted hash for re-verification, checking the digest format."""
        if not isinstance(content, str) or not content:
            raise HashComparisonError("Content to hash must be a non-empty string")

        content_hash = self.generate_secure_hash(content, salt)
        validation = self.validator.validate(content_hash)
        if not validation.is_valid:
            raise HashComparisonError(f"Generated hash failed validation: {validation.errors}")
        return content_hash

    def generate_salt(self, length: Optional[int] = None) -> str:
        """Generate a cryptographically secure hex salt."""
        return secrets.token_hex(length or self.config.salt_length)

    def create_hmac(self, value: str, key: Optional[bytes] = None) -> str:
        """Create an HMAC-SHA256 over a hash string."""
        mac = crypto_hmac.HMAC(key or self._hmac_key, hashes.SHA256())
        mac.update(value.encode("utf-8"))
        return mac.finalize().hex()

    def _verify_hmac_hashes(self, hash1: str, hash2: str) -> bool:
        """Compare the HMACs of two hashes in constant time."""
        hmac1 = self.create_hmac(hash1)
        hmac2 = self.create_hmac(hash2)
        return constant_time.bytes_eq(bytes.fromhex(hmac1), bytes.fromhex(hmac2))

    def compare_hash_list(self, target_hash: str, hash_list: List[str]) -> Dict[str, Any]:
        """Compare a target hash against a list of hashes."""
        start = time.perf_counter()
        matches = []

        for index, candidate in enumerate(hash_list):
            result = self.compare(target_hash, candidate)
            if result.is_match:
                matches.append({
                    "index": index,
                    "hash": candidate,
                    "confidence": result.confidence
                })

        return {
            "matches": matches,
            "processing_time_ms": (time.perf_counter() - start) * 1000,
            "total_comparisons": len(hash_list)
        }

    def benchmark_comparison(self, iterations: int = 1000) -> Dict[str, Any]:
        """
        Benchmark comparison throughput for capacity planning.

        Args:
            iterations: Number of comparisons to run

        Returns:
            Average/total time and comparisons per second
        """
        if iterations < 1:
            raise ValueError("iterations must be positive")

        test_hash1 = "a" * 64
        test_hash2 = "b" * 64

        start = time.perf_counter()
        for _ in range(iterations):
            self.compare(test_hash1, test_hash2)
        total_seconds = time.perf_counter() - start

        total_time_ms = total_seconds * 1000
        return {
            "average_time_ms": total_time_ms / iterations,
            "total_time_ms": total_time_ms,
            "iterations": iterations,
            "hashes_per_second": round(iterations / total_seconds) if total_seconds > 0 else iterations
        }

    def get_security_report(self) -> Dict[str, Any]:
        """Get the security configuration report."""
        recommendations = []

        if not self.config.enable_timing_safety:
            recommendations.append("Enable timing-safe comparison to prevent timing attacks")

        if self.config.security_level == "standard":
            recommendations.append("Consider upgrading to high or maximum security level")

        if self.config.salt_length < 16:
            recommendations.append("Use salt length of at least 16 bytes for better security")

        if self.config.hmac_key.get_secret_value() == DEFAULT_HMAC_KEY:
            recommendations.append("Set a custom HMAC key in production")

        if self.config.max_hash_age_days > 30:
            recommendations.append("Rotate stored hashes at least every 30 days")

        return {
            "configuration": self.config.model_dump(exclude={"hmac_key"}),
            "security_features": {
                "timing_safe_comparison": self.config.enable_timing_safety,
                "hmac_verification": self.config.require_hmac_verification,
                "salted_hashing": self.config.salt_length > 0,
                "secure_random_salt": True,
                "max_hash_age_days": self.config.max_hash_age_days
            },
            "recommendations": recommendations
        }

    def _result(self, is_match: bool, method: ComparisonMethod, start: float) -> ComparisonResult:
        return ComparisonResult(
            is_match=is_match,
            confidence=1.0 if is_match else 0.0,
            method=method,
            processing_time_ms=(time.perf_counter() - start) * 1000,
            security_level=self.config.security_level
        )
