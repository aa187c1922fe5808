"""
Hash Format Validation

Format and strength checks for hexadecimal content hashes. Validation never
raises; every outcome is reported through a structured result.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List

HEX_PATTERN = re.compile(r"^[a-f0-9]+$")
SHA256_PATTERN = re.compile(r"^[a-f0-9]{64}$")

PATTERN_CHUNK_SIZE = 4
MIN_UNIQUE_CHUNK_RATIO = 0.8


class HashFormat(str, Enum):
    """Hash algorithm inferred from digest length."""
    SHA256 = "sha256"
    SHA512 = "sha512"
    SHA1 = "sha1"
    MD5 = "md5"
    UNKNOWN = "unknown"


class HashStrength(str, Enum):
    """Relative strength of a hash algorithm."""
    WEAK = "weak"
    MODERATE = "moderate"
    STRONG = "strong"


# digest length (hex chars) -> (format, strength, warning)
_LENGTH_CLASSIFICATION = {
    64: (HashFormat.SHA256, HashStrength.STRONG, None),
    128: (HashFormat.SHA512, HashStrength.STRONG, None),
    32: (HashFormat.MD5, HashStrength.MODERATE, "MD5 hash detected - consider upgrading to SHA-256"),
    40: (HashFormat.SHA1, HashStrength.MODERATE, "SHA-1 hash detected - consider upgrading to SHA-256"),
}


@dataclass
class HashValidationResult:
    """Result of validating a hash string."""
    is_valid: bool
    format: HashFormat = HashFormat.UNKNOWN
    strength: HashStrength = HashStrength.WEAK
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


def normalize_hash(value: str) -> str:
    """Trim and lowercase a hash for comparison."""
    return value.strip().lower()


def is_sha256_hex(value: Any) -> bool:
    """Check that a value is a lowercase 64-character hex digest."""
    return isinstance(value, str) and bool(SHA256_PATTERN.match(value))


def has_repeated_pattern(normalized: str) -> bool:
    """
    Detect low-entropy hashes.

    The hash is split into 4-character chunks; fewer than 80% unique chunks
    counts as a repeated pattern.
    """
    chunks = [
        normalized[i:i + PATTERN_CHUNK_SIZE]
        for i in range(0, len(normalized), PATTERN_CHUNK_SIZE)
    ]
    if not chunks:
        return False
    return len(set(chunks)) < len(chunks) * MIN_UNIQUE_CHUNK_RATIO


class HashValidator:
    """Validate hash format and strength."""

    def validate(self, value: Any) -> HashValidationResult:
        """
        Validate a hash string.

        Args:
            value: Candidate hex hash

        Returns:
            Structured validation result
        """
        result = HashValidationResult(is_valid=False)

        if not isinstance(value, str):
            result.errors.append("Hash must be a string")
            return result

        normalized = normalize_hash(value)
        if not normalized:
            result.errors.append("Hash cannot be empty")
            return result

        if not HEX_PATTERN.match(normalized):
            result.errors.append("Hash must contain only hexadecimal characters")
            return result

        classification = _LENGTH_CLASSIFICATION.get(len(normalized))
        if classification:
            result.format, result.strength, warning = classification
            if warning:
                result.warnings.append(warning)
        else:
            result.warnings.append(f"Unusual hash length: {len(normalized)} characters")

        if normalized == "0" * len(normalized):
            result.errors.append("Hash appears to be all zeros")
            result.strength = HashStrength.WEAK

        if normalized == "f" * len(normalized):
            result.errors.append("Hash appears to be all maximum values")
            result.strength = HashStrength.WEAK

        if has_repeated_pattern(normalized):
            result.warnings.append("Hash contains repeated patterns")

        result.is_valid = not result.errors
        return result


def validate_hash(value: Any) -> HashValidationResult:
    """Quick helper to validate a hash."""
    return HashValidator().validate(value)
