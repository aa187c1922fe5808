"""Security module for hash validation and timing-safe comparison."""

from .hash_validation import (
    HashValidator,
    HashValidationResult,
    HashFormat,
    HashStrength,
    validate_hash,
    normalize_hash,
    is_sha256_hex
)
from .hash_comparison import (
    SecureComparator,
    ComparisonResult,
    ComparisonMethod
)

__all__ = [
    # Validation
    "HashValidator",
    "HashValidationResult",
    "HashFormat",
    "HashStrength",
    "validate_hash",
    "normalize_hash",
    "is_sha256_hex",
    # Comparison
    "SecureComparator",
    "ComparisonResult",
    "ComparisonMethod",
]
