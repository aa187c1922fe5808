"""Tests for hash format validation."""

import pytest

from privacy_core.security.hash_validation import (
    HashValidator,
    HashFormat,
    HashStrength,
    validate_hash,
    has_repeated_pattern,
    is_sha256_hex
)
from conftest import sha256_hex


class TestHashValidation:
    """Test hash format and strength classification."""

    def setup_method(self):
        self.validator = HashValidator()

    def test_sha256_is_strong(self):
        """Test a real SHA-256 digest is valid and strong."""
        result = self.validator.validate(sha256_hex("hello"))
        assert result.is_valid is True
        assert result.format == HashFormat.SHA256
        assert result.strength == HashStrength.STRONG
        assert result.errors == []

    def test_sha512_is_strong(self):
        """Test a 128-character digest is classified as SHA-512."""
        import hashlib
        result = self.validator.validate(hashlib.sha512(b"hello").hexdigest())
        assert result.is_valid is True
        assert result.format == HashFormat.SHA512
        assert result.strength == HashStrength.STRONG

    def test_md5_and_sha1_are_moderate_with_warning(self):
        """Test legacy digests are accepted with an upgrade warning."""
        import hashlib
        md5 = self.validator.validate(hashlib.md5(b"hello").hexdigest())
        sha1 = self.validator.validate(hashlib.sha1(b"hello").hexdigest())

        assert md5.is_valid and md5.format == HashFormat.MD5
        assert md5.strength == HashStrength.MODERATE
        assert any("MD5" in w for w in md5.warnings)

        assert sha1.is_valid and sha1.format == HashFormat.SHA1
        assert sha1.strength == HashStrength.MODERATE
        assert any("SHA-1" in w for w in sha1.warnings)

    def test_unusual_length_is_weak(self):
        """Test an unrecognized length is unknown and weak."""
        result = self.validator.validate("1a2b3c4d5e6f7081")
        assert result.is_valid is True
        assert result.format == HashFormat.UNKNOWN
        assert result.strength == HashStrength.WEAK
        assert "Unusual hash length: 16 characters" in result.warnings

    def test_normalizes_case_and_whitespace(self):
        """Test uppercase input with surrounding spaces is accepted."""
        result = self.validator.validate(f"  {sha256_hex('hello').upper()}  ")
        assert result.is_valid is True
        assert result.format == HashFormat.SHA256

    @pytest.mark.parametrize("value,error", [
        ("", "Hash cannot be empty"),
        ("   ", "Hash cannot be empty"),
        ("xyz123", "Hash must contain only hexadecimal characters"),
        (12345, "Hash must be a string"),
        (None, "Hash must be a string"),
    ])
    def test_rejects_malformed_input(self, value, error):
        """Test malformed input produces a structured error, never an exception."""
        result = self.validator.validate(value)
        assert result.is_valid is False
        assert error in result.errors

    @pytest.mark.parametrize("length", [32, 40, 64, 128])
    def test_degenerate_hashes_are_invalid(self, length):
        """Test all-zero and all-f hashes are invalid at any length."""
        zeros = self.validator.validate("0" * length)
        maxed = self.validator.validate("F" * length)

        assert zeros.is_valid is False
        assert "Hash appears to be all zeros" in zeros.errors
        assert zeros.strength == HashStrength.WEAK

        assert maxed.is_valid is False
        assert "Hash appears to be all maximum values" in maxed.errors

    def test_repeated_pattern_warning(self):
        """Test low-entropy hashes are warned about but stay valid."""
        result = self.validator.validate("abcd" * 16)
        assert result.is_valid is True
        assert "Hash contains repeated patterns" in result.warnings

    def test_repeated_pattern_threshold(self):
        """Test the 80% unique chunk threshold."""
        # 5 chunks, 4 unique -> exactly 80%, not flagged
        assert has_repeated_pattern("aaaabbbbccccddddaaaa") is False
        # 5 chunks, 3 unique -> flagged
        assert has_repeated_pattern("aaaabbbbccccaaaabbbb") is True

    def test_helper_functions(self):
        """Test module-level helpers."""
        assert validate_hash(sha256_hex("x")).is_valid is True
        assert is_sha256_hex(sha256_hex("x")) is True
        assert is_sha256_hex(sha256_hex("x").upper()) is False
        assert is_sha256_hex(None) is False
