"""Tests for timing-safe hash comparison."""

import pytest

from privacy_core.config.privacy_config import HashComparisonConfig
from privacy_core.exceptions import HashComparisonError
from privacy_core.security.hash_comparison import SecureComparator, ComparisonMethod
from conftest import sha256_hex


class TestSecureCompare:
    """Test the core compare operation."""

    @pytest.fixture(autouse=True)
    def _comparator(self, hash_config):
        self.comparator = SecureComparator(config=hash_config)

    def test_identical_hashes_match(self, hash_a):
        """Test compare is reflexive."""
        result = self.comparator.compare(hash_a, hash_a)
        assert result.is_match is True
        assert result.confidence == 1.0
        assert result.method == ComparisonMethod.TIMING_SAFE
        assert result.security_level == "high"

    def test_comparison_is_symmetric(self, hash_a, hash_b):
        """Test compare(a, b) equals compare(b, a)."""
        assert self.comparator.compare(hash_a, hash_b).is_match is False
        assert self.comparator.compare(hash_b, hash_a).is_match is False

    def test_case_and_whitespace_insensitive(self, hash_a):
        """Test normalized forms of the same hash match."""
        result = self.comparator.compare(hash_a, f" {hash_a.upper()} ")
        assert result.is_match is True

    def test_different_lengths_do_not_match(self, hash_a):
        """Test a SHA-256 never matches a prefix of itself."""
        result = self.comparator.compare(hash_a, hash_a[:40])
        assert result.is_match is False

    def test_invalid_hash_is_non_match(self, hash_a):
        """Test invalid input returns confidence 0 without comparing."""
        for invalid in ("", "not-a-hash", "0" * 64):
            result = self.comparator.compare(hash_a, invalid)
            assert result.is_match is False
            assert result.confidence == 0.0

    def test_hmac_verification(self, hash_a, hash_b):
        """Test the HMAC second factor changes the reported method."""
        match = self.comparator.compare(hash_a, hash_a, enable_hmac_verification=True)
        mismatch = self.comparator.compare(hash_a, hash_b, enable_hmac_verification=True)

        assert match.is_match is True
        assert match.method == ComparisonMethod.HMAC_VERIFIED
        assert mismatch.is_match is False

    def test_hmac_required_by_config(self, hash_a):
        """Test require_hmac_verification applies by default."""
        comparator = SecureComparator(config=HashComparisonConfig(require_hmac_verification=True))
        result = comparator.compare(hash_a, hash_a)
        assert result.method == ComparisonMethod.HMAC_VERIFIED
        assert result.is_match is True

    def test_without_timing_safety(self, hash_a, hash_b):
        """Test plain comparison gives the same answers."""
        comparator = SecureComparator(config=HashComparisonConfig(enable_timing_safety=False))
        assert comparator.compare(hash_a, hash_a).is_match is True
        assert comparator.compare(hash_a, hash_b).is_match is False


class TestSaltedHashing:
    """Test salted hashing and re-verification."""

    @pytest.fixture(autouse=True)
    def _comparator(self, hash_config):
        self.comparator = SecureComparator(config=hash_config)

    def test_generate_secure_hash_is_deterministic_with_salt(self):
        """Test H(content || salt) with an explicit salt."""
        digest = self.comparator.generate_secure_hash("document body", "pepper")
        assert digest == sha256_hex("document bodypepper")

    def test_generate_secure_hash_sha512(self):
        """Test SHA-512 output length."""
        digest = self.comparator.generate_secure_hash("document body", "pepper", algorithm="sha512")
        assert len(digest) == 128

    def test_unsupported_algorithm(self):
        """Test unsupported algorithms raise a typed error."""
        with pytest.raises(HashComparisonError):
            self.comparator.generate_secure_hash("x", "y", algorithm="md5")

    def test_random_salt_when_omitted(self):
        """Test omitted salt yields different hashes."""
        assert self.comparator.generate_secure_hash("x") != self.comparator.generate_secure_hash("x")

    def test_generate_salt_length(self):
        """Test salt length is measured in bytes."""
        assert len(self.comparator.generate_salt()) == 64
        assert len(self.comparator.generate_salt(8)) == 16

    def test_validate_and_hash(self):
        """Test validate_and_hash returns a valid SHA-256 digest."""
        digest = self.comparator.validate_and_hash("content", "salt")
        assert digest == sha256_hex("contentsalt")

    def test_validate_and_hash_rejects_empty_content(self):
        """Test empty content raises."""
        with pytest.raises(HashComparisonError):
            self.comparator.validate_and_hash("")

    def test_compare_content_hash(self):
        """Test re-hashing content with its salt matches the stored hash."""
        stored = self.comparator.generate_secure_hash("contract text", "s1")
        result = self.comparator.compare_content_hash("contract text", stored, "s1")
        assert result.is_match is True
        assert result.method == ComparisonMethod.SALTED_HASH

        wrong = self.comparator.compare_content_hash("contract text", stored, "s2")
        assert wrong.is_match is False

    def test_create_hmac(self, hash_a):
        """Test HMAC output is a deterministic SHA-256 hex MAC."""
        mac = self.comparator.create_hmac(hash_a)
        assert len(mac) == 64
        assert mac == self.comparator.create_hmac(hash_a)
        assert mac != self.comparator.create_hmac(hash_a, key=b"other-key")


class TestComparatorUtilities:
    """Test list comparison, benchmarking and reporting."""

    def test_compare_hash_list(self, hash_config, hash_a, hash_b):
        """Test matches report their index."""
        comparator = SecureComparator(config=hash_config)
        result = comparator.compare_hash_list(hash_a, [hash_b, hash_a, "bad"])

        assert result["total_comparisons"] == 3
        assert result["matches"] == [{"index": 1, "hash": hash_a, "confidence": 1.0}]

    def test_benchmark(self, hash_config):
        """Test benchmark reports throughput."""
        comparator = SecureComparator(config=hash_config)
        report = comparator.benchmark_comparison(iterations=50)

        assert report["iterations"] == 50
        assert report["hashes_per_second"] > 0
        assert report["total_time_ms"] >= report["average_time_ms"]

    def test_benchmark_rejects_zero_iterations(self, hash_config):
        """Test iteration count must be positive."""
        with pytest.raises(ValueError):
            SecureComparator(config=hash_config).benchmark_comparison(iterations=0)

    def test_security_report_redacts_key(self):
        """Test the report never exposes the HMAC key and flags weak settings."""
        comparator = SecureComparator(config=HashComparisonConfig(
            enable_timing_safety=False,
            security_level="standard",
            salt_length=8
        ))
        report = comparator.get_security_report()

        assert "hmac_key" not in report["configuration"]
        assert report["security_features"]["timing_safe_comparison"] is False
        assert len(report["recommendations"]) == 4

    def test_security_report_flags_long_hash_age(self):
        """Test a long hash lifetime is reported and recommended against."""
        comparator = SecureComparator(config=HashComparisonConfig(max_hash_age_days=90))
        report = comparator.get_security_report()

        assert report["security_features"]["max_hash_age_days"] == 90
        assert "Rotate stored hashes at least every 30 days" in report["recommendations"]
