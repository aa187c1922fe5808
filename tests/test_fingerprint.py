"""Tests for content fingerprinting and structural similarity."""

import pytest

from privacy_core.dedup.fingerprint import (
    AnonymizedContent,
    ContentFingerprint,
    FingerprintEngine,
    numeric_similarity,
    SIGNATURE_LENGTH
)
from conftest import make_content, sha256_hex


class TestNumericSimilarity:
    """Test tolerance-based numeric similarity."""

    def test_both_zero(self):
        """Test two zeros are identical."""
        assert numeric_similarity(0, 0, 0.2) == 1.0

    def test_one_zero(self):
        """Test exactly one zero gives no similarity."""
        assert numeric_similarity(0, 10, 0.2) == 0.0
        assert numeric_similarity(10, 0, 0.2) == 0.0

    def test_within_tolerance(self):
        """Test a relative difference inside tolerance counts as equal."""
        assert numeric_similarity(100, 85, 0.2) == 1.0

    def test_outside_tolerance(self):
        """Test ratio minus relative difference outside tolerance."""
        # ratio 0.5, difference 0.5
        assert numeric_similarity(100, 50, 0.2) == pytest.approx(0.0)
        # ratio 0.75, difference 0.25
        assert numeric_similarity(100, 75, 0.2) == pytest.approx(0.5)


class TestFingerprintEngine:
    """Test fingerprint construction and similarity scoring."""

    def test_build_copies_metadata(self, engine, content_a, hash_a):
        """Test fingerprint fields come from the anonymized metadata."""
        fingerprint = engine.build(content_a)

        assert fingerprint.content_hash == hash_a
        assert fingerprint.word_count == 1200
        assert fingerprint.section_count == 8
        assert fingerprint.length == 7400
        assert fingerprint.features.has_numbered_items is True
        assert fingerprint.features.estimated_reading_time == 6

    def test_signature_is_16_hex_chars(self, fingerprint_a):
        """Test signature format."""
        assert len(fingerprint_a.structural_signature) == SIGNATURE_LENGTH
        int(fingerprint_a.structural_signature, 16)

    def test_signature_ignores_hash(self, engine, hash_a, hash_b):
        """Test same structure with different hashes share a signature."""
        fp1 = engine.build(make_content(hash_a))
        fp2 = engine.build(make_content(hash_b))
        assert fp1.structural_signature == fp2.structural_signature

    def test_signature_buckets_word_count(self, engine, hash_a):
        """Test word counts in the same 100-word bucket share a signature."""
        fp1 = engine.build(make_content(hash_a, word_count=1210))
        fp2 = engine.build(make_content(hash_a, word_count=1290))
        fp3 = engine.build(make_content(hash_a, word_count=1310))

        assert fp1.structural_signature == fp2.structural_signature
        assert fp1.structural_signature != fp3.structural_signature

    def test_signature_changes_with_flags(self, engine, hash_a):
        """Test structural flags feed the signature."""
        fp1 = engine.build(make_content(hash_a))
        fp2 = engine.build(make_content(hash_a, has_legal_language=False))
        assert fp1.structural_signature != fp2.structural_signature

    def test_self_similarity_is_one(self, engine, fingerprint_a):
        """Test similarity(fp, fp) == 1.0."""
        assert engine.similarity(fingerprint_a, fingerprint_a) == 1.0

    def test_self_similarity_with_zero_counts(self, engine, hash_a):
        """Test self-similarity holds for empty documents."""
        fingerprint = engine.build(make_content(
            hash_a,
            word_count=0,
            section_count=0,
            original_length=0,
            estimated_reading_time=0
        ))
        assert engine.similarity(fingerprint, fingerprint) == 1.0

    def test_similarity_is_symmetric_and_bounded(self, engine, hash_a, hash_b):
        """Test similarity stays in [0, 1] and ignores argument order."""
        fp1 = engine.build(make_content(hash_a))
        fp2 = engine.build(make_content(
            hash_b,
            word_count=300,
            section_count=2,
            original_length=1800,
            has_numbered_items=False,
            estimated_reading_time=1
        ))

        score = engine.similarity(fp1, fp2)
        assert 0.0 <= score < 0.7
        assert score == engine.similarity(fp2, fp1)

    def test_near_duplicate_structure(self, engine, hash_a, hash_b):
        """Test a lightly edited document scores above the structural threshold."""
        fp1 = engine.build(make_content(hash_a))
        fp2 = engine.build(make_content(hash_b, word_count=1250, original_length=7600))
        assert engine.similarity(fp1, fp2) >= 0.7


class TestAnonymizedContent:
    """Test the anonymizer payload model."""

    def test_accepts_camel_case_payload(self):
        """Test the upstream camelCase payload is accepted."""
        content = AnonymizedContent.model_validate({
            "contentHash": sha256_hex("x"),
            "metadata": {
                "wordCount": 10,
                "sectionCount": 1,
                "originalLength": 60,
                "hasNumberedItems": False,
                "hasLegalLanguage": True,
                "structuralFeatures": {"hasLists": False, "hasHeaders": True},
                "estimatedReadingTime": 1
            }
        })
        assert content.metadata.word_count == 10
        assert content.metadata.structural_features.has_headers is True

    def test_fingerprint_dict_round_trip(self, fingerprint_a):
        """Test fingerprints survive export and import."""
        assert ContentFingerprint.from_dict(fingerprint_a.to_dict()) == fingerprint_a

    def test_rejects_negative_counts(self, hash_a):
        """Test counts must be non-negative."""
        with pytest.raises(ValueError):
            make_content(hash_a, word_count=-1)
