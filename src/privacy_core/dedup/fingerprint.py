"""
Content Fingerprinting

Builds structural fingerprints from anonymized content metadata and scores
structural similarity between fingerprints. Only hashes, counts and flags
are used; no original text ever reaches this module.
"""

import hashlib
from dataclasses import dataclass, asdict
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

SIGNATURE_LENGTH = 16
WORD_COUNT_BUCKET = 100
READING_TIME_BUCKET_MINUTES = 5
READING_TIME_TOLERANCE_MINUTES = 2

# Similarity weights, sum to 1.0
SIGNATURE_WEIGHT = 0.40
WORD_COUNT_WEIGHT = 0.20
LENGTH_WEIGHT = 0.15
SECTION_COUNT_WEIGHT = 0.10
FEATURE_WEIGHT = 0.15

WORD_COUNT_TOLERANCE = 0.20
LENGTH_TOLERANCE = 0.15


class _AnonymizerModel(BaseModel):
    """Accepts both snake_case and the anonymizer's camelCase payloads."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class StructuralFeatures(_AnonymizerModel):
    has_lists: bool = False
    has_headers: bool = False


class AnonymizedMetadata(_AnonymizerModel):
    word_count: int = Field(ge=0)
    section_count: int = Field(ge=0)
    original_length: int = Field(ge=0)
    paragraph_count: int = Field(default=0, ge=0)
    has_numbered_items: bool = False
    has_legal_language: bool = False
    structural_features: StructuralFeatures = Field(default_factory=StructuralFeatures)
    estimated_reading_time: int = Field(default=0, ge=0)


class AnonymizedContent(_AnonymizerModel):
    """Output of the upstream anonymization step."""
    content_hash: str
    metadata: AnonymizedMetadata


@dataclass(frozen=True)
class FingerprintFeatures:
    has_numbered_items: bool
    has_legal_language: bool
    estimated_reading_time: int


@dataclass(frozen=True)
class ContentFingerprint:
    """Hash plus structural metadata substituting for raw text."""
    content_hash: str
    structural_signature: str
    word_count: int
    section_count: int
    length: int
    features: FingerprintFeatures

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ContentFingerprint":
        return cls(
            content_hash=data["content_hash"],
            structural_signature=data["structural_signature"],
            word_count=data["word_count"],
            section_count=data["section_count"],
            length=data["length"],
            features=FingerprintFeatures(**data["features"])
        )


def numeric_similarity(value1: float, value2: float, tolerance: float) -> float:
    """
    Similarity of two non-negative numbers in [0, 1].

    Values whose relative difference is within tolerance count as equal.
    """
    if value1 == 0 and value2 == 0:
        return 1.0
    if value1 == 0 or value2 == 0:
        return 0.0

    larger = max(value1, value2)
    ratio = min(value1, value2) / larger
    difference = abs(value1 - value2) / larger

    if difference <= tolerance:
        return 1.0

    return max(0.0, ratio - difference)


class FingerprintEngine:
    """Build fingerprints and compute weighted structural similarity."""

    def build(self, content: AnonymizedContent) -> ContentFingerprint:
        """Derive a fingerprint from anonymized content."""
        metadata = content.metadata
        return ContentFingerprint(
            content_hash=content.content_hash,
            structural_signature=self.structural_signature(metadata),
            word_count=metadata.word_count,
            section_count=metadata.section_count,
            length=metadata.original_length,
            features=FingerprintFeatures(
                has_numbered_items=metadata.has_numbered_items,
                has_legal_language=metadata.has_legal_language,
                estimated_reading_time=metadata.estimated_reading_time
            )
        )

    def structural_signature(self, metadata: AnonymizedMetadata) -> str:
        """Short hash over a fixed-order vector of quantized structural features."""
        components = [
            str(metadata.section_count),
            str(metadata.paragraph_count),
            "1" if metadata.has_numbered_items else "0",
            "1" if metadata.has_legal_language else "0",
            "1" if metadata.structural_features.has_lists else "0",
            "1" if metadata.structural_features.has_headers else "0",
            str(metadata.word_count // WORD_COUNT_BUCKET),
            str(metadata.estimated_reading_time // READING_TIME_BUCKET_MINUTES),
        ]
        digest = hashlib.sha256("-".join(components).encode("utf-8")).hexdigest()
        return digest[:SIGNATURE_LENGTH]

    def similarity(self, fp1: ContentFingerprint, fp2: ContentFingerprint) -> float:
        """
        Weighted structural similarity in [0, 1].

        Args:
            fp1: First fingerprint
            fp2: Second fingerprint

        Returns:
            Similarity score, 1.0 for identical fingerprints
        """
        score = 0.0

        if fp1.structural_signature == fp2.structural_signature:
            score += SIGNATURE_WEIGHT

        score += numeric_similarity(fp1.word_count, fp2.word_count, WORD_COUNT_TOLERANCE) * WORD_COUNT_WEIGHT
        score += numeric_similarity(fp1.length, fp2.length, LENGTH_TOLERANCE) * LENGTH_WEIGHT

        if fp1.section_count == fp2.section_count:
            score += SECTION_COUNT_WEIGHT

        feature_matches = sum([
            fp1.features.has_numbered_items == fp2.features.has_numbered_items,
            fp1.features.has_legal_language == fp2.features.has_legal_language,
            abs(fp1.features.estimated_reading_time - fp2.features.estimated_reading_time)
            <= READING_TIME_TOLERANCE_MINUTES,
        ])
        score += (feature_matches / 3) * FEATURE_WEIGHT

        # Float accumulation can overshoot 1.0 in the last place
        return round(min(1.0, max(0.0, score)), 6)
