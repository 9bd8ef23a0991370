# ABOUTME: Unit tests for confidence levels, extraction results, and book candidates.
# ABOUTME: Covers confidence ordering/parsing, combination, similarity validation, and candidates.

import pytest

from bookclub.metadata.candidate import BookCandidate, CandidateSource, Similarity
from bookclub.metadata.types import (
    BookMetadata,
    Confidence,
    ExtractionResult,
    combine_confidence,
)


class TestConfidence:
    """Tests for Confidence ordering and parsing."""

    def test_rank_order(self) -> None:
        assert Confidence.LOW.rank < Confidence.MEDIUM.rank < Confidence.HIGH.rank

    def test_parse_known_values(self) -> None:
        """Model output is parsed case-insensitively."""
        assert Confidence.parse("high") is Confidence.HIGH
        assert Confidence.parse(" Medium ") is Confidence.MEDIUM

    def test_parse_unknown_is_low(self) -> None:
        """Missing or unexpected values are treated as low confidence."""
        assert Confidence.parse(None) is Confidence.LOW
        assert Confidence.parse("certain") is Confidence.LOW


class TestCombineConfidence:
    """Tests for combine_confidence."""

    def test_weakest_wins(self) -> None:
        assert combine_confidence(Confidence.HIGH, Confidence.MEDIUM) is Confidence.MEDIUM
        assert combine_confidence(Confidence.HIGH, Confidence.LOW) is Confidence.LOW

    def test_all_high(self) -> None:
        assert combine_confidence(Confidence.HIGH, Confidence.HIGH) is Confidence.HIGH

    def test_nothing_is_low(self) -> None:
        assert combine_confidence() is Confidence.LOW


class TestExtractionResult:
    """Tests for ExtractionResult."""

    def test_empty(self) -> None:
        result = ExtractionResult.empty()
        assert result.is_empty
        assert result.confidence is Confidence.LOW

    def test_author_without_title_is_empty(self) -> None:
        """A result is only usable when it has a title."""
        assert ExtractionResult(None, "George Orwell", Confidence.HIGH).is_empty
        assert not ExtractionResult("1984", None, Confidence.LOW).is_empty


class TestSimilarity:
    """Tests for the Similarity score pair."""

    def test_combined_with_author(self) -> None:
        assert Similarity(title=1.0, author=0.5).combined == pytest.approx(0.75)

    def test_combined_title_only(self) -> None:
        """With no author compared, the title score stands alone."""
        assert Similarity(title=0.9).combined == pytest.approx(0.9)

    def test_out_of_range_rejected(self) -> None:
        with pytest.raises(ValueError, match="between 0.0 and 1.0"):
            Similarity(title=1.2)
        with pytest.raises(ValueError):
            Similarity(title=0.5, author=-0.1)


class TestBookCandidate:
    """Tests for BookCandidate."""

    def test_from_metadata(self) -> None:
        """Provider records become external candidates carrying the record."""
        metadata = BookMetadata(
            title="1984", author="George Orwell", external_id="v1", isbn="9780547249643"
        )
        candidate = BookCandidate.from_metadata(metadata, Similarity(title=1.0, author=1.0))

        assert candidate.source is CandidateSource.EXTERNAL
        assert not candidate.is_local
        assert candidate.metadata is metadata
        assert candidate.isbn == "9780547249643"
        assert candidate.catalog_id is None

    def test_local_candidate(self) -> None:
        candidate = BookCandidate("1984", "George Orwell", CandidateSource.LOCAL, catalog_id=7)
        assert candidate.is_local
