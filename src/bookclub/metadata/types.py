# ABOUTME: Core data structures for book identity: provider metadata, confidence, extraction results.
# ABOUTME: BookMetadata is the interchange format between providers, the catalog, and the resolver.

from dataclasses import dataclass, field
from enum import Enum


class Confidence(str, Enum):
    """Ordered confidence level reported by the extraction tiers.

    Ordering is explicit (low < medium < high) through ``rank``; the enum's
    string values are only used for parsing model output and display.
    """

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        return _CONFIDENCE_RANK[self]

    @classmethod
    def parse(cls, value: str | None) -> "Confidence":
        """Parse a model-reported level; anything unrecognized is LOW."""
        if not value:
            return cls.LOW
        try:
            return cls(value.strip().lower())
        except ValueError:
            return cls.LOW


_CONFIDENCE_RANK = {Confidence.LOW: 0, Confidence.MEDIUM: 1, Confidence.HIGH: 2}


def combine_confidence(*levels: Confidence) -> Confidence:
    """Combine per-field confidences conservatively (the weakest level wins)."""
    if not levels:
        return Confidence.LOW
    return min(levels, key=lambda level: level.rank)


@dataclass(frozen=True)
class ExtractionResult:
    """Title/author inferred from a review, with an overall confidence."""

    title: str | None
    author: str | None
    confidence: Confidence

    @classmethod
    def empty(cls) -> "ExtractionResult":
        return cls(title=None, author=None, confidence=Confidence.LOW)

    @property
    def is_empty(self) -> bool:
        """Whether the result should route straight to manual entry."""
        return not self.title


@dataclass
class BookMetadata:
    """Bibliographic record returned by an external provider.

    Only the title is required; providers routinely omit everything else,
    and a record with just a title is still worth presenting as a candidate.
    """

    title: str
    author: str | None = None
    external_id: str | None = None
    isbn: str | None = None
    cover_url: str | None = None
    genres: list[str] = field(default_factory=list)
    publication_year: int | None = None
    description: str | None = None
    page_count: int | None = None
