# ABOUTME: BookCandidate is one option offered to the reviewer during confirmation.
# ABOUTME: Wraps either a local catalog entry or a provider record, with similarity scores.

from dataclasses import dataclass
from enum import Enum

from bookclub.metadata.types import BookMetadata


class CandidateSource(str, Enum):
    LOCAL = "local"
    EXTERNAL = "external"


@dataclass(frozen=True)
class Similarity:
    """Title/author similarity of a candidate against the extracted values.

    ``author`` is None when there was no author on one side to compare.
    """

    title: float
    author: float | None = None

    def __post_init__(self) -> None:
        for value in (self.title, self.author):
            if value is not None and not 0.0 <= value <= 1.0:
                msg = f"similarity must be between 0.0 and 1.0, got {value}"
                raise ValueError(msg)

    @property
    def combined(self) -> float:
        """Mean of the fields that were actually compared."""
        if self.author is None:
            return self.title
        return (self.title + self.author) / 2


@dataclass
class BookCandidate:
    """A possible identity for the reviewed book.

    Local candidates point at a catalog row via ``catalog_id``; external ones
    carry the provider record in ``metadata`` and keep the provider's order.
    """

    title: str
    author: str | None
    source: CandidateSource
    external_id: str | None = None
    isbn: str | None = None
    cover_url: str | None = None
    similarity: Similarity | None = None
    catalog_id: int | None = None
    metadata: BookMetadata | None = None

    @classmethod
    def from_metadata(
        cls, metadata: BookMetadata, similarity: Similarity | None = None
    ) -> "BookCandidate":
        return cls(
            title=metadata.title,
            author=metadata.author,
            source=CandidateSource.EXTERNAL,
            external_id=metadata.external_id,
            isbn=metadata.isbn,
            cover_url=metadata.cover_url,
            similarity=similarity,
            metadata=metadata,
        )

    @property
    def is_local(self) -> bool:
        return self.source is CandidateSource.LOCAL
