# ABOUTME: Fuzzy matching of an extracted title/author against the local catalog.
# ABOUTME: Finds existing books so a review reuses them instead of creating duplicates.

from bookclub.db.catalog import BookCatalog
from bookclub.db.mapping import CatalogEntry
from bookclub.metadata.candidate import BookCandidate, CandidateSource, Similarity
from bookclub.metadata.similarity import MatchThresholds, similarity


def score_entry(entry: CatalogEntry, title: str, author: str | None) -> Similarity:
    """Similarity of a catalog entry to a title/author pair.

    Authors are compared only when both sides have one.
    """
    author_similarity = None
    if author and entry.author:
        author_similarity = similarity(author, entry.author)
    return Similarity(title=similarity(title, entry.title), author=author_similarity)


def entry_to_candidate(entry: CatalogEntry, score: Similarity | None = None) -> BookCandidate:
    return BookCandidate(
        title=entry.title,
        author=entry.author,
        source=CandidateSource.LOCAL,
        external_id=entry.external_id,
        isbn=entry.isbn,
        cover_url=entry.cover_url,
        similarity=score,
        catalog_id=entry.id,
    )


class CatalogDeduplicator:
    """Read-only lookup of catalog entries that clear the match thresholds.

    When several entries qualify, the highest combined similarity wins and
    ties go to the lowest catalog id, so the answer never depends on the
    order rows come back in.
    """

    def __init__(self, catalog: BookCatalog, thresholds: MatchThresholds | None = None) -> None:
        self._catalog = catalog
        self._thresholds = thresholds or MatchThresholds()

    @property
    def thresholds(self) -> MatchThresholds:
        return self._thresholds

    def _ranked(self, title: str, author: str | None) -> list[tuple[CatalogEntry, Similarity]]:
        matches = []
        for entry in self._catalog.list_all():
            score = score_entry(entry, title, author)
            if self._thresholds.matches(score.title, score.author):
                matches.append((entry, score))
        matches.sort(key=lambda pair: (-pair[1].combined, pair[0].id))
        return matches

    def find_match(self, title: str, author: str | None = None) -> CatalogEntry | None:
        """Best matching catalog entry, or None."""
        ranked = self._ranked(title, author)
        return ranked[0][0] if ranked else None

    def find_candidates(
        self, title: str, author: str | None = None, limit: int | None = None
    ) -> list[BookCandidate]:
        """All matching entries as local candidates, best first."""
        ranked = self._ranked(title, author)
        if limit is not None:
            ranked = ranked[:limit]
        return [entry_to_candidate(entry, score) for entry, score in ranked]
