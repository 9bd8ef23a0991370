# ABOUTME: Creates or reuses catalog books and records reviews against them.
# ABOUTME: Shared by automatic resolution and the interactive confirmation flow.

import logging
from dataclasses import dataclass

from bookclub.core.dedup import CatalogDeduplicator
from bookclub.db.catalog import BookCatalog, DuplicateBookError
from bookclub.db.mapping import CatalogEntry, PendingReview
from bookclub.metadata.types import BookMetadata

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SavedReview:
    """A review that has been attached to a catalog book."""

    entry: CatalogEntry
    review_id: int
    review_count: int


class BookService:
    """Catalog writes on behalf of the resolver and the confirmation flow."""

    def __init__(self, catalog: BookCatalog, deduplicator: CatalogDeduplicator) -> None:
        self._catalog = catalog
        self._dedup = deduplicator

    @property
    def catalog(self) -> BookCatalog:
        return self._catalog

    def find_or_create(self, metadata: BookMetadata) -> CatalogEntry:
        """Reuse a book with the same external id or a fuzzy-matching title/author.

        Only creates a new entry when neither exists.
        """
        if metadata.external_id:
            existing = self._catalog.get_by_external_id(metadata.external_id)
            if existing is not None:
                return existing

        similar = self._dedup.find_match(metadata.title, metadata.author)
        if similar is not None:
            logger.info("Reusing catalog book %d for %r", similar.id, metadata.title)
            return similar

        try:
            entry = self._catalog.add_book(metadata)
        except DuplicateBookError:
            # Lost a race with another review of the same volume.
            existing = self._catalog.get_by_external_id(metadata.external_id or "")
            if existing is None:
                raise
            return existing
        logger.info("Created catalog book %d: %r by %r", entry.id, entry.title, entry.author)
        return entry

    def create_minimal(self, title: str, author: str | None) -> CatalogEntry:
        """Title/author-only book for when the provider is unavailable."""
        return self.find_or_create(BookMetadata(title=title, author=author))

    def create_manual(self, title: str, author: str | None) -> CatalogEntry:
        """Book exactly as the reviewer typed it; no matching or normalization."""
        entry = self._catalog.add_book(BookMetadata(title=title, author=author))
        logger.info("Created manual catalog book %d: %r by %r", entry.id, title, author)
        return entry

    def get(self, book_id: int) -> CatalogEntry | None:
        return self._catalog.get_by_id(book_id)

    def get_by_isbn(self, isbn: str) -> CatalogEntry | None:
        return self._catalog.get_by_isbn(isbn)

    def has_review(self, review: PendingReview) -> bool:
        return self._catalog.has_review(review.user_id, review.message_id)

    def save_review(self, entry: CatalogEntry, review: PendingReview) -> SavedReview:
        """Attach the review to the book.

        Raises:
            PersistenceError: If the review could not be stored.
        """
        review_id = self._catalog.add_review(entry.id, review)
        return SavedReview(
            entry=entry,
            review_id=review_id,
            review_count=self._catalog.count_reviews(entry.id),
        )
