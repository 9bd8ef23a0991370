# ABOUTME: CRUD operations for the bookclub catalog of books and reviews.
# ABOUTME: Add and query canonical books, attach reviews, full-text search.

import sqlite3
from typing import Any

from bookclub.db.mapping import (
    CatalogEntry,
    PendingReview,
    ReviewRecord,
    metadata_to_row,
    review_to_row,
    row_to_entry,
    row_to_review,
)
from bookclub.metadata.types import BookMetadata


class PersistenceError(Exception):
    """Raised when a catalog write fails for reasons other than a uniqueness clash."""


class DuplicateBookError(PersistenceError):
    """Raised when adding a book whose external_id is already cataloged."""


class DuplicateReviewError(PersistenceError):
    """Raised when the same chat message is stored as a review twice."""


class BookCatalog:
    """Wraps a sqlite3 connection and provides typed CRUD for books and reviews."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def _insert(self, table: str, row: dict[str, Any]) -> int:
        columns = ", ".join(row.keys())
        placeholders = ", ".join("?" for _ in row)
        cursor = self._conn.execute(
            f"INSERT INTO {table} ({columns}) VALUES ({placeholders})",
            list(row.values()),
        )
        self._conn.commit()
        return cursor.lastrowid  # type: ignore[return-value]

    def add_book(self, metadata: BookMetadata) -> CatalogEntry:
        """Add a book to the catalog.

        Returns:
            The stored entry, with its new id and timestamps.

        Raises:
            DuplicateBookError: If a book with this external_id already exists.
            PersistenceError: On any other database failure.
        """
        try:
            book_id = self._insert("books", metadata_to_row(metadata))
        except sqlite3.IntegrityError as exc:
            self._conn.rollback()
            if "books.external_id" in str(exc):
                raise DuplicateBookError(
                    f"Book with external id {metadata.external_id} already exists"
                ) from exc
            raise PersistenceError(f"Could not add book {metadata.title!r}: {exc}") from exc
        except sqlite3.Error as exc:
            raise PersistenceError(f"Could not add book {metadata.title!r}: {exc}") from exc

        entry = self.get_by_id(book_id)
        if entry is None:
            raise PersistenceError(f"Book {book_id} vanished right after insert")
        return entry

    def get_by_id(self, book_id: int) -> CatalogEntry | None:
        """Retrieve a book by its row ID."""
        cursor = self._conn.execute("SELECT * FROM books WHERE id = ?", (book_id,))
        row = cursor.fetchone()
        return row_to_entry(row) if row else None

    def get_by_external_id(self, external_id: str) -> CatalogEntry | None:
        """Retrieve a book by its provider volume id."""
        cursor = self._conn.execute("SELECT * FROM books WHERE external_id = ?", (external_id,))
        row = cursor.fetchone()
        return row_to_entry(row) if row else None

    def get_by_isbn(self, isbn: str) -> CatalogEntry | None:
        cursor = self._conn.execute("SELECT * FROM books WHERE isbn = ?", (isbn,))
        row = cursor.fetchone()
        return row_to_entry(row) if row else None

    def list_all(self) -> list[CatalogEntry]:
        """Return all books in insertion order."""
        cursor = self._conn.execute("SELECT * FROM books ORDER BY id")
        return [row_to_entry(row) for row in cursor.fetchall()]

    def search(self, query: str) -> list[CatalogEntry]:
        """Full-text search across title, author, and description.

        Uses FTS5 MATCH syntax. Results are ranked by relevance (FTS5 rank).
        """
        cursor = self._conn.execute(
            "SELECT books.* FROM books "
            "JOIN books_fts ON books.id = books_fts.rowid "
            "WHERE books_fts MATCH ? "
            "ORDER BY books_fts.rank",
            (query,),
        )
        return [row_to_entry(row) for row in cursor.fetchall()]

    # --- Review operations ---

    def add_review(self, book_id: int, review: PendingReview) -> int:
        """Attach a review to a book and return the review id.

        Raises:
            DuplicateReviewError: If this user's message was already stored.
            PersistenceError: On any other database failure, including an
                unknown book_id.
        """
        try:
            return self._insert("reviews", review_to_row(book_id, review))
        except sqlite3.IntegrityError as exc:
            self._conn.rollback()
            if "reviews.user_id" in str(exc):
                raise DuplicateReviewError(
                    f"Message {review.message_id} from {review.user_id} is already a review"
                ) from exc
            raise PersistenceError(f"Could not store review for book {book_id}: {exc}") from exc
        except sqlite3.Error as exc:
            raise PersistenceError(f"Could not store review for book {book_id}: {exc}") from exc

    def has_review(self, user_id: str, message_id: str) -> bool:
        cursor = self._conn.execute(
            "SELECT 1 FROM reviews WHERE user_id = ? AND message_id = ?",
            (user_id, message_id),
        )
        return cursor.fetchone() is not None

    def count_reviews(self, book_id: int) -> int:
        cursor = self._conn.execute("SELECT COUNT(*) FROM reviews WHERE book_id = ?", (book_id,))
        return cursor.fetchone()[0]

    def list_reviews(self, book_id: int) -> list[ReviewRecord]:
        """Reviews of a book, oldest first."""
        cursor = self._conn.execute(
            "SELECT * FROM reviews WHERE book_id = ? ORDER BY reviewed_at, id",
            (book_id,),
        )
        return [row_to_review(row) for row in cursor.fetchall()]
