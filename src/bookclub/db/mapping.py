# ABOUTME: Converts between catalog dataclasses and SQLite row dictionaries.
# ABOUTME: Handles JSON serialization of the genres list and review timestamps.

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from bookclub.metadata.types import BookMetadata


@dataclass
class CatalogEntry:
    """A canonical book as stored in the local catalog."""

    id: int
    title: str
    author: str | None = None
    external_id: str | None = None
    isbn: str | None = None
    cover_url: str | None = None
    genres: list[str] = field(default_factory=list)
    publication_year: int | None = None
    description: str | None = None
    page_count: int | None = None
    date_added: str = ""
    date_modified: str = ""


@dataclass
class PendingReview:
    """A review waiting to be attached to a book."""

    user_id: str
    review_text: str
    message_id: str
    chat_id: str | None = None
    username: str | None = None
    display_name: str | None = None
    reviewed_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class ReviewRecord:
    """A persisted review linked to a catalog entry."""

    id: int
    book_id: int
    review: PendingReview


def metadata_to_row(metadata: BookMetadata) -> dict[str, Any]:
    """Convert provider metadata to a dict suitable for INSERT into books."""
    return {
        "title": metadata.title,
        "author": metadata.author,
        "external_id": metadata.external_id,
        "isbn": metadata.isbn,
        "cover_url": metadata.cover_url,
        "genres": json.dumps(metadata.genres, ensure_ascii=False),
        "publication_year": metadata.publication_year,
        "description": metadata.description,
        "page_count": metadata.page_count,
    }


def row_to_entry(row: Any) -> CatalogEntry:
    """Convert a books row (dict-like) to a CatalogEntry."""
    return CatalogEntry(
        id=row["id"],
        title=row["title"],
        author=row["author"],
        external_id=row["external_id"],
        isbn=row["isbn"],
        cover_url=row["cover_url"],
        genres=json.loads(row["genres"]) if row["genres"] else [],
        publication_year=row["publication_year"],
        description=row["description"],
        page_count=row["page_count"],
        date_added=row["date_added"],
        date_modified=row["date_modified"],
    )


def review_to_row(book_id: int, review: PendingReview) -> dict[str, Any]:
    return {
        "book_id": book_id,
        "user_id": review.user_id,
        "username": review.username,
        "display_name": review.display_name,
        "review_text": review.review_text,
        "message_id": review.message_id,
        "chat_id": review.chat_id,
        "reviewed_at": review.reviewed_at.isoformat(),
    }


def row_to_review(row: Any) -> ReviewRecord:
    return ReviewRecord(
        id=row["id"],
        book_id=row["book_id"],
        review=PendingReview(
            user_id=row["user_id"],
            review_text=row["review_text"],
            message_id=row["message_id"],
            chat_id=row["chat_id"],
            username=row["username"],
            display_name=row["display_name"],
            reviewed_at=datetime.fromisoformat(row["reviewed_at"]),
        ),
    )
