# ABOUTME: Public API for the bookclub catalog database layer.
# ABOUTME: Exports connection management, catalog operations, and data types.

from bookclub.db.catalog import (
    BookCatalog,
    DuplicateBookError,
    DuplicateReviewError,
    PersistenceError,
)
from bookclub.db.connection import DEFAULT_DB_PATH, open_catalog
from bookclub.db.mapping import CatalogEntry, PendingReview, ReviewRecord

__all__ = [
    "DEFAULT_DB_PATH",
    "BookCatalog",
    "CatalogEntry",
    "DuplicateBookError",
    "DuplicateReviewError",
    "PendingReview",
    "PersistenceError",
    "ReviewRecord",
    "open_catalog",
]
