# ABOUTME: Shared pytest fixtures for bookclub tests.
# ABOUTME: Isolates settings from the environment and provides in-memory catalogs and flows.

import logging
import sqlite3
from collections.abc import Iterator
from pathlib import Path

import pytest

from bookclub.config import get_settings
from bookclub.core.books import BookService
from bookclub.core.dedup import CatalogDeduplicator
from bookclub.db.catalog import BookCatalog
from bookclub.db.connection import open_catalog
from bookclub.db.mapping import PendingReview


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Point settings at temp paths and drop any real API keys."""
    monkeypatch.setenv("BOOKCLUB_DB_PATH", str(tmp_path / "catalog.db"))
    monkeypatch.setenv("BOOKCLUB_FAILURE_LOG_DIR", str(tmp_path / "failures"))
    monkeypatch.setenv("BOOKCLUB_DELAY_MS", "0")
    monkeypatch.setenv("BOOKCLUB_INITIAL_BACKOFF_MS", "0")
    monkeypatch.delenv("BOOKCLUB_OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("BOOKCLUB_GOOGLE_BOOKS_API_KEY", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
    logger = logging.getLogger("bookclub")
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def conn() -> Iterator[sqlite3.Connection]:
    """A fresh in-memory catalog database."""
    connection = open_catalog(Path(":memory:"))
    yield connection
    connection.close()


@pytest.fixture
def catalog(conn: sqlite3.Connection) -> BookCatalog:
    return BookCatalog(conn)


@pytest.fixture
def dedup(catalog: BookCatalog) -> CatalogDeduplicator:
    return CatalogDeduplicator(catalog)


@pytest.fixture
def books(catalog: BookCatalog, dedup: CatalogDeduplicator) -> BookService:
    return BookService(catalog, dedup)


@pytest.fixture
def review() -> PendingReview:
    """A review message from user u1."""
    return PendingReview(
        user_id="u1",
        review_text='"1984" by George Orwell. A chilling read.',
        message_id="m1",
        chat_id="c1",
        username="reader",
        display_name="Avid Reader",
    )
