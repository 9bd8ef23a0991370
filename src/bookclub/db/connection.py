# ABOUTME: SQLite connection management for the bookclub catalog.
# ABOUTME: Opens or creates the database, applies the schema, and configures the connection.

import sqlite3
from pathlib import Path

from bookclub.db.schema import SCHEMA_V1

DEFAULT_DB_PATH = Path.home() / ".bookclub" / "catalog.db"


def _schema_exists(conn: sqlite3.Connection) -> bool:
    """Check if the schema has already been applied."""
    cursor = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' AND name='schema_version'"
    )
    return cursor.fetchone() is not None


def open_catalog(path: Path | None = None) -> sqlite3.Connection:
    """Open or create the catalog database.

    Creates the file and parent directories when missing, applies the schema
    on first use, and sets WAL mode, foreign keys, and the sqlite3.Row factory.

    Args:
        path: Path to the database file. Defaults to ~/.bookclub/catalog.db.
            ``":memory:"`` is passed through for throwaway catalogs.
    """
    db_path = path or DEFAULT_DB_PATH
    if str(db_path) != ":memory:":
        db_path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(str(db_path))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA foreign_keys=ON")

    if not _schema_exists(conn):
        conn.executescript(SCHEMA_V1)

    return conn
