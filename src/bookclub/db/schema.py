# ABOUTME: SQL DDL statements for the bookclub catalog database.
# ABOUTME: Defines books and reviews tables, indexes, FTS5 virtual table, and sync triggers.

SCHEMA_V1 = """
-- Canonical books
CREATE TABLE books (
    id               INTEGER PRIMARY KEY AUTOINCREMENT,
    title            TEXT NOT NULL,
    author           TEXT,
    external_id      TEXT,
    isbn             TEXT,
    cover_url        TEXT,
    genres           TEXT,
    publication_year INTEGER,
    description      TEXT,
    page_count       INTEGER,
    date_added       TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%S', 'now')),
    date_modified    TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%S', 'now'))
);

CREATE UNIQUE INDEX idx_books_external_id ON books(external_id) WHERE external_id IS NOT NULL;
CREATE INDEX idx_books_isbn ON books(isbn) WHERE isbn IS NOT NULL;

-- Reviews, each attached to exactly one book
CREATE TABLE reviews (
    id           INTEGER PRIMARY KEY AUTOINCREMENT,
    book_id      INTEGER NOT NULL REFERENCES books(id) ON DELETE CASCADE,
    user_id      TEXT NOT NULL,
    username     TEXT,
    display_name TEXT,
    review_text  TEXT NOT NULL,
    message_id   TEXT NOT NULL,
    chat_id      TEXT,
    reviewed_at  TEXT NOT NULL
);

CREATE UNIQUE INDEX idx_reviews_user_message ON reviews(user_id, message_id);
CREATE INDEX idx_reviews_book ON reviews(book_id);

-- FTS5 virtual table for full-text search
CREATE VIRTUAL TABLE books_fts USING fts5(
    title, author, description,
    content='books',
    content_rowid='id'
);

-- Triggers to keep FTS in sync with the books table
CREATE TRIGGER books_ai AFTER INSERT ON books BEGIN
    INSERT INTO books_fts(rowid, title, author, description)
    VALUES (new.id, new.title, new.author, new.description);
END;

CREATE TRIGGER books_ad AFTER DELETE ON books BEGIN
    INSERT INTO books_fts(books_fts, rowid, title, author, description)
    VALUES ('delete', old.id, old.title, old.author, old.description);
END;

CREATE TRIGGER books_au AFTER UPDATE ON books BEGIN
    INSERT INTO books_fts(books_fts, rowid, title, author, description)
    VALUES ('delete', old.id, old.title, old.author, old.description);
    INSERT INTO books_fts(rowid, title, author, description)
    VALUES (new.id, new.title, new.author, new.description);
END;

-- Schema versioning for future migrations
CREATE TABLE schema_version (
    version    INTEGER NOT NULL,
    applied_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%S', 'now'))
);

INSERT INTO schema_version (version) VALUES (1);
"""
