# ABOUTME: SQL DDL statements for the Shelf library database schema.
# ABOUTME: Defines the books and bookmarks tables, their indexes, and sequential migrations.

SCHEMA_V1 = """
-- One row per cataloged audio file
CREATE TABLE books (
    id                INTEGER PRIMARY KEY AUTOINCREMENT,
    file_path         TEXT NOT NULL,
    title             TEXT,
    author            TEXT,
    genre             TEXT,
    year              INTEGER,
    duration          REAL NOT NULL DEFAULT 0,
    file_mod_date     TEXT,
    playback_position REAL NOT NULL DEFAULT 0 CHECK (playback_position >= 0),
    last_played_date  TEXT,
    is_completed      INTEGER NOT NULL DEFAULT 0,
    has_chapters      INTEGER NOT NULL DEFAULT 0,
    date_added        TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%S', 'now'))
);

CREATE UNIQUE INDEX idx_books_file_path ON books(file_path);
CREATE INDEX idx_books_author ON books(author) WHERE author IS NOT NULL;

-- User bookmarks, owned by a book
CREATE TABLE bookmarks (
    id           INTEGER PRIMARY KEY AUTOINCREMENT,
    book_id      INTEGER NOT NULL REFERENCES books(id) ON DELETE CASCADE,
    timestamp    REAL NOT NULL CHECK (timestamp >= 0),
    name         TEXT NOT NULL CHECK (name <> ''),
    note         TEXT,
    created_date TEXT NOT NULL
);

CREATE INDEX idx_bookmarks_book_id ON bookmarks(book_id, timestamp);

-- Schema versioning for future migrations
CREATE TABLE schema_version (
    version    INTEGER NOT NULL,
    applied_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%S', 'now'))
);

INSERT INTO schema_version (version) VALUES (1);
"""

MIGRATION_V2 = """
-- Process-wide settings: library folder designation and its access token
CREATE TABLE settings (
    key   TEXT PRIMARY KEY,
    value TEXT
);

INSERT INTO schema_version (version) VALUES (2);
"""

MIGRATIONS: list[tuple[int, str]] = [
    (2, MIGRATION_V2),
]
