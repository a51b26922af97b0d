# ABOUTME: Opens the Shelf SQLite catalog and brings its schema up to date.
# ABOUTME: Fresh files get SCHEMA_V1 and every migration; older files get only the missing migrations.

import logging
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from shelf.db.schema import MIGRATIONS, SCHEMA_V1

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = Path.home() / ".shelf" / "library.db"


def _get_schema_version(conn: sqlite3.Connection) -> int:
    """Return the highest applied schema version, or 0 for an empty database."""
    has_table = conn.execute(
        "SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = 'schema_version'"
    ).fetchone()
    if has_table is None:
        return 0
    row = conn.execute("SELECT MAX(version) FROM schema_version").fetchone()
    return row[0] or 0


def _apply_migrations(conn: sqlite3.Connection) -> None:
    """Run every migration newer than the database's recorded version."""
    current = _get_schema_version(conn)
    if current == 0:
        conn.executescript(SCHEMA_V1)
        current = 1

    pending = [(version, sql) for version, sql in MIGRATIONS if version > current]
    for version, sql in pending:
        logger.info("Migrating library schema %d -> %d", current, version)
        conn.executescript(sql)
        current = version


def _configure(conn: sqlite3.Connection) -> None:
    # WAL keeps other connections on the last committed state during a
    # pending scan or import; foreign keys make book deletes cascade.
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA foreign_keys=ON")


def open_library(path: Path | None = None) -> sqlite3.Connection:
    """Open or create the Shelf library database.

    Args:
        path: Database file; parent directories are created as needed.
            Defaults to DEFAULT_DB_PATH.

    Returns:
        A connection with sqlite3.Row rows and an up-to-date schema.
    """
    db_path = path or DEFAULT_DB_PATH
    db_path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(str(db_path))
    _configure(conn)
    _apply_migrations(conn)
    return conn


@contextmanager
def library_connection(path: Path | None = None) -> Iterator[sqlite3.Connection]:
    """Open the library database and close it on every exit path."""
    conn = open_library(path)
    try:
        yield conn
    finally:
        conn.close()
