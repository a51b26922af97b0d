# ABOUTME: Repository operations for the Shelf library catalog: books, bookmarks, progress.
# ABOUTME: Mutations stay in the open transaction until save() commits them atomically.

import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime
from pathlib import Path

from shelf.core.timefmt import ensure_utc, format_iso, utc_now
from shelf.db.mapping import (
    BookmarkRecord,
    BookRecord,
    book_to_row,
    metadata_to_row,
    row_to_book,
    row_to_bookmark,
)


class CatalogCommitError(Exception):
    """Raised when pending catalog changes could not be committed."""


def clamp_position(position: float, duration: float) -> float:
    """Keep a playback position within [0, duration]; unbounded when duration is unknown."""
    position = max(0.0, float(position))
    if duration > 0:
        position = min(position, duration)
    return position


class LibraryCatalog:
    """Wraps a sqlite3 connection and provides typed access to books and bookmarks.

    Every mutating method runs inside the connection's current transaction.
    Nothing is durable, or visible to other connections, until save() is
    called; discard() throws pending changes away. One catalog instance is
    meant to be driven from a single thread.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    # --- Transactions ---

    @property
    def has_pending_changes(self) -> bool:
        return self._conn.in_transaction

    def save(self) -> None:
        """Commit all pending mutations as one unit.

        Raises:
            CatalogCommitError: If the commit fails. Pending changes are
                rolled back and the last committed state is left intact.
        """
        try:
            self._conn.commit()
        except sqlite3.Error as exc:
            self._conn.rollback()
            raise CatalogCommitError(f"Failed to save catalog changes: {exc}") from exc

    def discard(self) -> None:
        """Roll back every mutation made since the last save()."""
        self._conn.rollback()

    @contextmanager
    def transaction(self) -> Iterator["LibraryCatalog"]:
        """Save on normal exit, discard if the block raises."""
        try:
            yield self
        except BaseException:
            self.discard()
            raise
        self.save()

    # --- Books ---

    def find_all(self) -> list[BookRecord]:
        """Return all books in the catalog, ordered by file path."""
        cursor = self._conn.execute("SELECT * FROM books ORDER BY file_path")
        return [row_to_book(row) for row in cursor.fetchall()]

    def find_by_id(self, book_id: int) -> BookRecord | None:
        """Retrieve a book by its row ID."""
        cursor = self._conn.execute("SELECT * FROM books WHERE id = ?", (book_id,))
        row = cursor.fetchone()
        return row_to_book(row) if row else None

    def find_by_path(self, file_path: Path | str) -> BookRecord | None:
        """Retrieve a book by its absolute file path (exact match)."""
        cursor = self._conn.execute(
            "SELECT * FROM books WHERE file_path = ?", (str(file_path),)
        )
        row = cursor.fetchone()
        return row_to_book(row) if row else None

    def count(self) -> int:
        cursor = self._conn.execute("SELECT COUNT(*) FROM books")
        return cursor.fetchone()[0]

    def upsert(self, record: BookRecord) -> BookRecord:
        """Insert a book, or refresh the metadata of the book at the same path.

        For an existing path only the metadata columns change; id, progress,
        completion, date_added and bookmarks are preserved.

        Returns:
            The stored record, with its id.
        """
        existing = self.find_by_path(record.file_path)

        if existing is None:
            row = book_to_row(record)
            row["playback_position"] = clamp_position(
                row["playback_position"], record.duration
            )
            columns = ", ".join(row.keys())
            placeholders = ", ".join("?" for _ in row)
            cursor = self._conn.execute(
                f"INSERT INTO books ({columns}) VALUES ({placeholders})",
                list(row.values()),
            )
            return self.find_by_id(cursor.lastrowid)  # type: ignore[arg-type,return-value]

        fields = metadata_to_row(record)
        set_clause = ", ".join(f"{k} = ?" for k in fields)
        self._conn.execute(
            f"UPDATE books SET {set_clause} WHERE id = ?",
            [*fields.values(), existing.id],
        )
        return self.find_by_id(existing.id)  # type: ignore[arg-type,return-value]

    def delete(self, record: BookRecord) -> None:
        """Delete a book and, through the foreign key, all of its bookmarks.

        Raises:
            ValueError: If the record has no id or no longer exists.
        """
        if record.id is None:
            raise ValueError(f"Book at {record.file_path} has not been stored")

        cursor = self._conn.execute("DELETE FROM books WHERE id = ?", (record.id,))
        if cursor.rowcount == 0:
            raise ValueError(f"Book with id {record.id} not found")

    # --- Progress ---

    def _require_book(self, book_id: int) -> BookRecord:
        book = self.find_by_id(book_id)
        if book is None:
            raise ValueError(f"Book with id {book_id} not found")
        return book

    def update_progress(
        self,
        book_id: int,
        position: float,
        *,
        played_at: datetime | None = None,
    ) -> BookRecord:
        """Record a new playback position and stamp last_played_date.

        The position is clamped to the book's duration.

        Raises:
            ValueError: If the book_id does not exist.
        """
        book = self._require_book(book_id)
        position = clamp_position(position, book.duration)
        played_at = ensure_utc(played_at) if played_at else utc_now()

        self._conn.execute(
            "UPDATE books SET playback_position = ?, last_played_date = ? WHERE id = ?",
            (position, format_iso(played_at), book_id),
        )
        return replace(book, playback_position=position, last_played_date=played_at)

    def set_progress(
        self,
        book_id: int,
        *,
        playback_position: float,
        last_played_date: datetime | None,
        is_completed: bool,
    ) -> BookRecord:
        """Overwrite all progress fields of a book at once.

        Used by reset/complete actions and by backup import.

        Raises:
            ValueError: If the book_id does not exist.
        """
        book = self._require_book(book_id)
        position = clamp_position(playback_position, book.duration)
        if last_played_date is not None:
            last_played_date = ensure_utc(last_played_date)

        self._conn.execute(
            "UPDATE books SET playback_position = ?, last_played_date = ?, is_completed = ? "
            "WHERE id = ?",
            (
                position,
                format_iso(last_played_date) if last_played_date else None,
                int(is_completed),
                book_id,
            ),
        )
        return replace(
            book,
            playback_position=position,
            last_played_date=last_played_date,
            is_completed=is_completed,
        )

    # --- Bookmarks ---

    def bookmarks_for(self, book_id: int) -> list[BookmarkRecord]:
        """All bookmarks of a book, earliest position first."""
        cursor = self._conn.execute(
            "SELECT * FROM bookmarks WHERE book_id = ? ORDER BY timestamp, id",
            (book_id,),
        )
        return [row_to_bookmark(row) for row in cursor.fetchall()]

    def get_bookmark(self, bookmark_id: int) -> BookmarkRecord | None:
        cursor = self._conn.execute("SELECT * FROM bookmarks WHERE id = ?", (bookmark_id,))
        row = cursor.fetchone()
        return row_to_bookmark(row) if row else None

    def add_bookmark(
        self,
        book_id: int,
        timestamp: float,
        name: str,
        note: str | None = None,
        *,
        created_date: datetime | None = None,
    ) -> BookmarkRecord:
        """Create a bookmark on a book.

        created_date defaults to now; imports pass the original value through.

        Raises:
            ValueError: If the name is blank, the timestamp is negative, or
                the book does not exist.
        """
        if not name or not name.strip():
            raise ValueError("Bookmark name must not be empty")
        if timestamp < 0:
            raise ValueError(f"Bookmark timestamp must be >= 0, got {timestamp}")
        self._require_book(book_id)

        created_date = ensure_utc(created_date) if created_date else utc_now()
        cursor = self._conn.execute(
            "INSERT INTO bookmarks (book_id, timestamp, name, note, created_date) "
            "VALUES (?, ?, ?, ?, ?)",
            (book_id, float(timestamp), name, note, format_iso(created_date)),
        )
        return BookmarkRecord(
            id=cursor.lastrowid,  # type: ignore[arg-type]
            book_id=book_id,
            timestamp=float(timestamp),
            name=name,
            note=note,
            created_date=created_date,
        )

    def delete_bookmark(self, bookmark_id: int) -> None:
        """Delete a single bookmark.

        Raises:
            ValueError: If the bookmark_id does not exist.
        """
        cursor = self._conn.execute("DELETE FROM bookmarks WHERE id = ?", (bookmark_id,))
        if cursor.rowcount == 0:
            raise ValueError(f"Bookmark with id {bookmark_id} not found")
