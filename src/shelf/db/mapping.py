# ABOUTME: Book and bookmark record types and their conversion to and from SQLite rows.
# ABOUTME: Handles ISO-8601 date columns, integer booleans, and metadata-only column sets.

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any

from shelf.core.timefmt import format_duration, format_iso, format_scrubber_time, parse_iso
from shelf.metadata.types import AudioMetadata

# Columns owned by the scanner. Upserts on an existing path touch only these.
METADATA_COLUMNS: tuple[str, ...] = (
    "title",
    "author",
    "genre",
    "year",
    "duration",
    "file_mod_date",
    "has_chapters",
)


@dataclass
class BookRecord:
    """A cataloged audiobook: extracted metadata plus playback progress.

    id is None until the record has been stored.
    """

    file_path: Path
    title: str | None = None
    author: str | None = None
    genre: str | None = None
    year: int | None = None
    duration: float = 0.0
    file_mod_date: datetime | None = None
    playback_position: float = 0.0
    last_played_date: datetime | None = None
    is_completed: bool = False
    has_chapters: bool = False
    id: int | None = None
    date_added: str | None = None

    @property
    def display_title(self) -> str:
        """Title for display, falling back to the file name."""
        return self.title or self.file_path.stem

    @property
    def display_author(self) -> str:
        return self.author or "Unknown Author"

    @property
    def progress(self) -> float:
        """Fraction of the book listened to, 0.0 to 1.0."""
        if self.duration <= 0:
            return 0.0
        return min(1.0, max(0.0, self.playback_position / self.duration))

    @property
    def progress_percentage(self) -> str:
        return f"{int(self.progress * 100)}%"

    @property
    def is_in_progress(self) -> bool:
        """Started but not finished."""
        return self.playback_position > 0 and not self.is_completed

    @property
    def formatted_duration(self) -> str:
        return format_duration(self.duration)


@dataclass
class BookmarkRecord:
    """A named position inside a book."""

    id: int
    book_id: int
    timestamp: float
    name: str
    note: str | None
    created_date: datetime

    @property
    def formatted_timestamp(self) -> str:
        return format_scrubber_time(self.timestamp)

    @property
    def display_name(self) -> str:
        """Bookmark name, or 'Bookmark at <time>' when blank."""
        if self.name and self.name.strip():
            return self.name
        return f"Bookmark at {self.formatted_timestamp}"


def record_from_metadata(
    path: Path,
    metadata: AudioMetadata,
    *,
    file_mod_date: datetime | None,
    has_chapters: bool,
) -> BookRecord:
    """Build an unsaved BookRecord from freshly extracted metadata."""
    return BookRecord(
        file_path=path,
        title=metadata.title,
        author=metadata.author,
        genre=metadata.genre,
        year=metadata.year,
        duration=metadata.duration,
        file_mod_date=file_mod_date,
        has_chapters=has_chapters,
    )


def _date_to_column(value: datetime | None) -> str | None:
    return format_iso(value) if value is not None else None


def _column_to_date(value: str | None) -> datetime | None:
    return parse_iso(value) if value else None


def metadata_to_row(record: BookRecord) -> dict[str, Any]:
    """The scanner-owned columns of a record, ready for INSERT or UPDATE."""
    return {
        "title": record.title,
        "author": record.author,
        "genre": record.genre,
        "year": record.year,
        "duration": record.duration,
        "file_mod_date": _date_to_column(record.file_mod_date),
        "has_chapters": int(record.has_chapters),
    }


def book_to_row(record: BookRecord) -> dict[str, Any]:
    """Convert a BookRecord to a dict suitable for INSERT (excluding id)."""
    return {
        "file_path": str(record.file_path),
        **metadata_to_row(record),
        "playback_position": record.playback_position,
        "last_played_date": _date_to_column(record.last_played_date),
        "is_completed": int(record.is_completed),
    }


def row_to_book(row: Any) -> BookRecord:
    """Convert a full books row to a BookRecord."""
    return BookRecord(
        id=row["id"],
        file_path=Path(row["file_path"]),
        title=row["title"],
        author=row["author"],
        genre=row["genre"],
        year=row["year"],
        duration=row["duration"] or 0.0,
        file_mod_date=_column_to_date(row["file_mod_date"]),
        playback_position=row["playback_position"],
        last_played_date=_column_to_date(row["last_played_date"]),
        is_completed=bool(row["is_completed"]),
        has_chapters=bool(row["has_chapters"]),
        date_added=row["date_added"],
    )


def row_to_bookmark(row: Any) -> BookmarkRecord:
    """Convert a bookmarks row to a BookmarkRecord."""
    return BookmarkRecord(
        id=row["id"],
        book_id=row["book_id"],
        timestamp=row["timestamp"],
        name=row["name"],
        note=row["note"],
        created_date=parse_iso(row["created_date"]),
    )
