# ABOUTME: Playback session for one open book: chapters, bookmarks, and progress recording.
# ABOUTME: Bridges a live transport (position, duration, rate, seek) onto catalog state.

import logging
from bisect import bisect_right
from datetime import datetime
from pathlib import Path
from typing import Protocol, runtime_checkable

from shelf.db.catalog import LibraryCatalog, clamp_position
from shelf.db.mapping import BookmarkRecord, BookRecord
from shelf.metadata.extractor import MetadataExtractor
from shelf.metadata.types import ChapterInfo

logger = logging.getLogger(__name__)

# Seconds into a chapter after which "previous" restarts the chapter
# instead of moving to the one before it. Players conventionally use 3;
# 4 keeps 604s into a chapter starting at 600s going back a chapter while
# 605s restarts it. Pass restart_threshold=3.0 for the conventional cutoff.
DEFAULT_RESTART_THRESHOLD = 4.0


class NoOpenBookError(RuntimeError):
    """Raised when a session operation needs an open book and there is none."""


@runtime_checkable
class Transport(Protocol):
    """The parts of an audio engine a session reads and drives."""

    @property
    def current_time(self) -> float: ...

    @property
    def duration(self) -> float: ...

    @property
    def rate(self) -> float: ...

    def seek(self, time: float) -> None: ...

    def set_rate(self, rate: float) -> None: ...


class ChapterSource(Protocol):
    def extract_chapters(self, path: Path) -> list[ChapterInfo]: ...


class ManualTransport:
    """In-memory transport whose position only moves when told to.

    Stands in for a real audio engine in the CLI and in tests.
    """

    def __init__(self, duration: float = 0.0, position: float = 0.0, rate: float = 1.0) -> None:
        self._duration = duration
        self._position = clamp_position(position, duration)
        self._rate = rate

    @property
    def current_time(self) -> float:
        return self._position

    @property
    def duration(self) -> float:
        return self._duration

    @property
    def rate(self) -> float:
        return self._rate

    def seek(self, time: float) -> None:
        self._position = clamp_position(time, self._duration)

    def set_rate(self, rate: float) -> None:
        if rate <= 0:
            raise ValueError(f"Playback rate must be positive, got {rate}")
        self._rate = rate


def chapter_index_at(chapters: list[ChapterInfo], time: float) -> int | None:
    """Index of the last chapter starting at or before time.

    Falls back to the first chapter when time precedes every start, and
    returns None when there are no chapters.
    """
    if not chapters:
        return None
    index = bisect_right([chapter.start_time for chapter in chapters], time) - 1
    return max(index, 0)


def format_rate(rate: float) -> str:
    """Speed label such as '1x', '1.5x' or '0.75x'."""
    return f"{rate:g}x"


class PlaybackSession:
    """Chapter-aware state for the one book currently open.

    While a book is open the session is the only writer of its
    playback_position and last_played_date. It holds no lock on the book;
    closing simply forgets it.
    """

    def __init__(
        self,
        catalog: LibraryCatalog,
        transport: Transport,
        extractor: ChapterSource | None = None,
        *,
        restart_threshold: float = DEFAULT_RESTART_THRESHOLD,
    ) -> None:
        self._catalog = catalog
        self._transport = transport
        self._extractor = extractor or MetadataExtractor()
        self._restart_threshold = restart_threshold
        self._book: BookRecord | None = None
        self.chapters: list[ChapterInfo] = []
        self.bookmarks: list[BookmarkRecord] = []

    @property
    def book(self) -> BookRecord | None:
        return self._book

    @property
    def is_open(self) -> bool:
        return self._book is not None

    @property
    def transport(self) -> Transport:
        return self._transport

    def _require_book(self) -> BookRecord:
        if self._book is None:
            raise NoOpenBookError("No book is open")
        return self._book

    def open(self, book: BookRecord) -> None:
        """Start a session on book: load chapters and bookmarks, seek to the resume point."""
        if book.id is None:
            raise ValueError(f"Book at {book.file_path} has not been stored")

        self._book = book
        self.chapters = self._extractor.extract_chapters(book.file_path) if book.has_chapters else []
        self._reload_bookmarks()
        self._transport.seek(book.playback_position)
        logger.debug(
            "Opened %s: %d chapter(s), %d bookmark(s)",
            book.display_title, len(self.chapters), len(self.bookmarks),
        )

    def close(self) -> None:
        self._book = None
        self.chapters = []
        self.bookmarks = []

    # --- Chapters ---

    def current_chapter(self, time: float | None = None) -> ChapterInfo | None:
        """The chapter playing at time (defaults to the live position)."""
        if time is None:
            time = self._transport.current_time
        index = chapter_index_at(self.chapters, time)
        return self.chapters[index] if index is not None else None

    @property
    def current_chapter_index(self) -> int | None:
        return chapter_index_at(self.chapters, self._transport.current_time)

    @property
    def current_chapter_name(self) -> str | None:
        chapter = self.current_chapter()
        return chapter.title if chapter else None

    def go_to_chapter(self, chapter: ChapterInfo) -> None:
        self._transport.seek(chapter.start_time)

    def next_chapter(self) -> ChapterInfo | None:
        """Jump to the following chapter. No-op on the last one."""
        index = self.current_chapter_index
        if index is None or index + 1 >= len(self.chapters):
            return None
        chapter = self.chapters[index + 1]
        self.go_to_chapter(chapter)
        return chapter

    def previous_chapter(self) -> ChapterInfo | None:
        """Restart the current chapter, or go back one if near its start.

        More than restart_threshold seconds into a chapter, this seeks to
        the chapter's own start; otherwise to the previous chapter's start.
        No-op on the first chapter when near its start.
        """
        time = self._transport.current_time
        index = chapter_index_at(self.chapters, time)
        if index is None:
            return None

        current = self.chapters[index]
        if time - current.start_time > self._restart_threshold:
            self.go_to_chapter(current)
            return current

        if index == 0:
            return None
        previous = self.chapters[index - 1]
        self.go_to_chapter(previous)
        return previous

    # --- Bookmarks ---

    def _reload_bookmarks(self) -> None:
        book = self._require_book()
        self.bookmarks = self._catalog.bookmarks_for(book.id)  # type: ignore[arg-type]

    def add_bookmark(self, name: str, note: str | None = None) -> BookmarkRecord:
        """Bookmark the live position and save immediately.

        Raises:
            ValueError: If name is blank. Nothing is written.
            NoOpenBookError: If no book is open.
        """
        book = self._require_book()
        if not name or not name.strip():
            raise ValueError("Bookmark name must not be empty")

        position = clamp_position(self._transport.current_time, book.duration)
        bookmark = self._catalog.add_bookmark(book.id, position, name, note or None)  # type: ignore[arg-type]
        self._catalog.save()
        self._reload_bookmarks()
        return bookmark

    def delete_bookmark(self, bookmark: BookmarkRecord) -> None:
        self._require_book()
        self._catalog.delete_bookmark(bookmark.id)
        self._catalog.save()
        self._reload_bookmarks()

    def jump_to_bookmark(self, bookmark: BookmarkRecord) -> None:
        self._transport.seek(bookmark.timestamp)

    # --- Progress ---

    def record_progress(self, time: float | None = None, *, now: datetime | None = None) -> BookRecord:
        """Persist the live (or given) position as the book's resume point."""
        book = self._require_book()
        if time is None:
            time = self._transport.current_time

        self._book = self._catalog.update_progress(book.id, time, played_at=now)  # type: ignore[arg-type]
        self._catalog.save()
        return self._book

    # --- Rate ---

    @property
    def speed_label(self) -> str:
        return format_rate(self._transport.rate)

    def set_speed(self, rate: float) -> None:
        self._transport.set_rate(rate)
