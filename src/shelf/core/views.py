# ABOUTME: Read-side library views: filtering, sorting, smart collections, and sidebar groupings.
# ABOUTME: Pure functions over BookRecord lists; nothing here touches the database.

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum

from shelf.core.timefmt import ensure_utc, utc_now
from shelf.db.mapping import BookRecord

RECENTLY_ADDED_DAYS = 30
SHORT_BOOK_SECONDS = 4 * 3600
LONG_BOOK_SECONDS = 10 * 3600
NEARLY_FINISHED_PROGRESS = 0.85

_NEVER = datetime.min.replace(tzinfo=timezone.utc)


class SortOrder(str, Enum):
    TITLE = "title"
    AUTHOR = "author"
    YEAR = "year"
    DURATION = "duration"
    RECENTLY_PLAYED = "recently-played"
    PROGRESS = "progress"


class Status(str, Enum):
    ALL = "all"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


class SmartCollection(str, Enum):
    RECENTLY_ADDED = "recently-added"
    SHORT_BOOKS = "short-books"
    LONG_BOOKS = "long-books"
    NOT_STARTED = "not-started"
    NEARLY_FINISHED = "nearly-finished"

    @property
    def label(self) -> str:
        return self.value.replace("-", " ").title()

    def matches(self, book: BookRecord, now: datetime | None = None) -> bool:
        """Whether book belongs in this collection."""
        if self is SmartCollection.RECENTLY_ADDED:
            if book.file_mod_date is None:
                return False
            cutoff = (now or utc_now()) - timedelta(days=RECENTLY_ADDED_DAYS)
            return book.file_mod_date > ensure_utc(cutoff)
        if self is SmartCollection.SHORT_BOOKS:
            return 0 < book.duration < SHORT_BOOK_SECONDS
        if self is SmartCollection.LONG_BOOKS:
            return book.duration > LONG_BOOK_SECONDS
        if self is SmartCollection.NOT_STARTED:
            return book.playback_position == 0 and not book.is_completed
        # NEARLY_FINISHED
        return (
            book.duration > 0
            and not book.is_completed
            and book.progress > NEARLY_FINISHED_PROGRESS
        )


@dataclass
class BookFilter:
    """Criteria for narrowing the library. Unset fields match everything."""

    status: Status = Status.ALL
    collection: SmartCollection | None = None
    author: str | None = None
    genre: str | None = None
    year: int | None = None
    search: str | None = None

    def matches(self, book: BookRecord, now: datetime | None = None) -> bool:
        if self.status is Status.IN_PROGRESS and not book.is_in_progress:
            return False
        if self.status is Status.COMPLETED and not book.is_completed:
            return False
        if self.collection is not None and not self.collection.matches(book, now):
            return False
        if self.author is not None and book.author != self.author:
            return False
        if self.genre is not None and book.genre != self.genre:
            return False
        if self.year is not None and book.year != self.year:
            return False
        if self.search:
            query = self.search.lower()
            haystacks = (book.title, book.author, book.genre)
            if not any(text and query in text.lower() for text in haystacks):
                return False
        return True


def sort_books(books: list[BookRecord], order: SortOrder = SortOrder.TITLE) -> list[BookRecord]:
    """Return books in the given order. Year, recency and progress sort descending."""
    if order is SortOrder.TITLE:
        return sorted(books, key=lambda b: b.display_title.casefold())
    if order is SortOrder.AUTHOR:
        return sorted(books, key=lambda b: b.display_author.casefold())
    if order is SortOrder.YEAR:
        return sorted(books, key=lambda b: b.year or 0, reverse=True)
    if order is SortOrder.DURATION:
        return sorted(books, key=lambda b: b.duration)
    if order is SortOrder.RECENTLY_PLAYED:
        return sorted(books, key=lambda b: b.last_played_date or _NEVER, reverse=True)
    return sorted(books, key=lambda b: b.progress, reverse=True)


def filter_books(
    books: list[BookRecord],
    book_filter: BookFilter | None = None,
    order: SortOrder = SortOrder.TITLE,
    *,
    now: datetime | None = None,
) -> list[BookRecord]:
    """Apply a filter, then sort."""
    book_filter = book_filter or BookFilter()
    return sort_books([b for b in books if book_filter.matches(b, now)], order)


@dataclass
class LibraryGroups:
    """Distinct values for browsing by author, genre and year."""

    authors: list[str] = field(default_factory=list)
    genres: list[str] = field(default_factory=list)
    years: list[int] = field(default_factory=list)


def group_books(books: list[BookRecord]) -> LibraryGroups:
    """Collect sorted distinct authors and genres, and years newest first."""
    return LibraryGroups(
        authors=sorted({b.author for b in books if b.author}),
        genres=sorted({b.genre for b in books if b.genre}),
        years=sorted({b.year for b in books if b.year and b.year > 0}, reverse=True),
    )
