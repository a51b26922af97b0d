# ABOUTME: Core metadata data structures for audiobook files.
# ABOUTME: AudioMetadata and ChapterInfo flow from extraction into the catalog and sessions.

from collections.abc import Iterable
from dataclasses import dataclass


@dataclass
class AudioMetadata:
    """Descriptive metadata for one audio file.

    Every field except title may be missing. When the file could not be
    parsed at all, the metadata is derived from the filename and
    is_fallback is set so callers can report the file as unreadable.
    """

    title: str
    author: str | None = None
    genre: str | None = None
    year: int | None = None
    duration: float = 0.0
    is_fallback: bool = False


@dataclass(frozen=True)
class ChapterInfo:
    """A chapter marker: display title and start offset in seconds."""

    title: str
    start_time: float


def normalize_chapters(raw: Iterable[tuple[str | None, float]]) -> list[ChapterInfo]:
    """Build a chapter list from (title, start_time) pairs in file order.

    Start times must be strictly increasing. Anything else (empty input,
    a repeated or backwards start, a negative offset) means the file's
    chapter data can't be trusted, and an empty list is returned.
    Missing titles become "Chapter N".
    """
    chapters: list[ChapterInfo] = []
    previous: float | None = None

    for index, (title, start) in enumerate(raw, start=1):
        start = float(start)
        if start < 0 or (previous is not None and start <= previous):
            return []
        label = title.strip() if title and title.strip() else f"Chapter {index}"
        chapters.append(ChapterInfo(title=label, start_time=start))
        previous = start

    return chapters
