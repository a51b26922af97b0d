# ABOUTME: Shared pytest fixtures for Shelf tests.
# ABOUTME: Provides tagged MP3 files with chapters, corrupt files, library trees, and temp catalogs.

from collections.abc import Callable, Iterator
from pathlib import Path

import pytest
from mutagen.id3 import CHAP, ID3, TCON, TDRC, TIT2, TPE1

from shelf.db.catalog import LibraryCatalog
from shelf.db.connection import open_library
from shelf.metadata.extractor import fallback_metadata
from shelf.metadata.types import AudioMetadata, ChapterInfo

# (title, start seconds) for the standard three-chapter sample
SAMPLE_CHAPTERS = [("Opening", 0.0), ("The Road", 600.0), ("Arrival", 1200.0)]

WriteMp3 = Callable[..., Path]


def _write_mp3(
    path: Path,
    *,
    title: str | None = None,
    author: str | None = None,
    genre: str | None = None,
    year: str | None = None,
    chapters: list[tuple[str | None, float]] | None = None,
) -> Path:
    """Write an ID3-tagged file. It has no MPEG frames, so its duration reads as 0."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"")

    tags = ID3()
    if title is not None:
        tags.add(TIT2(encoding=3, text=[title]))
    if author is not None:
        tags.add(TPE1(encoding=3, text=[author]))
    if genre is not None:
        tags.add(TCON(encoding=3, text=[genre]))
    if year is not None:
        tags.add(TDRC(encoding=3, text=[year]))

    for index, (chapter_title, start) in enumerate(chapters or []):
        sub_frames = [TIT2(encoding=3, text=[chapter_title])] if chapter_title else []
        tags.add(CHAP(
            element_id=f"ch{index}",
            start_time=int(start * 1000),
            end_time=int(start * 1000) + 1000,
            start_offset=0xFFFFFFFF,
            end_offset=0xFFFFFFFF,
            sub_frames=sub_frames,
        ))

    tags.save(str(path))
    return path


@pytest.fixture
def write_mp3() -> WriteMp3:
    """Factory that writes an ID3-tagged .mp3 at the given path."""
    return _write_mp3


@pytest.fixture
def sample_mp3(tmp_path: Path) -> Path:
    """A tagged MP3 with three chapters."""
    return _write_mp3(
        tmp_path / "the_long_road.mp3",
        title="The Long Road",
        author="Ada Lovelace",
        genre="Fiction",
        year="2004",
        chapters=SAMPLE_CHAPTERS,
    )


@pytest.fixture
def corrupt_mp3(tmp_path: Path) -> Path:
    """A file with an audio extension that holds no audio at all."""
    filepath = tmp_path / "corrupt.mp3"
    filepath.write_text("this is not an audio file")
    return filepath


@pytest.fixture
def library_tree(tmp_path: Path) -> Path:
    """A library folder with nested audiobooks and files the scanner must ignore.

    Layout:
        Audiobooks/
            first.mp3
            Series/
                second.mp3
                third.m4b      (empty file, unreadable)
            notes.txt
            .hidden.mp3
            .cache/
                cached.mp3
    """
    root = tmp_path / "Audiobooks"
    _write_mp3(root / "first.mp3", title="First Book", author="Ann Author")
    _write_mp3(
        root / "Series" / "second.mp3",
        title="Second Book",
        author="Ann Author",
        chapters=SAMPLE_CHAPTERS,
    )
    (root / "Series" / "third.m4b").write_bytes(b"")
    (root / "notes.txt").write_text("not audio")
    _write_mp3(root / ".hidden.mp3", title="Hidden")
    _write_mp3(root / ".cache" / "cached.mp3", title="Cached")
    return root


@pytest.fixture
def catalog(tmp_path: Path) -> Iterator[LibraryCatalog]:
    """A LibraryCatalog backed by a temporary database."""
    conn = open_library(tmp_path / "test.db")
    yield LibraryCatalog(conn)
    conn.close()


class StubExtractor:
    """Extractor that derives metadata from file names without reading them.

    Files whose name starts with 'bad' come back as unreadable fallbacks.
    Chapters are served from the chapters mapping, keyed by file name.
    """

    def __init__(
        self,
        duration: float = 3600.0,
        chapters: dict[str, list[ChapterInfo]] | None = None,
    ) -> None:
        self.duration = duration
        self.chapters = chapters or {}
        self.extracted: list[Path] = []

    def extract(self, path: Path) -> AudioMetadata:
        self.extracted.append(path)
        if path.name.startswith("bad"):
            return fallback_metadata(path)
        return AudioMetadata(
            title=path.stem.replace("_", " ").title(),
            author="Stub Author",
            genre="Fiction",
            year=2001,
            duration=self.duration,
        )

    def extract_chapters(self, path: Path) -> list[ChapterInfo]:
        return list(self.chapters.get(path.name, []))


@pytest.fixture
def stub_extractor() -> StubExtractor:
    return StubExtractor()


@pytest.fixture
def make_extractor() -> type[StubExtractor]:
    """The StubExtractor class, for tests that need custom durations or chapters."""
    return StubExtractor
