# ABOUTME: Unit tests for the mutagen-backed audio tag and chapter reader.
# ABOUTME: Covers ID3 tag mapping, CHAP frame chapters, fallbacks, and unreadable files.

from pathlib import Path

import pytest

from shelf.formats.audio import AudioReadError, read_audio_chapters, read_audio_metadata


class TestReadAudioMetadata:
    """Tests for read_audio_metadata."""

    def test_reads_title_author_genre_year(self, sample_mp3: Path) -> None:
        meta = read_audio_metadata(sample_mp3)
        assert meta.title == "The Long Road"
        assert meta.author == "Ada Lovelace"
        assert meta.genre == "Fiction"
        assert meta.year == 2004

    def test_tag_only_file_has_zero_duration(self, sample_mp3: Path) -> None:
        """A file with tags but no MPEG frames still reads, with duration 0."""
        meta = read_audio_metadata(sample_mp3)
        assert meta.duration == 0.0
        assert meta.is_fallback is False

    def test_title_falls_back_to_file_stem(self, tmp_path: Path, write_mp3) -> None:
        path = write_mp3(tmp_path / "untitled_book.mp3", author="Someone")
        meta = read_audio_metadata(path)
        assert meta.title == "untitled_book"
        assert meta.author == "Someone"

    def test_missing_fields_are_none(self, tmp_path: Path, write_mp3) -> None:
        path = write_mp3(tmp_path / "sparse.mp3", title="Sparse")
        meta = read_audio_metadata(path)
        assert meta.author is None
        assert meta.genre is None
        assert meta.year is None

    def test_year_parsed_from_full_date(self, tmp_path: Path, write_mp3) -> None:
        path = write_mp3(tmp_path / "dated.mp3", title="Dated", year="1999-05-01")
        assert read_audio_metadata(path).year == 1999

    def test_corrupt_file_raises(self, corrupt_mp3: Path) -> None:
        with pytest.raises(AudioReadError):
            read_audio_metadata(corrupt_mp3)

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(AudioReadError, match="not found"):
            read_audio_metadata(tmp_path / "nope.mp3")

    def test_empty_m4b_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.m4b"
        path.write_bytes(b"")
        with pytest.raises(AudioReadError):
            read_audio_metadata(path)

    def test_unknown_format_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "mystery.xyz"
        path.write_bytes(b"\x00\x01\x02\x03")
        with pytest.raises(AudioReadError):
            read_audio_metadata(path)


class TestReadAudioChapters:
    """Tests for read_audio_chapters."""

    def test_reads_chap_frames_in_order(self, sample_mp3: Path) -> None:
        chapters = read_audio_chapters(sample_mp3)
        assert [c.title for c in chapters] == ["Opening", "The Road", "Arrival"]
        assert [c.start_time for c in chapters] == [0.0, 600.0, 1200.0]

    def test_frames_written_out_of_order_are_sorted(self, tmp_path: Path, write_mp3) -> None:
        path = write_mp3(
            tmp_path / "shuffled.mp3",
            title="Shuffled",
            chapters=[("Second", 300.0), ("First", 0.0)],
        )
        chapters = read_audio_chapters(path)
        assert [c.title for c in chapters] == ["First", "Second"]

    def test_untitled_chapter_gets_numbered_name(self, tmp_path: Path, write_mp3) -> None:
        path = write_mp3(
            tmp_path / "untitled.mp3",
            title="Untitled",
            chapters=[("Intro", 0.0), (None, 90.0)],
        )
        chapters = read_audio_chapters(path)
        assert chapters[1].title == "Chapter 2"

    def test_no_chapters_returns_empty(self, tmp_path: Path, write_mp3) -> None:
        path = write_mp3(tmp_path / "plain.mp3", title="Plain")
        assert read_audio_chapters(path) == []

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(AudioReadError):
            read_audio_chapters(tmp_path / "nope.mp3")
