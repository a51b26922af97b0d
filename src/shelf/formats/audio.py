# ABOUTME: Audio tag, duration, and chapter extraction using mutagen.
# ABOUTME: Covers ID3 (MP3), MP4 atoms (M4B/M4A), and mutagen easy tags for anything else.

import logging
import re
from pathlib import Path
from typing import Any

import mutagen
from mutagen import MutagenError
from mutagen.id3 import ID3, ID3NoHeaderError
from mutagen.mp3 import MP3
from mutagen.mp4 import MP4

from shelf.metadata.types import AudioMetadata, ChapterInfo, normalize_chapters

logger = logging.getLogger(__name__)

_MP4_SUFFIXES = frozenset({".m4b", ".m4a", ".mp4", ".aac"})

_YEAR_RE = re.compile(r"\d{4}")


class AudioReadError(Exception):
    """Raised when an audio file cannot be read or parsed."""


def _parse_year(value: Any) -> int | None:
    """Pull a four-digit year out of a date tag like '2004' or '2004-05-01T00:00'."""
    if value is None:
        return None
    match = _YEAR_RE.search(str(value))
    return int(match.group()) if match else None


def _first_text(tags: Any, *keys: str) -> str | None:
    """Return the first non-blank value among the given list-valued tag keys."""
    if not tags:
        return None
    for key in keys:
        values = tags.get(key)
        if not values:
            continue
        value = str(values[0]).strip()
        if value:
            return value
    return None


# --- MP3 / ID3 ---


def _id3_text(tags: ID3, *frame_ids: str) -> str | None:
    """Return the first non-blank text of the given ID3 frames."""
    for frame_id in frame_ids:
        frame = tags.get(frame_id)
        if frame is None or not frame.text:
            continue
        value = str(frame.text[0]).strip()
        if value:
            return value
    return None


def _load_id3(path: Path) -> ID3 | None:
    """Load the ID3 tag of a file, or None if it carries no tag."""
    try:
        return ID3(str(path))
    except ID3NoHeaderError:
        return None
    except (OSError, MutagenError) as exc:
        raise AudioReadError(f"Failed to read ID3 tags: {path}: {exc}") from exc


def _mp3_duration(path: Path) -> float | None:
    """Stream length in seconds, or None when no MPEG frames can be found."""
    try:
        return float(MP3(str(path)).info.length)
    except (OSError, MutagenError) as exc:
        logger.debug("No MPEG stream info for %s: %s", path, exc)
        return None


def _read_mp3(path: Path) -> AudioMetadata:
    tags = _load_id3(path)
    duration = _mp3_duration(path)
    if tags is None and duration is None:
        raise AudioReadError(f"Not a readable MP3 file: {path}")

    if tags is None:
        return AudioMetadata(title=path.stem, duration=duration or 0.0)

    genre = None
    tcon = tags.get("TCON")
    if tcon is not None and tcon.genres:
        genre = tcon.genres[0]

    return AudioMetadata(
        title=_id3_text(tags, "TIT2", "TALB") or path.stem,
        author=_id3_text(tags, "TPE1", "TPE2", "TCOM"),
        genre=genre,
        year=_parse_year(_id3_text(tags, "TDRC", "TYER", "TDOR")),
        duration=duration or 0.0,
    )


def _mp3_chapters(path: Path) -> list[ChapterInfo]:
    tags = _load_id3(path)
    if tags is None:
        return []

    # CHAP frames carry no inherent order in the tag; start_time is in milliseconds
    frames = sorted(tags.getall("CHAP"), key=lambda chap: chap.start_time)
    raw = []
    for chap in frames:
        title_frame = chap.sub_frames.get("TIT2")
        title = str(title_frame.text[0]) if title_frame is not None and title_frame.text else None
        raw.append((title, chap.start_time / 1000.0))
    return normalize_chapters(raw)


# --- MP4 / M4B ---


def _load_mp4(path: Path) -> MP4:
    try:
        return MP4(str(path))
    except (OSError, MutagenError) as exc:
        raise AudioReadError(f"Failed to read MP4 file: {path}: {exc}") from exc


def _read_mp4(path: Path) -> AudioMetadata:
    audio = _load_mp4(path)
    tags = audio.tags
    return AudioMetadata(
        title=_first_text(tags, "\xa9nam", "\xa9alb") or path.stem,
        author=_first_text(tags, "\xa9ART", "aART", "\xa9wrt"),
        genre=_first_text(tags, "\xa9gen"),
        year=_parse_year(_first_text(tags, "\xa9day")),
        duration=float(audio.info.length or 0.0),
    )


def _mp4_chapters(path: Path) -> list[ChapterInfo]:
    audio = _load_mp4(path)
    chapters = getattr(audio, "chapters", None)
    if not chapters:
        return []
    return normalize_chapters((chapter.title, chapter.start) for chapter in chapters)


# --- Anything else mutagen understands ---


def _load_generic(path: Path) -> Any:
    try:
        audio = mutagen.File(str(path), easy=True)
    except (OSError, MutagenError) as exc:
        raise AudioReadError(f"Failed to read audio file: {path}: {exc}") from exc
    if audio is None:
        raise AudioReadError(f"Unsupported audio format: {path}")
    return audio


def _read_generic(path: Path) -> AudioMetadata:
    audio = _load_generic(path)
    tags = audio.tags
    info = getattr(audio, "info", None)
    return AudioMetadata(
        title=_first_text(tags, "title", "album") or path.stem,
        author=_first_text(tags, "artist", "albumartist", "composer"),
        genre=_first_text(tags, "genre"),
        year=_parse_year(_first_text(tags, "date", "originaldate")),
        duration=float(getattr(info, "length", 0.0) or 0.0),
    )


def read_audio_metadata(path: Path) -> AudioMetadata:
    """Extract descriptive metadata from an audio file.

    Title falls back to the album tag and then to the file stem, so a file
    with readable audio but no tags still gets a usable title.

    Args:
        path: Path to the audio file.

    Returns:
        AudioMetadata populated with the extracted fields.

    Raises:
        AudioReadError: If the file cannot be read or parsed.
    """
    if not path.is_file():
        raise AudioReadError(f"File not found: {path}")

    suffix = path.suffix.lower()
    if suffix == ".mp3":
        return _read_mp3(path)
    if suffix in _MP4_SUFFIXES:
        return _read_mp4(path)
    return _read_generic(path)


def read_audio_chapters(path: Path) -> list[ChapterInfo]:
    """Extract the ordered chapter list of an audio file.

    Reads ID3 CHAP frames for MP3 and the Nero/QuickTime chapter list for
    MP4 containers. Formats without chapter support yield an empty list.

    Raises:
        AudioReadError: If the file cannot be read or parsed.
    """
    if not path.is_file():
        raise AudioReadError(f"File not found: {path}")

    suffix = path.suffix.lower()
    if suffix == ".mp3":
        return _mp3_chapters(path)
    if suffix in _MP4_SUFFIXES:
        return _mp4_chapters(path)
    _load_generic(path)
    return []
