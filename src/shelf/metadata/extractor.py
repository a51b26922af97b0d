# ABOUTME: Failure-tolerant metadata and chapter extraction for library scanning.
# ABOUTME: Wraps the audio readers so a bad file degrades to filename metadata instead of raising.

import logging
from pathlib import Path

from shelf.formats.audio import AudioReadError, read_audio_chapters, read_audio_metadata
from shelf.metadata.types import AudioMetadata, ChapterInfo

logger = logging.getLogger(__name__)


def fallback_metadata(path: Path) -> AudioMetadata:
    """Minimal metadata for a file whose contents couldn't be parsed."""
    return AudioMetadata(title=path.stem, is_fallback=True)


class MetadataExtractor:
    """Reads metadata and chapters from audio files without ever raising.

    Holds no state, so one instance can be shared by concurrent scan workers.
    """

    def extract(self, path: Path) -> AudioMetadata:
        """Return the file's metadata, or filename-derived metadata on failure."""
        try:
            return read_audio_metadata(path)
        except AudioReadError as exc:
            logger.warning("Using filename metadata for %s: %s", path.name, exc)
            return fallback_metadata(path)

    def extract_chapters(self, path: Path) -> list[ChapterInfo]:
        """Return the file's chapter list, or an empty list on failure."""
        try:
            return read_audio_chapters(path)
        except AudioReadError as exc:
            logger.debug("No chapters for %s: %s", path.name, exc)
            return []
