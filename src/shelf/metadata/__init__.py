# ABOUTME: Metadata package for audiobook metadata extraction and representation.
# ABOUTME: Exports the core AudioMetadata and ChapterInfo dataclasses used throughout Shelf.

from shelf.metadata.types import AudioMetadata, ChapterInfo, normalize_chapters

__all__ = [
    "AudioMetadata",
    "ChapterInfo",
    "normalize_chapters",
]
