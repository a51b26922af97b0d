# ABOUTME: Library scanner that mirrors the audiobook folder into the catalog.
# ABOUTME: Walks the folder, extracts metadata in a worker pool, and reconciles in one commit.

from __future__ import annotations

import logging
import os
import threading
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from shelf.core.timefmt import from_timestamp
from shelf.db.mapping import record_from_metadata
from shelf.metadata.extractor import MetadataExtractor, fallback_metadata
from shelf.metadata.types import AudioMetadata, ChapterInfo

if TYPE_CHECKING:
    from shelf.db.catalog import LibraryCatalog

logger = logging.getLogger(__name__)

AUDIO_EXTENSIONS: frozenset[str] = frozenset({".m4b", ".m4a", ".mp3"})

DEFAULT_MAX_WORKERS = 4

# Called with (files_done, files_total) as extraction finishes
ProgressFn = Callable[[int, int], None]


class FolderAccessError(Exception):
    """Raised when the library folder itself cannot be listed."""


class ScanCancelledError(Exception):
    """Raised when a scan is cancelled before its changes were committed."""


class Extractor(Protocol):
    """What the scanner needs from a metadata extractor. Must not raise."""

    def extract(self, path: Path) -> AudioMetadata: ...

    def extract_chapters(self, path: Path) -> list[ChapterInfo]: ...


@dataclass
class ScanResult:
    """Counts of catalog changes made by one scan."""

    added: int = 0
    updated: int = 0
    removed: int = 0
    unreadable: int = 0

    @property
    def has_changes(self) -> bool:
        return bool(self.added or self.updated or self.removed)

    @property
    def summary(self) -> str:
        """One-line human-readable description of the scan."""
        text = f"{self.added} added, {self.updated} updated, {self.removed} removed"
        if self.unreadable:
            text += f" ({self.unreadable} unreadable)"
        return text

    def as_dict(self) -> dict[str, int]:
        return {"added": self.added, "updated": self.updated, "removed": self.removed}


@dataclass
class _Extraction:
    metadata: AudioMetadata
    has_chapters: bool


def is_audio_file(name: str) -> bool:
    """Supported audio extension, ignoring dot-files such as '._' resource forks."""
    return not name.startswith(".") and Path(name).suffix.lower() in AUDIO_EXTENSIONS


def list_audio_files(folder: Path) -> dict[Path, datetime]:
    """Map every audio file under folder to its modification time.

    The walk is recursive but does not follow symlinked directories and
    skips hidden directories. Paths are absolute and compared exactly, so a
    file whose name changes case or Unicode normalization counts as a
    different file.

    Raises:
        FolderAccessError: If folder is missing or cannot be listed.
    """
    root = Path(os.path.abspath(folder))
    if not root.is_dir():
        raise FolderAccessError(f"Library folder not found: {root}")
    try:
        with os.scandir(root):
            pass
    except OSError as exc:
        raise FolderAccessError(f"Cannot read library folder: {root}: {exc}") from exc

    def _on_walk_error(exc: OSError) -> None:
        logger.warning("Skipping unreadable directory %s: %s", exc.filename, exc)

    found: dict[Path, datetime] = {}
    for dirpath, dirnames, filenames in os.walk(root, onerror=_on_walk_error):
        dirnames[:] = [name for name in dirnames if not name.startswith(".")]
        for name in filenames:
            if not is_audio_file(name):
                continue
            path = Path(dirpath) / name
            try:
                str(path).encode("utf-8")
            except UnicodeEncodeError:
                logger.warning("Skipping %s: file name is not valid UTF-8", os.fsencode(path))
                continue
            try:
                found[path] = from_timestamp(path.stat().st_mtime)
            except OSError as exc:
                logger.warning("Skipping %s: %s", path, exc)

    return found


def _extract_one(extractor: Extractor, path: Path) -> _Extraction:
    try:
        metadata = extractor.extract(path)
        chapters = extractor.extract_chapters(path)
    except Exception:
        logger.exception("Extractor failed on %s", path)
        return _Extraction(metadata=fallback_metadata(path), has_chapters=False)
    return _Extraction(metadata=metadata, has_chapters=bool(chapters))


def _check_cancelled(cancel_event: threading.Event | None) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise ScanCancelledError("Scan cancelled")


def _extract_all(
    paths: list[Path],
    extractor: Extractor,
    *,
    max_workers: int,
    cancel_event: threading.Event | None,
    on_progress: ProgressFn | None,
) -> dict[Path, _Extraction]:
    """Extract metadata for paths in a bounded pool and join all results."""
    results: dict[Path, _Extraction] = {}
    if not paths:
        return results

    total = len(paths)
    with ThreadPoolExecutor(
        max_workers=max(1, max_workers), thread_name_prefix="shelf-extract"
    ) as executor:
        futures = {executor.submit(_extract_one, extractor, path): path for path in paths}
        try:
            for done, future in enumerate(as_completed(futures), start=1):
                _check_cancelled(cancel_event)
                results[futures[future]] = future.result()
                if on_progress is not None:
                    on_progress(done, total)
        except BaseException:
            for future in futures:
                future.cancel()
            raise

    return results


def _is_newer(observed: datetime, stored: datetime | None) -> bool:
    return stored is None or observed > stored


def scan_library(
    folder: Path,
    catalog: LibraryCatalog,
    extractor: Extractor | None = None,
    *,
    max_workers: int = DEFAULT_MAX_WORKERS,
    cancel_event: threading.Event | None = None,
    on_progress: ProgressFn | None = None,
) -> ScanResult:
    """Reconcile the catalog with the audio files currently in folder.

    1. New files are extracted and added with zero progress.
    2. Known files whose mtime is newer than the stored one get their
       metadata refreshed; progress and bookmarks are left alone.
    3. Cataloged files no longer on disk are deleted with their bookmarks.

    The on-disk listing and the catalog are each read once up front.
    Extraction runs in a pool of max_workers threads; every catalog
    mutation then happens on the calling thread and is committed with a
    single save(), so other readers never see a half-applied scan.

    Args:
        folder: The library folder to mirror.
        catalog: Catalog to reconcile; must have no unsaved changes.
        extractor: Metadata source. Defaults to MetadataExtractor().
        max_workers: Size of the extraction pool.
        cancel_event: When set, the scan stops and nothing is committed.
        on_progress: Optional (done, total) callback during extraction.

    Returns:
        A ScanResult with the added/updated/removed counts.

    Raises:
        FolderAccessError: If the folder can't be listed. Nothing is changed.
        ScanCancelledError: If cancel_event was set. Nothing is changed.
        CatalogCommitError: If the final commit fails. Nothing is changed.
    """
    extractor = extractor or MetadataExtractor()

    on_disk = list_audio_files(folder)
    cataloged = {book.file_path: book for book in catalog.find_all()}

    new_paths = sorted(path for path in on_disk if path not in cataloged)
    changed_paths = sorted(
        path
        for path, mtime in on_disk.items()
        if path in cataloged and _is_newer(mtime, cataloged[path].file_mod_date)
    )
    vanished = [book for path, book in sorted(cataloged.items()) if path not in on_disk]

    logger.debug(
        "Scan of %s: %d file(s) on disk, %d new, %d changed, %d vanished",
        folder, len(on_disk), len(new_paths), len(changed_paths), len(vanished),
    )

    extractions = _extract_all(
        new_paths + changed_paths,
        extractor,
        max_workers=max_workers,
        cancel_event=cancel_event,
        on_progress=on_progress,
    )

    result = ScanResult(
        unreadable=sum(1 for item in extractions.values() if item.metadata.is_fallback),
    )

    try:
        for path in new_paths:
            item = extractions[path]
            catalog.upsert(record_from_metadata(
                path, item.metadata, file_mod_date=on_disk[path], has_chapters=item.has_chapters,
            ))
            result.added += 1

        for path in changed_paths:
            item = extractions[path]
            catalog.upsert(record_from_metadata(
                path, item.metadata, file_mod_date=on_disk[path], has_chapters=item.has_chapters,
            ))
            result.updated += 1

        # TODO: offer a soft "missing" state so a temporarily unmounted folder doesn't drop bookmarks
        for book in vanished:
            catalog.delete(book)
            result.removed += 1

        _check_cancelled(cancel_event)
    except BaseException:
        catalog.discard()
        raise

    catalog.save()
    logger.info("Library scan of %s: %s", folder, result.summary)
    return result
