# ABOUTME: Export and import of playback progress and bookmarks as a portable JSON document.
# ABOUTME: Import merges into the catalog by file path without duplicating bookmarks.

import json
import logging
import math
import threading
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

from shelf.core.timefmt import format_iso, parse_iso, utc_now
from shelf.db.catalog import LibraryCatalog

logger = logging.getLogger(__name__)

BACKUP_VERSION = "1.0"


class BackupFormatError(Exception):
    """Raised when a backup document cannot be parsed at all."""


class ImportCancelledError(Exception):
    """Raised when an import is cancelled before its changes were committed."""


@dataclass
class ImportResult:
    """Summary of an import operation."""

    books_updated: int = 0
    bookmarks_created: int = 0
    books_not_found: int = 0
    entries_skipped: int = 0
    bookmarks_skipped: int = 0
    skip_details: list[str] = field(default_factory=list)

    @property
    def summary(self) -> str:
        lines = [f"Updated {self.books_updated} book(s)."]
        if self.bookmarks_created:
            lines.append(f"Imported {self.bookmarks_created} bookmark(s).")
        if self.books_not_found:
            lines.append(f"Skipped {self.books_not_found} book(s) not in library.")
        if self.entries_skipped or self.bookmarks_skipped:
            lines.append(
                f"Ignored {self.entries_skipped} malformed book entry(s) and "
                f"{self.bookmarks_skipped} malformed bookmark(s)."
            )
        return "\n".join(lines)


@dataclass
class _BookmarkEntry:
    timestamp: float
    name: str
    note: str | None
    created_date: datetime


@dataclass
class _BookEntry:
    file_path: str
    playback_position: float
    last_played_date: datetime | None
    is_completed: bool
    bookmarks: list[Any]


# --- Export ---


def export_progress(catalog: LibraryCatalog, *, now: datetime | None = None) -> dict[str, Any]:
    """Build the backup document for every book in the catalog.

    Books are ordered by path and bookmarks by timestamp so that two exports
    of the same library diff cleanly.
    """
    books = []
    for book in sorted(catalog.find_all(), key=lambda record: str(record.file_path)):
        bookmarks = [
            {
                "timestamp": bookmark.timestamp,
                "name": bookmark.name,
                "note": bookmark.note,
                "createdDate": format_iso(bookmark.created_date),
            }
            for bookmark in catalog.bookmarks_for(book.id)  # type: ignore[arg-type]
        ]
        books.append({
            "filePath": str(book.file_path),
            "playbackPosition": book.playback_position,
            "lastPlayedDate": (
                format_iso(book.last_played_date) if book.last_played_date else None
            ),
            "isCompleted": book.is_completed,
            "bookmarks": bookmarks,
        })

    return {
        "exportDate": format_iso(now or utc_now()),
        "version": BACKUP_VERSION,
        "books": books,
    }


def dump_backup(document: dict[str, Any]) -> str:
    """Serialize a backup document as stable, sorted, indented JSON."""
    return json.dumps(document, indent=2, sort_keys=True, ensure_ascii=False) + "\n"


def write_backup(path: Path, catalog: LibraryCatalog, *, now: datetime | None = None) -> int:
    """Export the catalog to a UTF-8 JSON file. Returns the number of books written."""
    document = export_progress(catalog, now=now)
    path.write_text(dump_backup(document), encoding="utf-8")
    return len(document["books"])


# --- Import ---


def parse_backup(data: str | bytes) -> list[Any]:
    """Decode a backup document and return its raw book entries.

    Raises:
        BackupFormatError: If the data is not JSON, is not a backup document,
            or declares an unsupported major version.
    """
    try:
        document = json.loads(data)
    except ValueError as exc:
        raise BackupFormatError(f"Backup is not valid JSON: {exc}") from exc

    if not isinstance(document, dict):
        raise BackupFormatError("Backup document must be a JSON object")

    version = document.get("version")
    if version is not None and str(version).split(".")[0] != BACKUP_VERSION.split(".")[0]:
        raise BackupFormatError(f"Unsupported backup version: {version}")

    books = document.get("books")
    if not isinstance(books, list):
        raise BackupFormatError("Backup document has no 'books' list")

    return books


def _number(value: Any, name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{name} must be a number, got {value!r}")
    try:
        number = float(value)
    except OverflowError:
        raise ValueError(f"{name} is out of range, got {value!r}") from None
    if not math.isfinite(number) or number < 0:
        raise ValueError(f"{name} must be a finite number >= 0, got {value!r}")
    return number


def _text(value: str, name: str) -> str:
    try:
        value.encode("utf-8")
    except UnicodeEncodeError:
        raise ValueError(f"{name} is not valid UTF-8 text") from None
    return value


def _date(value: Any, name: str) -> datetime:
    if not isinstance(value, str):
        raise ValueError(f"{name} must be an ISO-8601 string, got {value!r}")
    return parse_iso(value)


def _parse_entry(raw: Any) -> _BookEntry:
    if not isinstance(raw, dict):
        raise ValueError("entry is not an object")

    file_path = raw.get("filePath")
    if not isinstance(file_path, str) or not file_path:
        raise ValueError("missing filePath")
    file_path = _text(file_path, "filePath")

    last_played = raw.get("lastPlayedDate")
    is_completed = raw.get("isCompleted", False)
    if not isinstance(is_completed, bool):
        raise ValueError(f"isCompleted must be true or false, got {is_completed!r}")

    bookmarks = raw.get("bookmarks") or []
    if not isinstance(bookmarks, list):
        raise ValueError("bookmarks must be a list")

    return _BookEntry(
        file_path=file_path,
        playback_position=_number(raw.get("playbackPosition", 0), "playbackPosition"),
        last_played_date=_date(last_played, "lastPlayedDate") if last_played is not None else None,
        is_completed=is_completed,
        bookmarks=bookmarks,
    )


def _parse_bookmark(raw: Any) -> _BookmarkEntry:
    if not isinstance(raw, dict):
        raise ValueError("bookmark is not an object")

    name = raw.get("name")
    if not isinstance(name, str) or not name.strip():
        raise ValueError("bookmark name must be a non-empty string")
    name = _text(name, "bookmark name")

    note = raw.get("note")
    if note is not None and not isinstance(note, str):
        raise ValueError("bookmark note must be a string or null")
    if note is not None:
        note = _text(note, "bookmark note")

    return _BookmarkEntry(
        timestamp=_number(raw.get("timestamp"), "timestamp"),
        name=name,
        note=note,
        created_date=_date(raw.get("createdDate"), "createdDate"),
    )


def _check_cancelled(cancel_event: threading.Event | None) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise ImportCancelledError("Import cancelled")


def import_progress(
    data: str | bytes,
    catalog: LibraryCatalog,
    *,
    cancel_event: threading.Event | None = None,
) -> ImportResult:
    """Merge a backup document into the catalog.

    Entries are matched to books by exact file path; an import never
    creates books. For a matched book the imported playback position,
    last-played date and completion flag replace the stored ones. Imported
    bookmarks are added unless the book already has a bookmark at the same
    timestamp, and keep their original creation date.

    Malformed entries and bookmarks are counted and skipped. All changes
    are committed together at the end.

    Args:
        data: The backup document as JSON text or UTF-8 bytes.
        catalog: Catalog to merge into; must have no unsaved changes.
        cancel_event: When set, the import stops and nothing is committed.

    Returns:
        ImportResult with updated/created/not-found counts.

    Raises:
        BackupFormatError: If the document can't be parsed. Nothing is changed.
        ImportCancelledError: If cancel_event was set. Nothing is changed.
        CatalogCommitError: If the final commit fails. Nothing is changed.
    """
    raw_books = parse_backup(data)
    result = ImportResult()

    try:
        for index, raw in enumerate(raw_books):
            _check_cancelled(cancel_event)

            try:
                entry = _parse_entry(raw)
            except ValueError as exc:
                logger.warning("Skipping backup entry %d: %s", index, exc)
                result.entries_skipped += 1
                result.skip_details.append(f"entry {index}: {exc}")
                continue

            book = catalog.find_by_path(entry.file_path)
            if book is None:
                logger.debug("No cataloged book at %s", entry.file_path)
                result.books_not_found += 1
                continue

            catalog.set_progress(
                book.id,  # type: ignore[arg-type]
                playback_position=entry.playback_position,
                last_played_date=entry.last_played_date,
                is_completed=entry.is_completed,
            )
            result.books_updated += 1

            existing = {bookmark.timestamp for bookmark in catalog.bookmarks_for(book.id)}  # type: ignore[arg-type]
            for raw_bookmark in entry.bookmarks:
                try:
                    bookmark = _parse_bookmark(raw_bookmark)
                except ValueError as exc:
                    logger.warning("Skipping bookmark in %s: %s", entry.file_path, exc)
                    result.bookmarks_skipped += 1
                    result.skip_details.append(f"{entry.file_path}: {exc}")
                    continue

                if bookmark.timestamp in existing:
                    continue

                catalog.add_bookmark(
                    book.id,  # type: ignore[arg-type]
                    bookmark.timestamp,
                    bookmark.name,
                    bookmark.note,
                    created_date=bookmark.created_date,
                )
                existing.add(bookmark.timestamp)
                result.bookmarks_created += 1

        _check_cancelled(cancel_event)
    except BaseException:
        catalog.discard()
        raise

    catalog.save()
    logger.info(
        "Imported progress: %d updated, %d bookmark(s) created, %d not found",
        result.books_updated, result.bookmarks_created, result.books_not_found,
    )
    return result


def read_backup(
    path: Path,
    catalog: LibraryCatalog,
    *,
    cancel_event: threading.Event | None = None,
) -> ImportResult:
    """Import a backup file.

    Raises:
        BackupFormatError: If the file cannot be read or parsed.
    """
    try:
        data = path.read_bytes()
    except OSError as exc:
        raise BackupFormatError(f"Cannot read backup file {path}: {exc}") from exc
    return import_progress(data, catalog, cancel_event=cancel_event)
