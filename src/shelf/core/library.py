# ABOUTME: Library facade: folder access, scanning, book actions, views, and backup on one connection.
# ABOUTME: The single writer the CLI drives; every catalog mutation goes through here.

import logging
import sqlite3
import threading
from pathlib import Path

from shelf.core.access import FolderAccess, FolderHandle
from shelf.core.backup import ImportResult, read_backup, write_backup
from shelf.core.scanner import (
    DEFAULT_MAX_WORKERS,
    Extractor,
    FolderAccessError,
    ProgressFn,
    ScanResult,
    scan_library,
)
from shelf.core.session import PlaybackSession, Transport
from shelf.core.views import BookFilter, LibraryGroups, SortOrder, filter_books, group_books
from shelf.db.catalog import LibraryCatalog
from shelf.db.connection import open_library
from shelf.db.mapping import BookRecord
from shelf.db.settings import LibrarySettings
from shelf.metadata.extractor import MetadataExtractor

logger = logging.getLogger(__name__)


class BookNotFoundError(LookupError):
    """Raised when a book id does not exist in the catalog."""


class Library:
    """Owns one database connection and everything that writes through it.

    Use as a context manager, or call close(), so folder access is released
    and the connection closed on every exit path.
    """

    def __init__(self, conn: sqlite3.Connection, *, extractor: Extractor | None = None) -> None:
        self._conn = conn
        self.catalog = LibraryCatalog(conn)
        self.settings = LibrarySettings(conn)
        self.access = FolderAccess(self.settings)
        self.extractor = extractor or MetadataExtractor()

    @classmethod
    def open(cls, db_path: Path | None = None, *, extractor: Extractor | None = None) -> "Library":
        return cls(open_library(db_path), extractor=extractor)

    def close(self) -> None:
        self.access.release()
        self._conn.close()

    def __enter__(self) -> "Library":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # --- Folder ---

    @property
    def folder_path(self) -> Path | None:
        return self.access.folder_path

    def start_folder_access(self) -> FolderHandle | None:
        return self.access.acquire()

    def stop_folder_access(self) -> None:
        self.access.release()

    def choose_folder(self, path: Path) -> FolderHandle:
        """Designate a new library folder (raises FolderAccessError if unreadable)."""
        return self.access.designate(path)

    def _folder_handle(self) -> FolderHandle | None:
        return self.access.handle or self.access.acquire()

    # --- Scanning ---

    def scan(
        self,
        *,
        max_workers: int = DEFAULT_MAX_WORKERS,
        cancel_event: threading.Event | None = None,
        on_progress: ProgressFn | None = None,
    ) -> ScanResult:
        """Scan the designated folder.

        Raises:
            FolderAccessError: If no folder is designated or it can't be read.
        """
        handle = self._folder_handle()
        if handle is None:
            if self.folder_path is None:
                raise FolderAccessError("No library folder has been chosen")
            raise FolderAccessError(f"No folder access: {self.folder_path}")

        return scan_library(
            handle.path,
            self.catalog,
            self.extractor,
            max_workers=max_workers,
            cancel_event=cancel_event,
            on_progress=on_progress,
        )

    # --- Reading ---

    def visible_books(self) -> list[BookRecord]:
        """All cataloged books, or none when the folder can't be accessed."""
        if self._folder_handle() is None:
            return []
        return self.catalog.find_all()

    def books(
        self,
        book_filter: BookFilter | None = None,
        order: SortOrder = SortOrder.TITLE,
    ) -> list[BookRecord]:
        return filter_books(self.visible_books(), book_filter, order)

    def groups(self) -> LibraryGroups:
        return group_books(self.visible_books())

    def get_book(self, book_id: int) -> BookRecord:
        book = self.catalog.find_by_id(book_id)
        if book is None:
            raise BookNotFoundError(f"Book {book_id} not found")
        return book

    # --- Book actions ---

    def mark_completed(self, book_id: int) -> BookRecord:
        """Flag a book finished and rewind it to the start."""
        book = self.get_book(book_id)
        updated = self.catalog.set_progress(
            book_id,
            playback_position=0.0,
            last_played_date=book.last_played_date,
            is_completed=True,
        )
        self.catalog.save()
        return updated

    def mark_not_completed(self, book_id: int) -> BookRecord:
        book = self.get_book(book_id)
        updated = self.catalog.set_progress(
            book_id,
            playback_position=book.playback_position,
            last_played_date=book.last_played_date,
            is_completed=False,
        )
        self.catalog.save()
        return updated

    def reset_progress(self, book_id: int) -> BookRecord:
        """Forget all progress: position 0, never played, not completed."""
        self.get_book(book_id)
        updated = self.catalog.set_progress(
            book_id, playback_position=0.0, last_played_date=None, is_completed=False,
        )
        self.catalog.save()
        return updated

    # --- Playback ---

    def open_session(self, book_id: int, transport: Transport) -> PlaybackSession:
        session = PlaybackSession(self.catalog, transport, self.extractor)
        session.open(self.get_book(book_id))
        return session

    # --- Backup ---

    def export_progress(self, path: Path) -> int:
        count = write_backup(path, self.catalog)
        logger.info("Exported progress for %d book(s) to %s", count, path)
        return count

    def import_progress(self, path: Path, *, cancel_event: threading.Event | None = None) -> ImportResult:
        return read_backup(path, self.catalog, cancel_event=cancel_event)
