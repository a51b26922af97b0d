# ABOUTME: Scoped read access to the designated library folder.
# ABOUTME: Acquire returns a capability handle; release is guaranteed by the context-manager protocol.

import hashlib
import logging
import os
from collections.abc import Callable
from pathlib import Path

from shelf.core.scanner import FolderAccessError
from shelf.db.settings import LibrarySettings

logger = logging.getLogger(__name__)


def make_access_token(path: Path) -> str:
    """Opaque token tying a folder designation to the folder's on-disk identity.

    Derived from the resolved path plus device and inode numbers, so a
    folder that was deleted and recreated, or swapped for another one at
    the same path, gets a different token.

    Raises:
        OSError: If the folder cannot be stat'ed.
    """
    resolved = path.resolve()
    stat = resolved.stat()
    hasher = hashlib.sha256()
    hasher.update(f"{resolved}\0{stat.st_dev}\0{stat.st_ino}".encode())
    return hasher.hexdigest()[:32]


class FolderHandle:
    """Proof of access to the library folder, valid until released."""

    def __init__(self, path: Path, on_release: Callable[["FolderHandle"], None]) -> None:
        self.path = path
        self._on_release = on_release
        self._active = True

    @property
    def is_active(self) -> bool:
        return self._active

    def release(self) -> None:
        """Give up access. Safe to call more than once."""
        if not self._active:
            return
        self._active = False
        self._on_release(self)
        logger.debug("Released access to %s", self.path)

    def __enter__(self) -> "FolderHandle":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.release()

    def __repr__(self) -> str:
        state = "active" if self._active else "released"
        return f"FolderHandle({str(self.path)!r}, {state})"


class FolderAccess:
    """Acquires and releases access to the library folder recorded in settings.

    At most one handle is active at a time; acquiring again releases the
    previous one first. Used as a context manager, the handle (or None if
    access failed) is released when the block exits.
    """

    def __init__(self, settings: LibrarySettings) -> None:
        self._settings = settings
        self._handle: FolderHandle | None = None

    @property
    def folder_path(self) -> Path | None:
        return self._settings.folder_path

    @property
    def handle(self) -> FolderHandle | None:
        """The active handle, if access is currently held."""
        return self._handle

    def _forget(self, handle: FolderHandle) -> None:
        if self._handle is handle:
            self._handle = None

    def designate(self, path: Path) -> FolderHandle:
        """Record a new library folder and acquire access to it.

        Replaces any previous designation and releases its handle.

        Raises:
            FolderAccessError: If path is not a readable directory. The
                previous designation is kept.
        """
        folder = Path(os.path.abspath(path))
        try:
            if not folder.is_dir():
                raise FolderAccessError(f"Not a directory: {folder}")
            token = make_access_token(folder)
        except OSError as exc:
            raise FolderAccessError(f"Cannot access {folder}: {exc}") from exc

        self.release()
        self._settings.set_folder(folder, token)
        logger.info("Library folder set to %s", folder)

        handle = self.acquire()
        if handle is None:
            raise FolderAccessError(f"Cannot read library folder: {folder}")
        return handle

    def acquire(self) -> FolderHandle | None:
        """Acquire access to the designated folder.

        Refreshes the stored token when it no longer matches the folder.
        Returns None, rather than raising, when no folder is designated or
        it can't be read; callers treat that as an empty library.
        """
        self.release()

        folder = self._settings.folder_path
        if folder is None:
            return None

        try:
            token = make_access_token(folder)
            with os.scandir(folder):
                pass
        except OSError as exc:
            logger.warning("No access to library folder %s: %s", folder, exc)
            return None

        if token != self._settings.folder_token:
            logger.info("Refreshing stale access token for %s", folder)
            self._settings.set_folder(folder, token)

        self._handle = FolderHandle(folder, self._forget)
        return self._handle

    def release(self) -> None:
        if self._handle is not None:
            self._handle.release()

    def __enter__(self) -> FolderHandle | None:
        return self.acquire()

    def __exit__(self, *exc_info: object) -> None:
        self.release()
