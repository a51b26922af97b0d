# ABOUTME: Public API for the Shelf library database layer.
# ABOUTME: Exports connection management, catalog and settings operations, and record types.

from shelf.db.catalog import CatalogCommitError, LibraryCatalog, clamp_position
from shelf.db.connection import DEFAULT_DB_PATH, library_connection, open_library
from shelf.db.mapping import BookmarkRecord, BookRecord, record_from_metadata
from shelf.db.settings import LibrarySettings

__all__ = [
    "DEFAULT_DB_PATH",
    "BookRecord",
    "BookmarkRecord",
    "CatalogCommitError",
    "LibraryCatalog",
    "LibrarySettings",
    "clamp_position",
    "library_connection",
    "open_library",
    "record_from_metadata",
]
