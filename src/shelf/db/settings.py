# ABOUTME: Process-wide key/value settings stored in the library database.
# ABOUTME: Persists the designated library folder path and its access token.

import sqlite3
from pathlib import Path

FOLDER_PATH_KEY = "library_folder_path"
FOLDER_TOKEN_KEY = "library_folder_token"


class LibrarySettings:
    """Typed access to the settings table.

    Writes commit immediately. They share the catalog's connection, so
    call them between scans or imports, not in the middle of one.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def get(self, key: str, default: str | None = None) -> str | None:
        cursor = self._conn.execute("SELECT value FROM settings WHERE key = ?", (key,))
        row = cursor.fetchone()
        return row[0] if row and row[0] is not None else default

    def set(self, key: str, value: str | None) -> None:
        self._conn.execute(
            "INSERT INTO settings (key, value) VALUES (?, ?) "
            "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
            (key, value),
        )
        self._conn.commit()

    def delete(self, key: str) -> None:
        self._conn.execute("DELETE FROM settings WHERE key = ?", (key,))
        self._conn.commit()

    @property
    def folder_path(self) -> Path | None:
        """The designated library folder, if one has been chosen."""
        value = self.get(FOLDER_PATH_KEY)
        return Path(value) if value else None

    @property
    def folder_token(self) -> str | None:
        return self.get(FOLDER_TOKEN_KEY)

    def set_folder(self, path: Path, token: str) -> None:
        """Replace the folder designation and its token together."""
        self._conn.executemany(
            "INSERT INTO settings (key, value) VALUES (?, ?) "
            "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
            [(FOLDER_PATH_KEY, str(path)), (FOLDER_TOKEN_KEY, token)],
        )
        self._conn.commit()

    def clear_folder(self) -> None:
        self._conn.execute(
            "DELETE FROM settings WHERE key IN (?, ?)", (FOLDER_PATH_KEY, FOLDER_TOKEN_KEY)
        )
        self._conn.commit()
