# ABOUTME: Unit tests for the settings table wrapper.
# ABOUTME: Covers generic get/set/delete and the library folder designation.

import sqlite3
from collections.abc import Iterator
from pathlib import Path

import pytest

from shelf.db.connection import open_library
from shelf.db.settings import LibrarySettings


@pytest.fixture()
def conn(tmp_path: Path) -> Iterator[sqlite3.Connection]:
    connection = open_library(tmp_path / "settings.db")
    yield connection
    connection.close()


@pytest.fixture()
def settings(conn: sqlite3.Connection) -> LibrarySettings:
    return LibrarySettings(conn)


def test_get_missing_returns_default(settings: LibrarySettings) -> None:
    assert settings.get("nope") is None
    assert settings.get("nope", "fallback") == "fallback"


def test_set_overwrites(settings: LibrarySettings) -> None:
    settings.set("theme", "dark")
    settings.set("theme", "light")
    assert settings.get("theme") == "light"


def test_delete(settings: LibrarySettings) -> None:
    settings.set("theme", "dark")
    settings.delete("theme")
    assert settings.get("theme") is None


def test_folder_designation(settings: LibrarySettings) -> None:
    assert settings.folder_path is None
    settings.set_folder(Path("/audio/books"), "token123")
    assert settings.folder_path == Path("/audio/books")
    assert settings.folder_token == "token123"


def test_clear_folder(settings: LibrarySettings) -> None:
    settings.set_folder(Path("/audio/books"), "token123")
    settings.clear_folder()
    assert settings.folder_path is None
    assert settings.folder_token is None


def test_writes_are_durable(tmp_path: Path) -> None:
    db = tmp_path / "durable.db"
    first = open_library(db)
    LibrarySettings(first).set_folder(Path("/audio"), "tok")
    first.close()

    second = open_library(db)
    assert LibrarySettings(second).folder_path == Path("/audio")
    second.close()
