# ABOUTME: Unit tests for the Library facade that the CLI drives.
# ABOUTME: Covers folder lifecycle, visibility without access, completion actions, and sessions.

from pathlib import Path

import pytest

from shelf.core.library import BookNotFoundError, Library
from shelf.core.scanner import FolderAccessError
from shelf.core.session import ManualTransport
from shelf.core.views import BookFilter, SortOrder, Status


@pytest.fixture()
def books_dir(tmp_path: Path) -> Path:
    root = tmp_path / "books"
    root.mkdir()
    for name in ("anna.m4b", "bruno.mp3", "clara.m4a"):
        (root / name).write_bytes(b"")
    return root


@pytest.fixture()
def library(tmp_path: Path, stub_extractor):
    lib = Library.open(tmp_path / "lib.db", extractor=stub_extractor)
    yield lib
    lib.close()


@pytest.fixture()
def scanned(library: Library, books_dir: Path) -> Library:
    library.choose_folder(books_dir)
    library.scan()
    return library


def _id(library: Library, name: str) -> int:
    return next(b.id for b in library.catalog.find_all() if b.file_path.name == name)


class TestFolder:
    def test_scan_without_folder_raises(self, library: Library) -> None:
        with pytest.raises(FolderAccessError, match="No library folder"):
            library.scan()

    def test_choose_and_scan(self, library: Library, books_dir: Path) -> None:
        handle = library.choose_folder(books_dir)
        result = library.scan()
        assert handle.is_active
        assert library.folder_path == books_dir
        assert result.added == 3

    def test_choose_invalid_folder(self, library: Library, tmp_path: Path) -> None:
        with pytest.raises(FolderAccessError):
            library.choose_folder(tmp_path / "missing")

    def test_scan_after_folder_vanishes(self, scanned: Library, books_dir: Path) -> None:
        scanned.stop_folder_access()
        for child in books_dir.iterdir():
            child.unlink()
        books_dir.rmdir()

        with pytest.raises(FolderAccessError, match="No folder access"):
            scanned.scan()
        assert scanned.catalog.count() == 3

    def test_designation_survives_reopen(self, tmp_path: Path, books_dir: Path, stub_extractor) -> None:
        with Library.open(tmp_path / "persist.db", extractor=stub_extractor) as first:
            first.choose_folder(books_dir)
        with Library.open(tmp_path / "persist.db", extractor=stub_extractor) as second:
            assert second.folder_path == books_dir
            assert second.start_folder_access() is not None


class TestVisibility:
    def test_books_hidden_without_access(self, scanned: Library, books_dir: Path) -> None:
        scanned.stop_folder_access()
        for child in books_dir.iterdir():
            child.unlink()
        books_dir.rmdir()

        assert scanned.visible_books() == []
        assert scanned.catalog.count() == 3

    def test_books_filter_and_sort(self, scanned: Library) -> None:
        titles = [b.title for b in scanned.books(order=SortOrder.TITLE)]
        assert titles == ["Anna", "Bruno", "Clara"]

    def test_groups(self, scanned: Library) -> None:
        assert scanned.groups().authors == ["Stub Author"]

    def test_get_book_missing(self, scanned: Library) -> None:
        with pytest.raises(BookNotFoundError):
            scanned.get_book(999)


class TestBookActions:
    def test_mark_completed_rewinds(self, scanned: Library) -> None:
        book_id = _id(scanned, "anna.m4b")
        scanned.catalog.update_progress(book_id, 1000.0)
        scanned.catalog.save()

        book = scanned.mark_completed(book_id)

        assert book.is_completed
        assert book.playback_position == 0.0
        assert book.last_played_date is not None
        assert not scanned.catalog.has_pending_changes

    def test_mark_not_completed_keeps_position(self, scanned: Library) -> None:
        book_id = _id(scanned, "anna.m4b")
        scanned.mark_completed(book_id)
        scanned.catalog.update_progress(book_id, 50.0)
        scanned.catalog.save()

        book = scanned.mark_not_completed(book_id)

        assert not book.is_completed
        assert book.playback_position == 50.0

    def test_reset_progress(self, scanned: Library) -> None:
        book_id = _id(scanned, "bruno.mp3")
        scanned.catalog.update_progress(book_id, 70.0)
        scanned.catalog.add_bookmark(book_id, 30.0, "Keep me")
        scanned.catalog.save()

        book = scanned.reset_progress(book_id)

        assert book.playback_position == 0.0
        assert book.last_played_date is None
        assert not book.is_completed
        assert len(scanned.catalog.bookmarks_for(book_id)) == 1

    def test_completed_filter(self, scanned: Library) -> None:
        scanned.mark_completed(_id(scanned, "clara.m4a"))
        done = scanned.books(BookFilter(status=Status.COMPLETED))
        assert [b.title for b in done] == ["Clara"]

    def test_actions_on_missing_book(self, scanned: Library) -> None:
        with pytest.raises(BookNotFoundError):
            scanned.mark_completed(404)


class TestSessionsAndBackup:
    def test_open_session_resumes(self, scanned: Library) -> None:
        book_id = _id(scanned, "anna.m4b")
        scanned.catalog.update_progress(book_id, 321.0)
        scanned.catalog.save()

        transport = ManualTransport(duration=3600.0)
        session = scanned.open_session(book_id, transport)

        assert session.book.id == book_id
        assert transport.current_time == 321.0

    def test_export_then_import(self, scanned: Library, tmp_path: Path) -> None:
        book_id = _id(scanned, "anna.m4b")
        scanned.catalog.update_progress(book_id, 600.0)
        scanned.catalog.add_bookmark(book_id, 120.0, "Clue")
        scanned.catalog.save()
        out = tmp_path / "progress.json"

        assert scanned.export_progress(out) == 3

        scanned.reset_progress(book_id)
        result = scanned.import_progress(out)

        assert result.books_updated == 3
        assert result.bookmarks_created == 0
        assert scanned.get_book(book_id).playback_position == 600.0
