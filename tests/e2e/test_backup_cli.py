# ABOUTME: End-to-end tests for `shelf export` and `shelf import`.
# ABOUTME: Round-trips progress through a JSON file and checks error reporting for bad input.

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from shelf.cli import cli
from shelf.core.library import Library


@pytest.fixture()
def shelved(library_tree: Path, tmp_path: Path) -> Path:
    db_path = tmp_path / "backup.db"
    result = CliRunner().invoke(cli, ["folder", "set", str(library_tree), "--db", str(db_path)])
    assert result.exit_code == 0, result.output
    return db_path


class TestExportCli:
    def test_export_to_stdout(self, shelved: Path) -> None:
        result = CliRunner().invoke(cli, ["export", "--db", str(shelved)])
        assert result.exit_code == 0
        document = json.loads(result.output)
        assert document["version"] == "1.0"
        assert len(document["books"]) == 3

    def test_export_to_file(self, shelved: Path, tmp_path: Path) -> None:
        out = tmp_path / "progress.json"
        result = CliRunner().invoke(cli, ["export", "-o", str(out), "--db", str(shelved)])
        assert result.exit_code == 0
        assert "3 book(s)" in result.output
        assert json.loads(out.read_text(encoding="utf-8"))["books"]


class TestImportCli:
    def test_round_trip(self, shelved: Path, library_tree: Path, tmp_path: Path) -> None:
        runner = CliRunner()
        with Library.open(shelved) as library:
            book_id = library.catalog.find_by_path(library_tree / "first.mp3").id
        runner.invoke(cli, ["play", str(book_id), "--at", "77", "--db", str(shelved)])
        runner.invoke(cli, ["bookmark", "add", str(book_id), "Keep", "--at", "12", "--db", str(shelved)])
        out = tmp_path / "progress.json"
        runner.invoke(cli, ["export", "-o", str(out), "--db", str(shelved)])
        runner.invoke(cli, ["reset", str(book_id), "--db", str(shelved)])

        result = runner.invoke(cli, ["import", str(out), "--db", str(shelved)])

        assert result.exit_code == 0
        assert "Updated 3 book(s)." in result.output
        with Library.open(shelved) as library:
            assert library.get_book(book_id).playback_position == 77.0
            assert len(library.catalog.bookmarks_for(book_id)) == 1

    def test_reports_unknown_books_and_details(self, shelved: Path, tmp_path: Path) -> None:
        backup = tmp_path / "other.json"
        backup.write_text(json.dumps({
            "version": "1.0",
            "books": [
                {"filePath": "/somewhere/else.m4b", "playbackPosition": 5},
                {"playbackPosition": 5},
            ],
        }))

        result = CliRunner().invoke(cli, ["import", str(backup), "--details", "--db", str(shelved)])

        assert result.exit_code == 0
        assert "Skipped 1 book(s) not in library." in result.output
        assert "missing filePath" in result.output

    def test_rejects_unreadable_file(self, shelved: Path, tmp_path: Path) -> None:
        backup = tmp_path / "broken.json"
        backup.write_text("{not json")

        result = CliRunner().invoke(cli, ["import", str(backup), "--db", str(shelved)])

        assert result.exit_code == 1
        assert "Could not read the progress file" in result.output

    def test_missing_file(self, shelved: Path, tmp_path: Path) -> None:
        result = CliRunner().invoke(cli, ["import", str(tmp_path / "absent.json"), "--db", str(shelved)])
        assert result.exit_code == 2
