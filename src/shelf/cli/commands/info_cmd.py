# ABOUTME: The `shelf info` command for displaying one cataloged audiobook.
# ABOUTME: Shows stored fields, playback progress, chapters and bookmarks.

from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from shelf.cli.options import db_option
from shelf.core.library import BookNotFoundError, Library
from shelf.core.timefmt import format_iso, format_scrubber_time

console = Console()


@click.command("info")
@click.argument("book_id", type=int)
@db_option
def info(book_id: int, db_path: Path | None) -> None:
    """Show details, chapters and bookmarks for a book by ID."""
    with Library.open(db_path) as library:
        try:
            book = library.get_book(book_id)
        except BookNotFoundError as exc:
            console.print(f"[red]Book {book_id} not found.[/red]")
            raise SystemExit(1) from exc

        chapters = library.extractor.extract_chapters(book.file_path) if book.has_chapters else []
        bookmarks = library.catalog.bookmarks_for(book_id)

    table = Table(show_header=False, box=None, pad_edge=False)
    table.add_column("Field", style="bold", width=14)
    table.add_column("Value")

    table.add_row("ID", str(book.id))
    table.add_row("Title", book.display_title)
    table.add_row("Author", book.display_author)
    if book.genre:
        table.add_row("Genre", book.genre)
    if book.year:
        table.add_row("Year", str(book.year))
    table.add_row("Length", book.formatted_duration)
    table.add_row(
        "Position",
        f"{format_scrubber_time(book.playback_position)} ({book.progress_percentage})",
    )
    table.add_row("Completed", "yes" if book.is_completed else "no")
    if book.last_played_date:
        table.add_row("Last Played", format_iso(book.last_played_date))
    table.add_row("File", str(book.file_path))
    if book.date_added:
        table.add_row("Added", book.date_added)
    console.print(table)

    if chapters:
        chapter_table = Table(title="Chapters")
        chapter_table.add_column("#", style="dim", width=4)
        chapter_table.add_column("Start", justify="right")
        chapter_table.add_column("Title")
        for number, chapter in enumerate(chapters, start=1):
            chapter_table.add_row(str(number), format_scrubber_time(chapter.start_time), chapter.title)
        console.print(chapter_table)

    if bookmarks:
        bookmark_table = Table(title="Bookmarks")
        bookmark_table.add_column("ID", style="dim", width=4)
        bookmark_table.add_column("At", justify="right")
        bookmark_table.add_column("Name", style="bold")
        bookmark_table.add_column("Note")
        for bookmark in bookmarks:
            bookmark_table.add_row(
                str(bookmark.id), bookmark.formatted_timestamp, bookmark.name, bookmark.note or "",
            )
        console.print(bookmark_table)
