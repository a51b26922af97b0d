# ABOUTME: Commands that change a book's playback state: complete, uncomplete, reset and play.
# ABOUTME: `play` moves the resume point by position, chapter or bookmark and saves it.

from pathlib import Path

import click
from rich.console import Console

from shelf.cli.options import POSITION, db_option
from shelf.core.library import BookNotFoundError, Library
from shelf.core.session import ManualTransport
from shelf.core.timefmt import format_scrubber_time
from shelf.db.catalog import CatalogCommitError
from shelf.db.mapping import BookRecord

console = Console()


def _get_book(library: Library, book_id: int) -> BookRecord:
    try:
        return library.get_book(book_id)
    except BookNotFoundError as exc:
        console.print(f"[red]Book {book_id} not found.[/red]")
        raise SystemExit(1) from exc


@click.command("complete")
@click.argument("book_id", type=int)
@db_option
def complete(book_id: int, db_path: Path | None) -> None:
    """Mark a book as finished (its position returns to the start)."""
    with Library.open(db_path) as library:
        book = _get_book(library, book_id)
        library.mark_completed(book_id)
    console.print(f"[green]Completed:[/green] {book.display_title}")


@click.command("uncomplete")
@click.argument("book_id", type=int)
@db_option
def uncomplete(book_id: int, db_path: Path | None) -> None:
    """Clear a book's finished flag."""
    with Library.open(db_path) as library:
        book = _get_book(library, book_id)
        library.mark_not_completed(book_id)
    console.print(f"Marked not completed: {book.display_title}")


@click.command("reset")
@click.argument("book_id", type=int)
@db_option
def reset(book_id: int, db_path: Path | None) -> None:
    """Forget a book's progress. Bookmarks are kept."""
    with Library.open(db_path) as library:
        book = _get_book(library, book_id)
        library.reset_progress(book_id)
    console.print(f"Progress reset: {book.display_title}")


@click.command("play")
@click.argument("book_id", type=int)
@db_option
@click.option("--at", "position", type=POSITION, default=None, help="Seek to seconds or h:mm:ss.")
@click.option("--chapter", "chapter_number", type=click.IntRange(min=1), default=None, help="Jump to chapter N.")
@click.option("--next", "step", flag_value="next", default=None, help="Skip to the next chapter.")
@click.option("--previous", "step", flag_value="previous", help="Restart or go back a chapter.")
@click.option("--bookmark", "bookmark_id", type=int, default=None, help="Jump to a bookmark by ID.")
@click.option(
    "--speed",
    type=click.FloatRange(min=0.25, max=4.0),
    default=None,
    help="Playback speed to report (0.25-4.0).",
)
def play(
    book_id: int,
    db_path: Path | None,
    position: float | None,
    chapter_number: int | None,
    step: str | None,
    bookmark_id: int | None,
    speed: float | None,
) -> None:
    """Move a book's resume point and save it as the last played position.

    With no options the book resumes where it left off.
    """
    with Library.open(db_path) as library:
        book = _get_book(library, book_id)
        transport = ManualTransport(duration=book.duration)
        session = library.open_session(book_id, transport)

        if speed is not None:
            session.set_speed(speed)

        if bookmark_id is not None:
            matching = [b for b in session.bookmarks if b.id == bookmark_id]
            if not matching:
                console.print(f"[red]Bookmark {bookmark_id} not found on this book.[/red]")
                raise SystemExit(1)
            session.jump_to_bookmark(matching[0])

        if position is not None:
            transport.seek(position)

        if chapter_number is not None:
            if chapter_number > len(session.chapters):
                console.print(
                    f"[red]Book has {len(session.chapters)} chapter(s); no chapter {chapter_number}.[/red]"
                )
                raise SystemExit(1)
            session.go_to_chapter(session.chapters[chapter_number - 1])

        if step == "next":
            session.next_chapter()
        elif step == "previous":
            session.previous_chapter()

        try:
            book = session.record_progress()
        except CatalogCommitError as exc:
            console.print(f"[red]Could not save progress:[/red] {exc}")
            raise SystemExit(1) from exc

        chapter_name = session.current_chapter_name
        speed_label = session.speed_label
        session.close()

    line = f"[bold]{book.display_title}[/bold] at {format_scrubber_time(book.playback_position)}"
    if book.duration > 0:
        line += f" of {format_scrubber_time(book.duration)}"
    if chapter_name:
        line += f" [dim]({chapter_name})[/dim]"
    if speed is not None:
        line += f" [dim]{speed_label}[/dim]"
    console.print(line)
