# ABOUTME: The `shelf bookmark` commands for adding, listing and removing bookmarks.
# ABOUTME: New bookmarks default to the book's saved position.

from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from shelf.cli.options import POSITION, db_option
from shelf.core.library import BookNotFoundError, Library
from shelf.core.session import ManualTransport

console = Console()


@click.group("bookmark")
def bookmark() -> None:
    """Manage bookmarks within a book."""


@bookmark.command("add")
@click.argument("book_id", type=int)
@click.argument("name")
@db_option
@click.option("--at", "position", type=POSITION, default=None, help="Seconds or h:mm:ss (default: saved position).")
@click.option("-n", "--note", default=None, help="Optional note.")
def add_bookmark(
    book_id: int, name: str, db_path: Path | None, position: float | None, note: str | None,
) -> None:
    """Bookmark a position in a book."""
    with Library.open(db_path) as library:
        try:
            book = library.get_book(book_id)
        except BookNotFoundError as exc:
            console.print(f"[red]Book {book_id} not found.[/red]")
            raise SystemExit(1) from exc

        transport = ManualTransport(duration=book.duration)
        session = library.open_session(book_id, transport)
        if position is not None:
            transport.seek(position)

        try:
            created = session.add_bookmark(name, note)
        except ValueError as exc:
            console.print(f"[red]Error:[/red] {exc}")
            raise SystemExit(1) from exc

    console.print(
        f"[green]Bookmarked[/green] {created.display_name} at {created.formatted_timestamp} "
        f"[dim](id {created.id})[/dim]"
    )


@bookmark.command("ls")
@click.argument("book_id", type=int)
@db_option
def list_bookmarks(book_id: int, db_path: Path | None) -> None:
    """List a book's bookmarks in timestamp order."""
    with Library.open(db_path) as library:
        try:
            library.get_book(book_id)
        except BookNotFoundError as exc:
            console.print(f"[red]Book {book_id} not found.[/red]")
            raise SystemExit(1) from exc
        bookmarks = library.catalog.bookmarks_for(book_id)

    if not bookmarks:
        console.print("[yellow]No bookmarks.[/yellow]")
        return

    table = Table()
    table.add_column("ID", style="dim", width=4)
    table.add_column("At", justify="right")
    table.add_column("Name", style="bold")
    table.add_column("Note")
    for item in bookmarks:
        table.add_row(str(item.id), item.formatted_timestamp, item.name, item.note or "")
    console.print(table)


@bookmark.command("rm")
@click.argument("bookmark_id", type=int)
@db_option
def remove_bookmark(bookmark_id: int, db_path: Path | None) -> None:
    """Delete a bookmark by ID."""
    with Library.open(db_path) as library:
        existing = library.catalog.get_bookmark(bookmark_id)
        if existing is None:
            console.print(f"[red]Bookmark {bookmark_id} not found.[/red]")
            raise SystemExit(1)

        session = library.open_session(existing.book_id, ManualTransport())
        session.delete_bookmark(existing)

    console.print(f"Deleted bookmark: {existing.name}")
