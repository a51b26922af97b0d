# ABOUTME: The `shelf ls` command for listing cataloged audiobooks.
# ABOUTME: Supports status, smart-collection, author/genre/year and text filters plus sort orders.

from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from shelf.cli.options import db_option
from shelf.core.library import Library
from shelf.core.views import BookFilter, SmartCollection, SortOrder, Status
from shelf.db.mapping import BookRecord

console = Console()


def _progress_cell(book: BookRecord) -> str:
    if book.is_completed:
        return "[green]done[/green]"
    if book.playback_position > 0:
        return book.progress_percentage
    return "[dim]-[/dim]"


@click.command("ls")
@db_option
@click.option(
    "--status",
    type=click.Choice([s.value for s in Status]),
    default=Status.ALL.value,
    help="Show all books, only in-progress ones, or only completed ones.",
)
@click.option(
    "--collection",
    type=click.Choice([c.value for c in SmartCollection]),
    default=None,
    help="Limit to a smart collection.",
)
@click.option("--author", default=None, help="Only books by this author.")
@click.option("--genre", default=None, help="Only books in this genre.")
@click.option("--year", type=int, default=None, help="Only books from this year.")
@click.option("-s", "--search", default=None, help="Match title, author or genre text.")
@click.option(
    "--sort",
    "sort_order",
    type=click.Choice([o.value for o in SortOrder]),
    default=SortOrder.TITLE.value,
    help="Sort order (default: title).",
)
def ls(
    db_path: Path | None,
    status: str,
    collection: str | None,
    author: str | None,
    genre: str | None,
    year: int | None,
    search: str | None,
    sort_order: str,
) -> None:
    """List books in the library."""
    book_filter = BookFilter(
        status=Status(status),
        collection=SmartCollection(collection) if collection else None,
        author=author,
        genre=genre,
        year=year,
        search=search,
    )

    with Library.open(db_path) as library:
        if library.folder_path is None:
            console.print("[yellow]No library folder chosen.[/yellow] Run `shelf folder set PATH`.")
            return
        if library.start_folder_access() is None:
            console.print(f"[red]Library folder is not accessible:[/red] {library.folder_path}")
            raise SystemExit(1)

        books = library.books(book_filter, SortOrder(sort_order))

    if not books:
        console.print("[yellow]No books found.[/yellow]")
        return

    table = Table()
    table.add_column("ID", style="dim", width=4)
    table.add_column("Title", style="bold")
    table.add_column("Author")
    table.add_column("Year", width=5)
    table.add_column("Length", justify="right")
    table.add_column("Progress", justify="right")

    for book in books:
        table.add_row(
            str(book.id),
            book.display_title,
            book.author or "[dim]unknown[/dim]",
            str(book.year) if book.year else "",
            book.formatted_duration,
            _progress_cell(book),
        )

    console.print(table)
    console.print(f"\n[dim]{len(books)} book(s)[/dim]")
