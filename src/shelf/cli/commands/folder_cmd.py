# ABOUTME: The `shelf folder` commands for choosing and showing the library folder.
# ABOUTME: Setting a folder records it with an access token and scans it right away.

from pathlib import Path

import click
from rich.console import Console

from shelf.cli.commands.scan_cmd import run_scan
from shelf.cli.options import db_option
from shelf.core.library import Library
from shelf.core.scanner import DEFAULT_MAX_WORKERS, FolderAccessError

console = Console()


@click.group("folder")
def folder() -> None:
    """Choose or show the audiobooks folder."""


@folder.command("set")
@click.argument("path", type=click.Path(exists=True, file_okay=False, path_type=Path))
@db_option
@click.option(
    "--scan/--no-scan",
    "do_scan",
    default=True,
    help="Scan the folder after choosing it (default: scan).",
)
def set_folder(path: Path, db_path: Path | None, do_scan: bool) -> None:
    """Make PATH the library folder."""
    with Library.open(db_path) as library:
        try:
            handle = library.choose_folder(path)
        except FolderAccessError as exc:
            console.print(f"[red]Error:[/red] {exc}")
            raise SystemExit(1) from exc

        console.print(f"Library folder: [bold]{handle.path}[/bold]")
        if do_scan:
            run_scan(library, DEFAULT_MAX_WORKERS)


@folder.command("show")
@db_option
def show_folder(db_path: Path | None) -> None:
    """Show the library folder and whether it can be read."""
    with Library.open(db_path) as library:
        path = library.folder_path
        if path is None:
            console.print("[yellow]No library folder chosen.[/yellow]")
            return

        console.print(f"Library folder: [bold]{path}[/bold]")
        if library.start_folder_access() is None:
            console.print("[red]Folder is not accessible.[/red] Choose it again with `shelf folder set`.")
            raise SystemExit(1)
        console.print(f"[dim]{library.catalog.count()} book(s) cataloged[/dim]")
