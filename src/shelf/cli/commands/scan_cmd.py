# ABOUTME: The `shelf scan` command for syncing the catalog with the library folder.
# ABOUTME: Reads tags in parallel, shows a Rich progress bar, and prints the change summary.

from pathlib import Path

import click
from rich.console import Console
from rich.progress import BarColumn, MofNCompleteColumn, Progress, SpinnerColumn, TextColumn

from shelf.cli.options import db_option
from shelf.core.library import Library
from shelf.core.scanner import DEFAULT_MAX_WORKERS, FolderAccessError, ScanResult
from shelf.db.catalog import CatalogCommitError

console = Console()


def print_scan_result(result: ScanResult) -> None:
    if not result.has_changes:
        console.print("[dim]Library is up to date.[/dim]")
    else:
        parts = []
        if result.added:
            parts.append(f"[green]{result.added} added[/green]")
        if result.updated:
            parts.append(f"[cyan]{result.updated} updated[/cyan]")
        if result.removed:
            parts.append(f"[yellow]{result.removed} removed[/yellow]")
        console.print(f"[bold]Scan complete:[/bold] {', '.join(parts)}")

    if result.unreadable:
        console.print(
            f"[yellow]{result.unreadable} file(s) had unreadable tags "
            "and were cataloged by filename.[/yellow]"
        )


def run_scan(library: Library, workers: int = DEFAULT_MAX_WORKERS) -> ScanResult:
    """Scan with a progress bar. Exits with status 1 on folder or database errors."""
    progress = Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        console=console,
        transient=True,
    )
    with progress:
        task = progress.add_task("Reading tags", total=None)

        def on_progress(done: int, total: int) -> None:
            progress.update(task, completed=done, total=total)

        try:
            result = library.scan(max_workers=workers, on_progress=on_progress)
        except FolderAccessError as exc:
            console.print(f"[red]Cannot scan:[/red] {exc}")
            raise SystemExit(1) from exc
        except CatalogCommitError as exc:
            console.print(f"[red]Scan results could not be saved:[/red] {exc}")
            raise SystemExit(1) from exc
        except KeyboardInterrupt:
            console.print("[yellow]Scan cancelled; library unchanged.[/yellow]")
            raise SystemExit(130) from None

    print_scan_result(result)
    return result


@click.command("scan")
@db_option
@click.option(
    "-w", "--workers",
    type=click.IntRange(1, 32),
    default=DEFAULT_MAX_WORKERS,
    show_default=True,
    help="Number of files to read tags from in parallel.",
)
def scan(db_path: Path | None, workers: int) -> None:
    """Sync the catalog with the audio files in the library folder."""
    with Library.open(db_path) as library:
        if library.folder_path is None:
            console.print("[red]No library folder chosen.[/red] Run `shelf folder set PATH` first.")
            raise SystemExit(1)
        run_scan(library, workers)
