# ABOUTME: The `shelf export` and `shelf import` commands for progress backups.
# ABOUTME: Export writes a JSON document; import merges one back by file path.

from pathlib import Path

import click
from rich.console import Console

from shelf.cli.options import db_option
from shelf.core.backup import BackupFormatError, dump_backup, export_progress
from shelf.core.library import Library
from shelf.db.catalog import CatalogCommitError

console = Console()


@click.command("export")
@db_option
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="File to write (default: print to stdout).",
)
def export_command(db_path: Path | None, output: Path | None) -> None:
    """Export playback progress and bookmarks as JSON."""
    with Library.open(db_path) as library:
        if output is None:
            click.echo(dump_backup(export_progress(library.catalog)), nl=False)
            return
        try:
            count = library.export_progress(output)
        except OSError as exc:
            console.print(f"[red]Could not write {output}:[/red] {exc}")
            raise SystemExit(1) from exc

    console.print(f"[green]Exported[/green] progress for {count} book(s) to {output}")


@click.command("import")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@db_option
@click.option("--details", is_flag=True, default=False, help="List every skipped entry.")
def import_command(path: Path, db_path: Path | None, details: bool) -> None:
    """Merge progress and bookmarks from an exported JSON file."""
    with Library.open(db_path) as library:
        try:
            result = library.import_progress(path)
        except BackupFormatError as exc:
            console.print(
                "[red]Could not read the progress file.[/red] "
                f"It may be in an unsupported format. ({exc})"
            )
            raise SystemExit(1) from exc
        except CatalogCommitError as exc:
            console.print(f"[red]Import could not be saved:[/red] {exc}")
            raise SystemExit(1) from exc

    console.print(result.summary)
    if details:
        for detail in result.skip_details:
            console.print(f"  [dim]{detail}[/dim]")
