# ABOUTME: The `shelf inspect` command for viewing an audio file's tags.
# ABOUTME: Reads a single file directly, without touching the library database.

from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from shelf.core.timefmt import format_duration, format_scrubber_time
from shelf.formats.audio import AudioReadError, read_audio_chapters, read_audio_metadata

console = Console()


@click.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def inspect(path: Path) -> None:
    """Show tags and chapters read from an audio file."""
    try:
        meta = read_audio_metadata(path)
        chapters = read_audio_chapters(path)
    except AudioReadError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise SystemExit(1) from exc

    table = Table(title=str(path.name), show_header=False, pad_edge=False)
    table.add_column("Field", style="bold")
    table.add_column("Value")

    table.add_row("Title", meta.title)
    table.add_row("Author", meta.author or "[dim]unknown[/dim]")
    table.add_row("Genre", meta.genre or "[dim]none[/dim]")
    table.add_row("Year", str(meta.year) if meta.year else "[dim]none[/dim]")
    table.add_row("Duration", format_duration(meta.duration))
    table.add_row("Chapters", str(len(chapters)) if chapters else "[dim]none[/dim]")
    console.print(table)

    for chapter in chapters:
        console.print(f"  {format_scrubber_time(chapter.start_time):>8}  {chapter.title}")
