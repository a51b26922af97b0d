# ABOUTME: CLI package for Shelf, built on Click.
# ABOUTME: Defines the root command group, logging setup, and registers subcommands.

import logging

import click
from rich.console import Console
from rich.logging import RichHandler

from shelf.cli.commands import (
    backup_cmd,
    bookmark_cmd,
    folder_cmd,
    info_cmd,
    inspect_cmd,
    ls_cmd,
    progress_cmd,
    scan_cmd,
)


def _configure_logging(verbose: bool) -> None:
    """Route log records through Rich on stderr; DEBUG with -v, else warnings only.

    No-op when the root logger already has handlers.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


@click.group()
@click.version_option(package_name="shelf")
@click.option("-v", "--verbose", is_flag=True, default=False, help="Show debug logging.")
def cli(verbose: bool) -> None:
    """Shelf - an audiobook library with progress tracking and bookmarks."""
    _configure_logging(verbose)


cli.add_command(folder_cmd.folder)
cli.add_command(scan_cmd.scan)
cli.add_command(ls_cmd.ls)
cli.add_command(info_cmd.info)
cli.add_command(inspect_cmd.inspect)
cli.add_command(progress_cmd.complete)
cli.add_command(progress_cmd.uncomplete)
cli.add_command(progress_cmd.reset)
cli.add_command(progress_cmd.play)
cli.add_command(bookmark_cmd.bookmark)
cli.add_command(backup_cmd.export_command)
cli.add_command(backup_cmd.import_command)
