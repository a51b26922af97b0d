# ABOUTME: Shared Click options and parameter types for Shelf CLI commands.
# ABOUTME: Provides the --db flag and a position type that accepts seconds or h:mm:ss.

from pathlib import Path

import click

from shelf.db.connection import DEFAULT_DB_PATH

db_option = click.option(
    "--db",
    "db_path",
    type=click.Path(path_type=Path),
    default=None,
    help=f"Path to library database (default: {DEFAULT_DB_PATH})",
)


class PositionType(click.ParamType):
    """A playback position given as seconds ('754.5') or clock time ('12:34', '1:02:03')."""

    name = "position"

    def convert(self, value, param, ctx):  # type: ignore[no-untyped-def]
        if isinstance(value, (int, float)):
            return float(value)

        text = str(value).strip()
        try:
            if ":" not in text:
                seconds = float(text)
            else:
                parts = [float(part) for part in text.split(":")]
                if len(parts) > 3:
                    raise ValueError(text)
                seconds = 0.0
                for part in parts:
                    seconds = seconds * 60 + part
        except ValueError:
            self.fail(f"{value!r} is not a position in seconds or h:mm:ss", param, ctx)

        if seconds < 0:
            self.fail(f"{value!r} is negative", param, ctx)
        return seconds


POSITION = PositionType()
