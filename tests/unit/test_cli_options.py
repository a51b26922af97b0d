# ABOUTME: Unit tests for shared CLI parameter types.
# ABOUTME: Verifies position parsing from seconds and clock-style strings.

import click
import pytest

from shelf.cli.options import POSITION


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("0", 0.0),
        ("754.5", 754.5),
        ("12:34", 754.0),
        ("1:02:03", 3723.0),
        ("0:00:30.5", 30.5),
        (90, 90.0),
    ],
)
def test_position_parses(raw, expected):
    assert POSITION.convert(raw, None, None) == expected


@pytest.mark.parametrize("raw", ["soon", "1:2:3:4", "-5", "1::2"])
def test_position_rejects(raw):
    with pytest.raises(click.BadParameter):
        POSITION.convert(raw, None, None)
