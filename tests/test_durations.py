"""Tests for human-readable duration parsing."""

from __future__ import annotations

from datetime import timedelta

import pytest

from covprofile.durations import parse_duration
from covprofile.errors import InvalidValueError


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("5s", timedelta(seconds=5)),
        ("60sec", timedelta(seconds=60)),
        ("2m", timedelta(minutes=2)),
        ("1h 30min", timedelta(hours=1, minutes=30)),
        ("1m30s", timedelta(seconds=90)),
        ("250ms", timedelta(milliseconds=250)),
        ("1d", timedelta(days=1)),
        ("2 weeks", timedelta(weeks=2)),
        ("1month", timedelta(seconds=2_630_016)),
        ("2M", timedelta(seconds=5_260_032)),
        ("1y", timedelta(seconds=31_557_600)),
        ("1 year 1 month", timedelta(seconds=34_187_616)),
    ],
)
def test_parse_duration(text: str, expected: timedelta) -> None:
    assert parse_duration(text) == expected


@pytest.mark.parametrize("text", ["", "   ", "5", "soon", "5 parsecs", "s5"])
def test_parse_duration_rejects(text: str) -> None:
    with pytest.raises(InvalidValueError):
        parse_duration(text)
