"""
Parsing of human-readable durations such as `"5s"`, `"2m 30s"` or `"1h"`.

Each number must carry a unit. Units are summed, so `"1m 30s"` is 90 seconds.
Units are case-sensitive: `m` is minutes and `M` is months. A month is 30.44
days and a year is 365.25 days.
"""

from __future__ import annotations

import re
from datetime import timedelta

from covprofile.errors import InvalidValueError

_UNIT_SECONDS: dict[str, float] = {
    "nsec": 1e-9,
    "ns": 1e-9,
    "usec": 1e-6,
    "us": 1e-6,
    "msec": 1e-3,
    "ms": 1e-3,
    "seconds": 1,
    "second": 1,
    "sec": 1,
    "s": 1,
    "minutes": 60,
    "minute": 60,
    "min": 60,
    "m": 60,
    "hours": 3600,
    "hour": 3600,
    "hr": 3600,
    "h": 3600,
    "days": 86400,
    "day": 86400,
    "d": 86400,
    "weeks": 604800,
    "week": 604800,
    "w": 604800,
    "months": 2630016,
    "month": 2630016,
    "M": 2630016,
    "years": 31557600,
    "year": 31557600,
    "y": 31557600,
}

_TOKEN = re.compile(r"\s*(\d+)\s*([A-Za-z]+)\s*")


def parse_duration(text: str) -> timedelta:
    """Parse `text` into a `timedelta`, raising `InvalidValueError` if malformed."""
    if not text.strip():
        raise InvalidValueError("empty duration")

    total = 0.0
    pos = 0
    while pos < len(text):
        match = _TOKEN.match(text, pos)
        if match is None:
            raise InvalidValueError(f"invalid duration {text!r}")
        number, unit = match.groups()
        scale = _UNIT_SECONDS.get(unit)
        if scale is None:
            raise InvalidValueError(f"unknown time unit {unit!r} in duration {text!r}")
        total += int(number) * scale
        pos = match.end()

    return timedelta(seconds=total)
