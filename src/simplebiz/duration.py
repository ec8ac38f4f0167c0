"""Duration parsing utilities."""

import re

from simplebiz.types import Duration

_PART_PATTERN = re.compile(r"(\d+)(ms|s|m|h|d)")
_COMPOUND_PATTERN = re.compile(r"^(?:\d+(?:ms|s|m|h|d))+$")
_UNITS: dict[str, int] = {
    "ms": 1,
    "s": 1000,
    "m": 60_000,
    "h": 3_600_000,
    "d": 86_400_000,
}


def parse_duration(duration: Duration) -> int:
    """Parse a duration to milliseconds.

    Accepts milliseconds as an int, a compound string such as ``"1h30m"``,
    or a bare digit string counted in seconds (``REVALIDATE=3600``).
    """
    if isinstance(duration, bool):
        raise ValueError(f"Invalid duration: {duration!r}")
    if isinstance(duration, int):
        if duration < 0:
            raise ValueError(f"Invalid duration: {duration!r}")
        return duration

    text = duration.strip().lower()
    if text.isdigit():
        return int(text) * _UNITS["s"]
    if not _COMPOUND_PATTERN.match(text):
        raise ValueError(f"Invalid duration: {duration!r}")

    return sum(int(value) * _UNITS[unit] for value, unit in _PART_PATTERN.findall(text))
