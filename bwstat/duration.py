#!/usr/bin/env python3
"""
bwstat Duration Parsing

Parses duration strings such as "300ms", "1.5h" or "2h45m" into seconds.
A duration is an optionally signed sequence of decimal numbers, each with
an optional fraction and a required unit suffix. Valid units are
"ns", "us" (or "µs"), "ms", "s", "m", "h".
"""

import re
import math
from typing import Union

from .core.constants import DURATION_UNITS, MAX_DURATION_SECONDS
from .core.exceptions import InvalidInterval

# One "<number><unit>" component; longest units first so "ms" wins over "m"
_COMPONENT_PATTERN = re.compile(
    r'(\d+\.?\d*|\.\d+)(' +
    '|'.join(sorted((re.escape(u) for u in DURATION_UNITS), key=len, reverse=True)) +
    r')'
)


def parse_duration(value: str) -> float:
    """
    Parse a duration string into seconds.

    Args:
        value: Duration string, e.g. "1s", "250ms", "2h45m", "-1.5h"

    Returns:
        Duration in seconds (may be zero or negative)

    Raises:
        ValueError: If the string is not a valid duration

    Example:
        >>> parse_duration("2h45m")
        9900.0
    """
    if not isinstance(value, str):
        raise ValueError(f"duration must be a string, got {type(value).__name__}")

    text = value.strip()
    sign = 1.0
    if text[:1] in ('-', '+'):
        if text[0] == '-':
            sign = -1.0
        text = text[1:]

    # A bare zero needs no unit
    if text == '0':
        return 0.0
    if not text:
        raise ValueError(f"invalid duration {value!r}")

    total = 0.0
    pos = 0
    while pos < len(text):
        match = _COMPONENT_PATTERN.match(text, pos)
        if not match:
            if text[pos].isdigit() or text[pos] == '.':
                raise ValueError(f"missing unit in duration {value!r}")
            raise ValueError(f"invalid duration {value!r}")
        number, unit = match.groups()
        total += float(number) * DURATION_UNITS[unit]
        pos = match.end()

    return sign * total


def parse_interval(value: Union[str, float, int, None]) -> float:
    """
    Validate a polling interval.

    Args:
        value: Duration string or a number of seconds

    Returns:
        Strictly positive interval in seconds

    Raises:
        InvalidInterval: If the value does not parse, is not positive,
                         or exceeds the longest representable duration
    """
    if value is None:
        raise InvalidInterval(value, "interval is required")

    if isinstance(value, bool):
        raise InvalidInterval(value, "expected a duration")

    if isinstance(value, (int, float)):
        seconds = float(value)
    else:
        try:
            seconds = parse_duration(value)
        except ValueError as e:
            raise InvalidInterval(value, str(e))

    if not seconds > 0:
        raise InvalidInterval(value, "interval must be positive")

    if not math.isfinite(seconds) or seconds > MAX_DURATION_SECONDS:
        raise InvalidInterval(value, "interval out of range")

    return seconds


def format_duration(seconds: float) -> str:
    """Render seconds in the shortest common unit, e.g. 0.5 -> "500ms"."""
    if seconds >= 3600 and seconds % 3600 == 0:
        return f"{int(seconds // 3600)}h"
    if seconds >= 60 and seconds % 60 == 0:
        return f"{int(seconds // 60)}m"
    if seconds >= 1:
        return f"{seconds:g}s"
    if seconds >= 1e-3:
        return f"{seconds * 1e3:g}ms"
    if seconds >= 1e-6:
        return f"{seconds * 1e6:g}us"
    return f"{seconds * 1e9:g}ns"
