"""
Lap time parsing, formatting and statistics.
"""

import math
import re
from typing import Iterable, Optional, Tuple

_HMS_PATTERN = re.compile(r"(\d+):(\d+):([0-9.]+)")
_MS_PATTERN = re.compile(r"(\d+):([0-9.]+)")


def parse_time(text: Optional[str]) -> Optional[float]:
    """
    Parse a time string in H:MM:SS.ffff or MM:SS.ffff format.

    Args:
        text: Time string, e.g. "1:42.3150" or "1:02:03.5000".

    Returns:
        Total seconds, or None if the string doesn't look like a time.
    """
    if not text:
        return None

    try:
        # Try format with hours first
        match = _HMS_PATTERN.search(text)
        if match:
            return int(match.group(1)) * 3600 + int(match.group(2)) * 60 + float(match.group(3))

        match = _MS_PATTERN.search(text)
        if match:
            return int(match.group(1)) * 60 + float(match.group(2))
    except ValueError:
        # Seconds like "12.3.4" match the pattern but aren't numbers
        return None

    return None


def make_time(seconds: float, sep: str = ":") -> str:
    """
    Format seconds as H:MM:SS.ffff, dropping the hour segment when zero.

    Args:
        seconds: Non-negative number of seconds.
        sep: Separator between segments.

    Returns:
        Formatted time, e.g. "1:42.3150".
    """
    # Work in ten-thousandths so rounding can't leave "60.0000" seconds
    total = int(round(seconds * 10000))
    hours, rest = divmod(total, 3600 * 10000)
    minutes, rest = divmod(rest, 60 * 10000)
    sec_int, sec_frac = divmod(rest, 10000)

    sec_str = f"{sec_int:02d}.{sec_frac:04d}"
    prefix = f"{hours}{sep}" if hours > 0 else ""
    return f"{prefix}{minutes}{sep}{sec_str}"


def compute_time(times: Optional[Iterable[float]]) -> Tuple[int, float, float]:
    """
    Compute count, mean and (population) standard deviation of lap times.

    Returns:
        (count, average, stddev); all zero for an empty input.
    """
    values = list(times or [])
    num = len(values)
    if num < 1:
        return 0, 0.0, 0.0

    avg = sum(values) / num
    variance = sum((t - avg) ** 2 for t in values) / num
    return num, avg, math.sqrt(variance)


def output_time(seconds: float) -> str:
    """Two-decimal rendering used in tables and logs."""
    return f"{seconds:.2f}"
