"""
Clock-time arithmetic for schedule data.

Flight legs only carry local HH:MM clock times (no date, no timezone), so every
duration here is computed on a 24h clock with a single wrap to the next day.
"""

from __future__ import annotations

MINUTES_PER_DAY = 24 * 60


def clock_minutes(value: str) -> int:
    """Parse 'HH:MM' (or 'HH:MM:SS') into minutes after midnight.

    Raises ValueError for anything that is not a valid 24h clock time.
    """
    text = (value or "").strip()
    parts = text.split(":")
    if len(parts) not in (2, 3) or not all(p.isdigit() for p in parts):
        raise ValueError(f"Invalid clock time: {value!r}")

    hours, minutes = int(parts[0]), int(parts[1])
    if not (0 <= hours <= 23 and 0 <= minutes <= 59):
        raise ValueError(f"Invalid clock time: {value!r}")
    return hours * 60 + minutes


def layover_minutes(arrival_time: str, departure_time: str) -> int:
    """Minutes between an arrival and the next departure at the same airport.

    A departure at or before the arrival clock time is taken to be on the next day.
    """
    gap = clock_minutes(departure_time) - clock_minutes(arrival_time)
    if gap <= 0:
        gap += MINUTES_PER_DAY
    return gap


def elapsed_minutes(start_time: str, end_time: str) -> int:
    """Clock minutes from start to end, wrapping overnight when end is earlier."""
    start = clock_minutes(start_time)
    end = clock_minutes(end_time)
    if end < start:
        end += MINUTES_PER_DAY
    return end - start


def format_duration(minutes: int) -> str:
    """Format minutes as 'Hh Mm' (e.g. 95 -> '1h 35m')."""
    minutes = int(round(minutes))
    return f"{minutes // 60}h {minutes % 60}m"
