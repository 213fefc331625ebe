# salonbook/utils/time_utils.py
"""Wall-clock helpers for HH:MM values (no timezone conversion)"""
from datetime import date, datetime, time

MINUTES_PER_DAY = 24 * 60


def to_minutes(value) -> int:
    """
    Convert "HH:MM", "HH:MM:SS" or a datetime.time to minutes since midnight.

    Raises:
        ValueError: If the string is not a valid wall-clock time
    """
    if isinstance(value, time):
        return value.hour * 60 + value.minute

    parts = str(value).strip().split(":")
    if len(parts) < 2:
        raise ValueError(f"Time must be in HH:MM format: {value!r}")

    try:
        hours, minutes = int(parts[0]), int(parts[1])
    except ValueError:
        raise ValueError(f"Time must be in HH:MM format: {value!r}")

    if not (0 <= hours < 24 and 0 <= minutes < 60):
        raise ValueError(f"Time out of range: {value!r}")

    return hours * 60 + minutes


def format_minutes(total_minutes: int) -> str:
    """Format minutes since midnight as HH:MM, wrapping past midnight"""
    total_minutes %= MINUTES_PER_DAY
    return f"{total_minutes // 60:02d}:{total_minutes % 60:02d}"


def normalize_time(value) -> str:
    """Strip seconds: "09:30:00" -> "09:30" """
    return format_minutes(to_minutes(value))


def add_minutes(value, minutes: int) -> str:
    """Add a duration to a wall-clock time, wrapping modulo 24h"""
    return format_minutes(to_minutes(value) + minutes)


def weekday_index(day: date) -> int:
    """Day of week with 0=Sunday ... 6=Saturday"""
    return (day.weekday() + 1) % 7


def combine(day: date, value) -> datetime:
    """Naive local datetime for a date and an HH:MM value"""
    minutes = to_minutes(value)
    return datetime.combine(day, time(minutes // 60, minutes % 60))
