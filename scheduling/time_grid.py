"""The bookable day as a fixed sequence of "HH:MM" slot starts."""

import math
from datetime import date, datetime, time, timedelta
from typing import List, Optional
from config.constants import GRID_END, GRID_START, SLOT_INTERVAL_MINUTES
from scheduling.errors import ValidationError
from utils.validators import validate_time


def time_to_minutes(time_str: str) -> int:
    """Minutes since midnight for a "HH:MM" string."""
    if not validate_time(time_str):
        raise ValidationError(f"Invalid time '{time_str}', expected HH:MM")
    hours, minutes = time_str.split(':')
    return int(hours) * 60 + int(minutes)


def minutes_to_time(minutes: int) -> str:
    """"HH:MM" for minutes since midnight."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def build_time_grid(
    start: str = GRID_START,
    end: str = GRID_END,
    step: int = SLOT_INTERVAL_MINUTES
) -> List[str]:
    """
    Build the ordered slot starts of a business day.

    The closing instant is included as the last entry; it is a sentinel and
    never a bookable start.

    Args:
        start: Opening time (HH:MM)
        end: Closing time (HH:MM)
        step: Slot size in minutes

    Returns:
        List of "HH:MM" strings from start to end inclusive
    """
    if step <= 0:
        raise ValidationError("Grid step must be positive")

    first = time_to_minutes(start)
    last = time_to_minutes(end)
    if last <= first:
        raise ValidationError(f"Grid end {end} must be after start {start}")

    return [minutes_to_time(minutes) for minutes in range(first, last + 1, step)]


# 07:00 .. 20:00 every 30 minutes
TIMES: List[str] = build_time_grid()


def is_on_grid(time_str: str, grid: List[str] = TIMES) -> bool:
    return time_str in grid


def next_grid_time(time_str: str, grid: List[str] = TIMES) -> Optional[str]:
    """The grid entry after ``time_str`` (None at the closing sentinel)."""
    if time_str not in grid:
        return None
    index = grid.index(time_str)
    return grid[index + 1] if index + 1 < len(grid) else None


def slots_needed(duration_minutes: int, step: int = SLOT_INTERVAL_MINUTES) -> int:
    """Grid slots a duration occupies; partial slots round up."""
    if duration_minutes <= 0:
        raise ValidationError(f"Duration must be positive, got {duration_minutes}")
    return math.ceil(duration_minutes / step)


def snap_minutes(minutes: float, step: int = SLOT_INTERVAL_MINUTES) -> int:
    """Round to the nearest multiple of ``step`` (halves round up)."""
    return int(math.floor(minutes / step + 0.5)) * step


def combine(day: date, time_str: str) -> datetime:
    """Naive local datetime for ``time_str`` on ``day``."""
    minutes = time_to_minutes(time_str)
    return datetime.combine(day, time(0, 0)) + timedelta(minutes=minutes)


def time_of(moment: datetime) -> str:
    return f"{moment.hour:02d}:{moment.minute:02d}"
