"""
Time-of-day arithmetic for a single calendar day.

Slots are naive wall-clock datetimes: the shop lives in one fixed timezone
and nothing here crosses midnight.
"""

from datetime import date, time
from typing import List

import pendulum
from pendulum import DateTime


def at_time(day: date, value: time) -> DateTime:
    """Combine a calendar day and a time of day into a naive datetime."""
    return pendulum.naive(day.year, day.month, day.day, value.hour, value.minute)


def enumerate_slots(
    day: date,
    window_start: time,
    window_end: time,
    step_minutes: int,
    duration_minutes: int,
) -> List[DateTime]:
    """
    Generate candidate start times inside a window.

    Starts at ``window_start`` and advances by ``step_minutes``; a start is
    kept only if the whole service fits, i.e. ``start + duration <= end``.
    Returns a new list on every call.

    Example (step 30, duration 45, window 09:00-10:30):
        [09:00, 09:30]  (10:00 + 45 would end at 10:45)
    """
    if step_minutes <= 0:
        raise ValueError(f"step_minutes must be positive, got {step_minutes}")
    if duration_minutes <= 0:
        raise ValueError(f"duration_minutes must be positive, got {duration_minutes}")

    end = at_time(day, window_end)
    current = at_time(day, window_start)
    slots: List[DateTime] = []

    while current.add(minutes=duration_minutes) <= end:
        slots.append(current)
        current = current.add(minutes=step_minutes)

    return slots


def overlaps(
    a_start: DateTime,
    a_duration: int,
    b_start: DateTime,
    b_duration: int,
) -> bool:
    """
    Strict overlap test between two intervals.

    Touching intervals do not overlap: a booking ending at 10:00 leaves a
    slot starting at 10:00 free.
    """
    a_end = a_start.add(minutes=a_duration)
    b_end = b_start.add(minutes=b_duration)
    return a_start < b_end and b_start < a_end


def covers(
    window_start: DateTime,
    window_end: DateTime,
    start: DateTime,
    duration_minutes: int,
) -> bool:
    """Check whether ``[start, start + duration]`` lies inside a window."""
    return window_start <= start and start.add(minutes=duration_minutes) <= window_end
