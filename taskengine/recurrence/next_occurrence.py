"""Compute the next occurrence of a recurring task."""

from __future__ import annotations

import calendar
from datetime import datetime, timedelta
from typing import Iterator, Optional

from taskengine.models.recurrence import RecurrenceFrequency, RecurrencePattern


def sunday_based_weekday(dt: datetime) -> int:
    """Weekday index with 0=Sunday ... 6=Saturday."""
    return (dt.weekday() + 1) % 7


def _add_months(dt: datetime, months: int, day: Optional[int] = None) -> datetime:
    """Shift by whole months, clamping the day to the target month's length."""
    month_index = dt.month - 1 + months
    year = dt.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return dt.replace(year=year, month=month, day=min(day or dt.day, last_day))


def _next_weekly(current: datetime, pattern: RecurrencePattern) -> datetime:
    if not pattern.days_of_week:
        return current + timedelta(days=7 * pattern.interval)
    weekday = sunday_based_weekday(current)
    for day in pattern.days_of_week:
        if day > weekday:
            return current + timedelta(days=day - weekday)
    # Wrap to the first listed day, `interval` weeks on.
    return current + timedelta(days=(7 - weekday + pattern.days_of_week[0]) * pattern.interval)


def next_occurrence(current: datetime, pattern: RecurrencePattern) -> Optional[datetime]:
    """Map the current occurrence start to the next one.

    Monthly and yearly targets that do not exist in the target month
    (e.g. the 31st in April, Feb 29 in a non-leap year) clamp to the last day
    of that month. Returns None for an unknown frequency.
    """
    frequency = pattern.frequency
    if frequency == RecurrenceFrequency.DAILY:
        return current + timedelta(days=pattern.interval)
    if frequency == RecurrenceFrequency.WEEKLY:
        return _next_weekly(current, pattern)
    if frequency == RecurrenceFrequency.MONTHLY:
        return _add_months(current, pattern.interval, pattern.day_of_month)
    if frequency == RecurrenceFrequency.YEARLY:
        return _add_months(current, 12 * pattern.interval)
    return None


def upcoming_occurrences(
    start: datetime,
    pattern: RecurrencePattern,
    limit: int = 5,
) -> Iterator[datetime]:
    """Yield the current occurrence and following ones, honoring end conditions.

    Does not mutate the pattern; `occurrences_remaining` bounds the count.
    """
    remaining = pattern.occurrences_remaining
    cur: Optional[datetime] = start
    emitted = 0
    while cur is not None and emitted < limit:
        if pattern.end_date is not None and cur > pattern.end_date:
            return
        if remaining is not None and emitted >= remaining:
            return
        yield cur
        emitted += 1
        cur = next_occurrence(cur, pattern)


_UNITS = {
    RecurrenceFrequency.DAILY: ("daily", "days"),
    RecurrenceFrequency.WEEKLY: ("weekly", "weeks"),
    RecurrenceFrequency.MONTHLY: ("monthly", "months"),
    RecurrenceFrequency.YEARLY: ("yearly", "years"),
}

_DAY_NAMES = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]


def describe_recurrence(pattern: RecurrencePattern) -> str:
    """Human-readable summary, e.g. 'Repeats every 2 weeks on Mon, Wed (3 remaining)'."""
    single, plural = _UNITS[RecurrenceFrequency(pattern.frequency)]
    text = "Repeats " + (single if pattern.interval == 1 else f"every {pattern.interval} {plural}")
    if pattern.days_of_week:
        text += " on " + ", ".join(_DAY_NAMES[d] for d in pattern.days_of_week)
    if pattern.day_of_month:
        text += f" on day {pattern.day_of_month}"
    if pattern.end_date:
        text += f" until {pattern.end_date.date().isoformat()}"
    elif pattern.occurrences_remaining:
        text += f" ({pattern.occurrences_remaining} remaining)"
    return text
