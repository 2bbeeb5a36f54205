"""Interval model shared by the engine.

Every task is normalized to a closed interval [start, end] plus its kind:
span tasks end at their deadline, instant tasks are zero-width.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Dict, Iterator, Optional, Tuple

from taskengine.models.task import Task, TaskKind


@dataclass(frozen=True)
class Interval:
    start: datetime
    end: datetime
    kind: TaskKind

    @property
    def is_instant(self) -> bool:
        return self.kind == TaskKind.INSTANT

    @property
    def duration(self) -> timedelta:
        return self.end - self.start


def make_interval(start: datetime, deadline: Optional[datetime], kind: TaskKind) -> Interval:
    """Build an interval from raw candidate fields."""
    if kind == TaskKind.SPAN and deadline is not None:
        return Interval(start=start, end=deadline, kind=TaskKind.SPAN)
    return Interval(start=start, end=start, kind=TaskKind.INSTANT)


def task_interval(task: Task) -> Interval:
    return make_interval(task.start, task.deadline, TaskKind(task.kind))


def intervals_conflict(a: Interval, b: Interval) -> bool:
    """Pairwise overlap rule.

    - instant x instant: same instant
    - instant x span: instant within the span, endpoints included
    - span x span: strict overlap; touching endpoints do not conflict
    """
    if a.is_instant and b.is_instant:
        return a.start == b.start
    if a.is_instant:
        return b.start <= a.start <= b.end
    if b.is_instant:
        return a.start <= b.start <= a.end
    return a.start < b.end and a.end > b.start


def day_start(day: date) -> datetime:
    return datetime.combine(day, time.min)


def iter_days(first: date, last: date) -> Iterator[date]:
    """Yield every calendar day from first to last inclusive."""
    cur = first
    while cur <= last:
        yield cur
        cur = cur + timedelta(days=1)


def split_hours_by_day(start: datetime, end: datetime) -> Dict[date, float]:
    """Split [start, end] across the UTC calendar days it touches.

    Each day gets min(end, next midnight) - max(start, midnight), in hours.
    Days receiving no time are omitted.
    """
    hours: Dict[date, float] = {}
    if end <= start:
        return hours
    for day in iter_days(start.date(), end.date()):
        lo = max(start, day_start(day))
        hi = min(end, day_start(day) + timedelta(days=1))
        seconds = (hi - lo).total_seconds()
        if seconds > 0:
            hours[day] = seconds / 3600.0
    return hours


def to_busy_pairs(intervals) -> Tuple[Tuple[datetime, datetime], ...]:
    """Convert intervals to sorted (start, end) pairs."""
    return tuple(sorted(((i.start, i.end) for i in intervals), key=lambda p: p[0]))
