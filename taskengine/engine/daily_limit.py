"""Daily hour-limit guard.

Rejects a span placement if, once applied, any UTC calendar day would carry
more than the daily ceiling of span-task hours. Unlike conflicts this is a
hard check with no override.
"""

import logging
from collections import defaultdict
from datetime import date
from typing import Dict, Iterable, Optional

from taskengine.engine.intervals import Interval, split_hours_by_day
from taskengine.models.constants import MAX_HOURS_PER_DAY
from taskengine.models.reports import DailyLimitResult
from taskengine.models.task import Task, TaskKind

logger = logging.getLogger(__name__)


def daily_span_hours(intervals: Iterable[Interval]) -> Dict[date, float]:
    """Sum span hours per calendar day."""
    totals: Dict[date, float] = defaultdict(float)
    for interval in intervals:
        for day, hours in split_hours_by_day(interval.start, interval.end).items():
            totals[day] += hours
    return dict(totals)


def check_daily_limit(
    owner_id: str,
    candidate: Interval,
    tasks: Iterable[Task],
    exclude_task_id: Optional[str] = None,
    max_hours: float = MAX_HOURS_PER_DAY,
) -> DailyLimitResult:
    """Check whether applying the candidate keeps every day within max_hours.

    Existing span tasks count regardless of status; the task being edited is
    replaced by the candidate. Instant candidates always pass.
    """
    if candidate.is_instant:
        return DailyLimitResult(exceeds=False)

    intervals = [
        Interval(start=t.start, end=t.deadline, kind=TaskKind.SPAN)
        for t in tasks
        if t.owner_id == owner_id
        and t.kind == TaskKind.SPAN
        and t.deadline is not None
        and (exclude_task_id is None or t.id != exclude_task_id)
    ]
    intervals.append(candidate)

    totals = daily_span_hours(intervals)
    busiest_day = None
    busiest_hours = 0.0
    for day in sorted(totals):
        if totals[day] > busiest_hours:
            busiest_day, busiest_hours = day, totals[day]

    if busiest_day is not None and busiest_hours > max_hours:
        logger.debug(f"Owner {owner_id}: {busiest_day} would have {busiest_hours:.2f}h (max {max_hours})")
        return DailyLimitResult(exceeds=True, date=busiest_day, hours=busiest_hours)
    return DailyLimitResult(exceeds=False)
