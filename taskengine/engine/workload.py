"""Workload aggregation across calendar days.

Each span task's hours are split over the UTC days it touches. Days above the
daily ceiling are capped and their excess is carried, proportionally per
task, into the following day, strictly left to right.
"""

import logging
from collections import OrderedDict
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Tuple, Union

from taskengine.engine.intervals import day_start, iter_days, split_hours_by_day
from taskengine.models.constants import DEFAULT_OVERCOMMIT_HOURS, MAX_HOURS_PER_DAY
from taskengine.models.reports import DailyWorkload, OvercommitmentReport, TaskFragment, WorkloadSummary
from taskengine.models.task import Task, TaskKind

logger = logging.getLogger(__name__)

# Float noise below this is not treated as excess.
_EPSILON = 1e-9


def _as_date(value: Union[date, datetime]) -> date:
    return value.date() if isinstance(value, datetime) else value


def _tasks_in_range(tasks: Iterable[Task], owner_id: str, first: date, last: date) -> List[Task]:
    lo = day_start(first)
    hi = day_start(last) + timedelta(days=1)
    selected = [
        t for t in tasks
        if t.owner_id == owner_id
        and t.kind == TaskKind.SPAN
        and t.deadline is not None
        and t.start < hi
        and t.deadline > lo
    ]
    return sorted(selected, key=lambda t: t.start)


def distribute_hours(tasks: Iterable[Task], first: date, last: date) -> "OrderedDict[date, Dict[str, float]]":
    """Per-day task-hour fragments for every day in [first, last], before capping."""
    days: "OrderedDict[date, Dict[str, float]]" = OrderedDict((d, {}) for d in iter_days(first, last))
    for task in tasks:
        for day, hours in split_hours_by_day(task.start, task.deadline).items():
            if day in days:
                days[day][task.id] = days[day].get(task.id, 0.0) + hours
    return days


def apply_daily_cap(
    days: "OrderedDict[date, Dict[str, float]]",
    max_hours: float = MAX_HOURS_PER_DAY,
) -> "OrderedDict[date, Dict[str, float]]":
    """Cap each day at max_hours, carrying the excess into the next day.

    Each fragment gives up excess * fragment / total. Carry past the last day
    appends synthetic days until nothing remains.
    """
    out: "OrderedDict[date, Dict[str, float]]" = OrderedDict((d, dict(f)) for d, f in days.items())
    keys = list(out.keys())
    i = 0
    while i < len(keys):
        fragments = out[keys[i]]
        total = sum(fragments.values())
        if total > max_hours + _EPSILON:
            excess = total - max_hours
            if i + 1 == len(keys):
                synthetic = keys[i] + timedelta(days=1)
                out[synthetic] = {}
                keys.append(synthetic)
            following = out[keys[i + 1]]
            for task_id, hours in list(fragments.items()):
                moved = excess * hours / total
                fragments[task_id] = hours - moved
                following[task_id] = following.get(task_id, 0.0) + moved
            logger.debug(f"Carried {excess:.2f}h from {keys[i]} to {keys[i + 1]}")
        i += 1
    return out


def compute_workload(
    owner_id: str,
    tasks: Iterable[Task],
    range_start: Union[date, datetime],
    range_end: Union[date, datetime],
    max_hours: float = MAX_HOURS_PER_DAY,
) -> WorkloadSummary:
    """Daily workload and summary statistics for an inclusive date range.

    Completed span tasks are included for historical accuracy.

    Args:
        owner_id: Owner whose tasks are aggregated
        tasks: Snapshot of the owner's tasks
        range_start: First day (dates of datetimes are used)
        range_end: Last day, inclusive
        max_hours: Daily cap

    Returns:
        WorkloadSummary covering the range plus any synthetic carry-over days
    """
    first, last = _as_date(range_start), _as_date(range_end)
    if last < first:
        raise ValueError("range_end must not be before range_start")

    selected = _tasks_in_range(tasks, owner_id, first, last)
    capped = apply_daily_cap(distribute_hours(selected, first, last), max_hours)

    daily: List[DailyWorkload] = []
    for day, fragments in capped.items():
        kept = [TaskFragment(task_id=tid, hours=h) for tid, h in fragments.items() if h > _EPSILON]
        total = min(sum(f.hours for f in kept), max_hours)
        daily.append(DailyWorkload(date=day, total_hours=total, task_count=len(kept), tasks=kept))

    range_total = sum(d.total_hours for d in daily)
    busiest = daily[0]
    for day in daily[1:]:
        if day.total_hours > busiest.total_hours:
            busiest = day

    return WorkloadSummary(
        daily_workloads=daily,
        range_total_hours=range_total,
        average_per_day=range_total / len(daily),
        busiest_date=busiest.date,
        max_hours_per_day=busiest.total_hours,
    )


def current_week_range(now: datetime) -> Tuple[date, date]:
    """Monday..Sunday of the week containing now."""
    monday = now.date() - timedelta(days=now.weekday())
    return monday, monday + timedelta(days=6)


def check_overcommitment(
    owner_id: str,
    tasks: Iterable[Task],
    day: Union[date, datetime],
    max_hours: float = DEFAULT_OVERCOMMIT_HOURS,
) -> OvercommitmentReport:
    """Compare one day's scheduled span hours with a personal threshold."""
    summary = compute_workload(owner_id, tasks, day, day)
    hours = summary.daily_workloads[0].total_hours
    over = hours > max_hours
    if over:
        message = f"You have {hours:.1f} hours scheduled. Consider rescheduling some tasks."
    else:
        message = f"You have {hours:.1f} hours scheduled ({max_hours - hours:.1f} hours available)."
    return OvercommitmentReport(is_overcommitted=over, hours=hours, max_hours=max_hours, message=message)
