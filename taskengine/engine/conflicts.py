"""Conflict detection for taskengine.

Conflicts are soft: the report is advisory and the caller decides whether to
surface it or accept the placement anyway (override_conflicts).
"""

import logging
from datetime import datetime
from typing import Iterable, List, Optional

from taskengine.engine.free_slots import find_free_slots
from taskengine.engine.intervals import Interval, intervals_conflict, task_interval, to_busy_pairs
from taskengine.models.reports import ConflictEntry, ConflictReport
from taskengine.models.task import Task, TaskKind, TaskStatus

logger = logging.getLogger(__name__)


def active_tasks(
    tasks: Iterable[Task],
    owner_id: str,
    exclude_task_id: Optional[str] = None,
) -> List[Task]:
    """Tasks that occupy calendar time for conflict purposes.

    Completed span tasks no longer block time; instant tasks always count.
    The task being edited is excluded.
    """
    out: List[Task] = []
    for task in tasks:
        if task.owner_id != owner_id:
            continue
        if exclude_task_id is not None and task.id == exclude_task_id:
            continue
        if task.kind == TaskKind.SPAN and task.status == TaskStatus.COMPLETED:
            continue
        out.append(task)
    return sorted(out, key=lambda t: t.start)


def check_conflicts(
    owner_id: str,
    candidate: Interval,
    tasks: Iterable[Task],
    now: datetime,
    exclude_task_id: Optional[str] = None,
) -> ConflictReport:
    """Check a candidate placement against the owner's active tasks.

    Args:
        owner_id: Owner whose tasks are considered
        candidate: Candidate interval
        tasks: Snapshot of the owner's tasks (unfiltered)
        now: Injected current time, used to anchor slot suggestions
        exclude_task_id: Task being edited, if any

    Returns:
        ConflictReport; span candidates with conflicts get suggested slots
    """
    existing = active_tasks(tasks, owner_id, exclude_task_id)
    conflicting_ids = [t.id for t in existing if intervals_conflict(candidate, task_interval(t))]

    report = ConflictReport(has_conflict=bool(conflicting_ids))
    if not conflicting_ids:
        return report

    report.conflicts = [ConflictEntry(conflicting_task_ids=conflicting_ids)]

    if not candidate.is_instant:
        duration_ms = int(candidate.duration.total_seconds() * 1000)
        report.candidate_duration_ms = duration_ms
        report.suggested_slots = find_free_slots(
            to_busy_pairs(task_interval(t) for t in existing),
            duration_ms,
            anchor=max(candidate.start, now),
        )

    logger.debug(f"Owner {owner_id}: candidate conflicts with {len(conflicting_ids)} task(s)")
    return report
