"""Roll a recurring task forward when its current occurrence is completed.

The transition is pure: it takes the task as it is before completion and
returns a new Task value; nothing is mutated in place.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from taskengine.models.task import Task, TaskKind, TaskStatus
from taskengine.recurrence.next_occurrence import next_occurrence

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OccurrenceTransition:
    task: Task
    series_ended: bool


def _end_series(task: Task, now: datetime) -> OccurrenceTransition:
    ended = task.model_copy(
        update={
            "status": TaskStatus.COMPLETED,
            "reminder_enabled": False,
            "updated_at": now,
        }
    )
    logger.debug(f"Recurring task {task.id}: series ended")
    return OccurrenceTransition(task=ended, series_ended=True)


def complete_occurrence(task: Task, now: datetime) -> OccurrenceTransition:
    """Complete the current occurrence of a recurring task.

    - occurrence-bounded: the last occurrence ends the series, otherwise the
      counter is decremented before advancing
    - end-date-bounded: a next occurrence past end_date ends the series
    - otherwise start moves to the next occurrence, span deadlines keep their
      start-to-deadline offset, status resets to pending and fired reminders clear

    Args:
        task: Recurring task in its pre-completion state
        now: Injected current time (stamped as updated_at)

    Returns:
        OccurrenceTransition with the updated task and whether the series ended
    """
    pattern = task.recurrence
    if pattern is None:
        raise ValueError(f"Task {task.id} is not recurring")

    offset = task.deadline - task.start if task.deadline is not None else None

    if pattern.occurrences_remaining is not None and pattern.occurrences_remaining <= 1:
        return _end_series(task, now)

    nxt = next_occurrence(task.start, pattern)
    if nxt is None:
        return _end_series(task, now)
    if pattern.end_date is not None and nxt > pattern.end_date:
        return _end_series(task, now)

    new_pattern = pattern
    if pattern.occurrences_remaining is not None:
        new_pattern = pattern.model_copy(
            update={"occurrences_remaining": pattern.occurrences_remaining - 1}
        )

    update = {
        "start": nxt,
        "status": TaskStatus.PENDING,
        "reminders_fired": [],
        "recurrence": new_pattern,
        "updated_at": now,
    }
    if task.kind == TaskKind.SPAN and offset is not None:
        update["deadline"] = nxt + offset

    logger.debug(f"Recurring task {task.id}: advanced {task.start.isoformat()} -> {nxt.isoformat()}")
    return OccurrenceTransition(task=task.model_copy(update=update), series_ended=False)
