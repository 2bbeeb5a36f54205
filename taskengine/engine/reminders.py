"""Reminder quarter selection.

A reminder fires when 75, 50 and 25 percent of the time between creation and
the reference time remains, and once more at the reference time (quarter 0).
Each quarter fires at most once per occurrence.
"""

from datetime import datetime, timedelta
from typing import Optional

from taskengine.models.task import Task, TaskKind, TaskStatus


def reference_time(task: Task) -> datetime:
    """Deadline for span tasks, start for instant tasks."""
    if task.kind == TaskKind.SPAN and task.deadline is not None:
        return task.deadline
    return task.start


def is_reminder_eligible(task: Task, now: datetime, grace: timedelta = timedelta(0)) -> bool:
    """Reminders enabled, not completed, and the reference time not long past."""
    if not task.reminder_enabled or task.status == TaskStatus.COMPLETED:
        return False
    return reference_time(task) >= now - grace


def due_reminder_quarter(task: Task, now: datetime) -> Optional[int]:
    """Quarter whose reminder is due now, or None.

    Returns the quarter even if it already fired; callers check
    `reminders_fired` before notifying.
    """
    ref = reference_time(task)
    if ref <= now:
        return 0
    total = (ref - task.created_at).total_seconds()
    if total <= 0:
        return None
    remaining_pct = 100 * (ref - now).total_seconds() / total
    if remaining_pct <= 25:
        return 25
    if remaining_pct <= 50:
        return 50
    if remaining_pct <= 75:
        return 75
    return None


def pending_reminder_quarter(task: Task, now: datetime) -> Optional[int]:
    """Due quarter that has not been fired yet."""
    quarter = due_reminder_quarter(task, now)
    if quarter is None or quarter in task.reminders_fired:
        return None
    return quarter


def build_reminder_message(task: Task, quarter: int) -> str:
    ref = reference_time(task).strftime("%Y-%m-%d %H:%M UTC")
    if task.kind == TaskKind.INSTANT:
        if quarter == 0:
            return f'Your task "{task.title}" is starting now! ({ref})'
        return f'Reminder: Your task "{task.title}" starts at {ref}. ({quarter}% time remaining)'
    if quarter == 0:
        return f'Deadline alert! Your task "{task.title}" is due now! ({ref})'
    if quarter == 25:
        return f'Urgent: Your task "{task.title}" is due soon! Deadline: {ref} (25% time remaining)'
    if quarter == 50:
        return f'Reminder: Your task "{task.title}" is halfway to deadline. Due: {ref} (50% time remaining)'
    return f'Reminder: Your task "{task.title}" has a deadline approaching. Due: {ref} ({quarter}% time remaining)'
