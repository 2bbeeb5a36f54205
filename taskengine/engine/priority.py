"""Dynamic priority scoring for taskengine.

Combines base priority, deadline proximity and status into one orderable
urgency score. Higher means more urgent.
"""

from datetime import datetime
from typing import List

from taskengine.models.constants import (
    COMPLETED_SCORE,
    DEADLINE_URGENCY_BONUSES,
    IN_PROGRESS_BONUS,
    OVERDUE_BONUS,
    PRIORITY_BASE_MULTIPLIER,
    PRIORITY_BASE_SCORES,
)
from taskengine.models.task import Task, TaskStatus


def _deadline_bonus(task: Task, now: datetime) -> int:
    if task.deadline is None:
        return 0
    hours_until = (task.deadline - now).total_seconds() / 3600
    if hours_until < 0:
        return OVERDUE_BONUS
    for limit_hours, bonus in DEADLINE_URGENCY_BONUSES:
        if hours_until < limit_hours:
            return bonus
    return 0


def priority_score(task: Task, now: datetime) -> int:
    """Score a task for smart-priority ordering.

    Completed tasks always score COMPLETED_SCORE so they sort last.
    """
    if task.status == TaskStatus.COMPLETED:
        return COMPLETED_SCORE
    score = PRIORITY_BASE_SCORES[task.priority] * PRIORITY_BASE_MULTIPLIER
    score += _deadline_bonus(task, now)
    if task.status == TaskStatus.IN_PROGRESS:
        score += IN_PROGRESS_BONUS
    return score


def sort_by_priority(tasks: List[Task], now: datetime) -> List[Task]:
    """Sort by score, highest first. Ties keep their incoming order."""
    return sorted(tasks, key=lambda t: priority_score(t, now), reverse=True)
