"""Scheduling and consistency engine for taskengine."""

from taskengine.engine.intervals import Interval, make_interval, task_interval, intervals_conflict
from taskengine.engine.conflicts import check_conflicts
from taskengine.engine.daily_limit import check_daily_limit
from taskengine.engine.free_slots import find_free_slots
from taskengine.engine.dependencies import TaskGraph
from taskengine.engine.workload import compute_workload, check_overcommitment, current_week_range
from taskengine.engine.priority import priority_score, sort_by_priority
from taskengine.engine.reminders import due_reminder_quarter, pending_reminder_quarter

__all__ = [
    "Interval",
    "make_interval",
    "task_interval",
    "intervals_conflict",
    "check_conflicts",
    "check_daily_limit",
    "find_free_slots",
    "TaskGraph",
    "compute_workload",
    "check_overcommitment",
    "current_week_range",
    "priority_score",
    "sort_by_priority",
    "due_reminder_quarter",
    "pending_reminder_quarter",
]
