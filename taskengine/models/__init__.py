"""Data models for taskengine."""

from taskengine.models.task import Task, TaskKind, TaskPriority, TaskStatus
from taskengine.models.recurrence import RecurrenceFrequency, RecurrencePattern
from taskengine.models.reports import (
    ConflictEntry,
    ConflictReport,
    DailyLimitResult,
    DailyWorkload,
    OvercommitmentReport,
    SlotSuggestion,
    TaskFragment,
    WorkloadSummary,
)

__all__ = [
    "Task",
    "TaskKind",
    "TaskPriority",
    "TaskStatus",
    "RecurrenceFrequency",
    "RecurrencePattern",
    "ConflictEntry",
    "ConflictReport",
    "DailyLimitResult",
    "DailyWorkload",
    "OvercommitmentReport",
    "SlotSuggestion",
    "TaskFragment",
    "WorkloadSummary",
]
