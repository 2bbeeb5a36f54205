"""Engine error taxonomy.

Every error is a deterministic function of the input snapshot; none of them
signal a transient condition and none need retrying.
"""

from datetime import date
from typing import List

from taskengine.models.reports import ConflictReport


class EngineError(Exception):
    """Base class for engine errors."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class TaskValidationError(EngineError):
    """Malformed or inconsistent input (e.g. unknown parent task)."""


class TaskNotFound(EngineError):
    status_code = 404

    def __init__(self, task_id: str):
        super().__init__("Task not found")
        self.task_id = task_id


class ConflictDetected(EngineError):
    """Soft conflict; the caller may retry with override_conflicts."""

    status_code = 409

    def __init__(self, report: ConflictReport):
        super().__init__("Task conflict detected")
        self.report = report


class LimitExceeded(EngineError):
    """A calendar day would exceed the daily hour ceiling. Always blocking."""

    def __init__(self, day: date, hours: float, max_hours: float):
        super().__init__(
            f"Cannot schedule task: {day.strftime('%A, %B %d, %Y')} would have {hours:.1f} hours "
            f"(max {max_hours:g} hours per day). Please adjust the task duration or reschedule."
        )
        self.date = day
        self.hours = hours
        self.max_hours = max_hours


class DependencyUnresolved(EngineError):
    """Referenced dependencies are missing or not yet completed."""

    def __init__(self, message: str, task_ids: List[str]):
        super().__init__(message)
        self.task_ids = task_ids


class CircularDependency(EngineError):
    def __init__(self, task_id: str, parent_id: str):
        super().__init__("Cannot set parent - would create circular relationship")
        self.task_id = task_id
        self.parent_id = parent_id


class SubtasksIncomplete(EngineError):
    def __init__(self, task_ids: List[str]):
        super().__init__(
            "Cannot complete parent task - the following subtasks must be completed first: "
            + ", ".join(task_ids)
        )
        self.task_ids = task_ids
