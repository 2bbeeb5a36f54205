"""Task creation factory for taskengine.

This module centralizes task creation logic to ensure consistent default
values across the service layer and tests.
"""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from taskengine.models.recurrence import RecurrencePattern
from taskengine.models.task import Task, TaskKind, TaskPriority, TaskStatus


def create_task_defaults() -> Dict[str, Any]:
    """Get default task values as a dictionary."""
    return {
        "priority": TaskPriority.MEDIUM,
        "deadline": None,
        "status": TaskStatus.PENDING,
        "reminder_enabled": False,
        "recurrence": None,
        "depends_on": [],
        "parent_task_id": None,
        "project_id": None,
    }


def create_task_base(
    owner_id: str,
    title: str,
    kind: TaskKind,
    start: datetime,
    now: datetime,
    deadline: Optional[datetime] = None,
    priority: Optional[TaskPriority] = None,
    status: Optional[TaskStatus] = None,
    reminder_enabled: Optional[bool] = None,
    recurrence: Optional[RecurrencePattern] = None,
    depends_on: Optional[List[str]] = None,
    parent_task_id: Optional[str] = None,
    project_id: Optional[str] = None,
    task_id: Optional[str] = None,
) -> Task:
    """Create a task with defaults, allowing overrides.

    Args:
        owner_id: Owner of the task (required)
        title: Task title (required)
        kind: Instant or span
        start: Start timestamp
        now: Creation timestamp (injected clock)
        deadline: Deadline (required for span tasks)
        priority: Base priority (defaults to medium)
        status: Initial status (defaults to pending)
        reminder_enabled: Whether reminders fire for this task
        recurrence: Recurrence pattern for recurring tasks
        depends_on: Task IDs that must be completed first
        parent_task_id: Parent task ID for subtasks
        project_id: Opaque project reference
        task_id: Explicit ID (a UUID v4 is generated when omitted)

    Returns:
        Task object with defaults applied
    """
    defaults = create_task_defaults()
    return Task(
        id=task_id or str(uuid.uuid4()),
        owner_id=owner_id,
        title=title,
        kind=kind,
        priority=priority if priority is not None else defaults["priority"],
        start=start,
        deadline=deadline,
        status=status if status is not None else defaults["status"],
        reminder_enabled=reminder_enabled if reminder_enabled is not None else defaults["reminder_enabled"],
        reminders_fired=[],
        recurrence=recurrence,
        depends_on=list(depends_on) if depends_on is not None else defaults["depends_on"],
        parent_task_id=parent_task_id,
        project_id=project_id,
        created_at=now,
        updated_at=now,
    )
