"""Input and view models around Task (create/update payloads, enriched views)."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from taskengine.models.constants import MAX_TITLE_LENGTH
from taskengine.models.recurrence import RecurrencePattern
from taskengine.models.task import Task, TaskKind, TaskPriority, TaskStatus


class TaskCreate(BaseModel):
    """Payload for creating a task."""

    title: str = Field(..., min_length=1, max_length=MAX_TITLE_LENGTH)
    kind: TaskKind
    priority: TaskPriority = TaskPriority.MEDIUM
    start: datetime
    deadline: Optional[datetime] = None
    status: Optional[TaskStatus] = None
    reminder_enabled: bool = False
    recurrence: Optional[RecurrencePattern] = None
    depends_on: List[str] = Field(default_factory=list)
    parent_task_id: Optional[str] = None
    project_id: Optional[str] = None
    override_conflicts: bool = Field(False, description="Accept the placement despite soft conflicts")


class TaskUpdate(BaseModel):
    """Partial update; only fields explicitly sent are applied.

    Sending `parent_task_id: null` detaches a subtask from its parent.
    """

    title: Optional[str] = Field(None, min_length=1, max_length=MAX_TITLE_LENGTH)
    priority: Optional[TaskPriority] = None
    start: Optional[datetime] = None
    deadline: Optional[datetime] = None
    status: Optional[TaskStatus] = None
    reminder_enabled: Optional[bool] = None
    recurrence: Optional[RecurrencePattern] = None
    depends_on: Optional[List[str]] = None
    parent_task_id: Optional[str] = None
    project_id: Optional[str] = None
    override_conflicts: bool = False


class ConflictCheckRequest(BaseModel):
    kind: TaskKind
    start: datetime
    deadline: Optional[datetime] = None
    exclude_task_id: Optional[str] = None


class TaskView(Task):
    """Task enriched with graph and priority information."""

    blocked_by: List[str] = Field(default_factory=list)
    is_blocked: bool = False
    subtasks: Optional[List[str]] = None
    progress: Optional[int] = None
    priority_score: int = 0
    recurrence_text: Optional[str] = None
