"""Task data model for taskengine."""

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from taskengine.models.constants import MAX_TITLE_LENGTH, REMINDER_QUARTERS
from taskengine.models.recurrence import RecurrencePattern


class TaskKind(str, Enum):
    """Task kind enumeration."""
    INSTANT = "instant"  # Point-in-time event (start only)
    SPAN = "span"  # Start plus mandatory deadline


class TaskPriority(str, Enum):
    """Task priority enumeration."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class TaskStatus(str, Enum):
    """Task status enumeration."""
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


def to_utc_naive(value: Optional[datetime]) -> Optional[datetime]:
    """Normalize a datetime to naive UTC (all engine comparisons happen in UTC)."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class Task(BaseModel):
    """Canonical Task model."""

    id: str = Field(..., description="Unique task identifier (UUID v4)")
    owner_id: str = Field(..., description="Owner who this task belongs to")
    title: str = Field(..., min_length=1, max_length=MAX_TITLE_LENGTH, description="Task title")
    kind: TaskKind = Field(..., description="Instant event or span with a deadline")
    priority: TaskPriority = Field(TaskPriority.MEDIUM, description="Base priority")
    start: datetime = Field(..., description="Start timestamp (UTC)")
    deadline: Optional[datetime] = Field(None, description="Deadline (UTC); required for span tasks")
    status: TaskStatus = Field(TaskStatus.PENDING, description="Task status")
    reminder_enabled: bool = Field(False, description="Whether reminders are sent for this task")
    reminders_fired: List[int] = Field(default_factory=list, description="Reminder quarters already sent")
    recurrence: Optional[RecurrencePattern] = Field(None, description="Recurrence pattern (recurring tasks only)")
    depends_on: List[str] = Field(default_factory=list, description="Task IDs that must be completed first")
    parent_task_id: Optional[str] = Field(None, description="Parent task ID if this is a subtask")
    project_id: Optional[str] = Field(None, description="Opaque project grouping reference")
    created_at: datetime = Field(..., description="Task creation timestamp")
    updated_at: datetime = Field(..., description="Task last update timestamp")

    class Config:
        """Pydantic configuration."""
        use_enum_values = True

    @field_validator("start", "deadline", "created_at", "updated_at")
    @classmethod
    def _normalize_utc(cls, v):
        return to_utc_naive(v)

    @field_validator("reminders_fired")
    @classmethod
    def _validate_reminders_fired(cls, v):
        for quarter in v:
            if quarter not in REMINDER_QUARTERS:
                raise ValueError(f"invalid reminder quarter {quarter}")
        return sorted(set(v))

    @model_validator(mode="after")
    def _validate_shape(self):
        if self.kind == TaskKind.SPAN:
            if self.deadline is None:
                raise ValueError("span tasks must have a deadline")
            if self.deadline <= self.start:
                raise ValueError("deadline must be after start")
        elif self.deadline is not None:
            raise ValueError("instant tasks cannot have a deadline")
        if self.id in self.depends_on:
            raise ValueError("a task cannot depend on itself")
        if self.parent_task_id is not None and self.parent_task_id == self.id:
            raise ValueError("a task cannot be its own parent")
        return self

    @property
    def is_recurring(self) -> bool:
        return self.recurrence is not None

    @property
    def is_completed(self) -> bool:
        return self.status == TaskStatus.COMPLETED

    @property
    def end(self) -> datetime:
        """End of the task's interval (zero-width for instant tasks)."""
        return self.deadline if self.deadline is not None else self.start
