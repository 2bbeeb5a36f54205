"""SQLAlchemy database models for taskengine."""

from datetime import datetime
from typing import Type, TypeVar, Union
import uuid

from sqlalchemy import Boolean, Column, DateTime, Index, JSON, String

from taskengine.database.database import Base
from taskengine.models.task import TaskKind, TaskPriority, TaskStatus

T = TypeVar('T')


def enum_to_value(enum_obj: Union[str, T]) -> str:
    """Convert enum to string value (handles both enum and string).

    Args:
        enum_obj: Enum instance or string value

    Returns:
        String value of the enum, or the string itself if already a string
    """
    if hasattr(enum_obj, 'value'):
        return enum_obj.value
    return str(enum_obj)


def value_to_enum(value: str, enum_class: Type[T], default: T) -> T:
    """Convert string to enum with fallback to default.

    Args:
        value: String value to convert
        enum_class: Enum class to convert to
        default: Default enum value if conversion fails

    Returns:
        Enum instance, or default if conversion fails
    """
    if not value:
        return default
    try:
        return enum_class(value.lower())
    except (ValueError, AttributeError):
        return default


class TaskDB(Base):
    """Database model for Task."""

    __tablename__ = "tasks"
    __table_args__ = (
        Index("ix_tasks_owner_start", "owner_id", "start"),
        Index("ix_tasks_owner_status", "owner_id", "status"),
    )

    # Primary key
    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))

    # Owner association (tenancy scope)
    owner_id = Column(String, nullable=False, index=True)

    # Basic fields
    title = Column(String(200), nullable=False)
    kind = Column(String, nullable=False, index=True)
    priority = Column(String, nullable=False, default=TaskPriority.MEDIUM.value)
    status = Column(String, nullable=False, default=TaskStatus.PENDING.value)

    # Timing
    start = Column(DateTime, nullable=False)
    deadline = Column(DateTime, nullable=True)

    # Reminders
    reminder_enabled = Column(Boolean, nullable=False, default=False)
    reminders_fired = Column(JSON, nullable=False, default=list)

    # Recurrence pattern (stored as JSON object; null for one-off tasks)
    recurrence = Column(JSON, nullable=True)

    # Graph edges
    depends_on = Column(JSON, nullable=False, default=list)
    parent_task_id = Column(String, nullable=True, index=True)
    project_id = Column(String, nullable=True, index=True)

    # Timestamps
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_pydantic(self):
        """Convert database model to Pydantic model."""
        from taskengine.models.task import Task
        from taskengine.models.recurrence import RecurrencePattern

        recurrence = None
        if self.recurrence:
            recurrence = RecurrencePattern.model_validate(self.recurrence)

        return Task(
            id=self.id,
            owner_id=self.owner_id,
            title=self.title,
            kind=value_to_enum(self.kind, TaskKind, TaskKind.INSTANT),
            priority=value_to_enum(self.priority, TaskPriority, TaskPriority.MEDIUM),
            start=self.start,
            deadline=self.deadline,
            status=value_to_enum(self.status, TaskStatus, TaskStatus.PENDING),
            reminder_enabled=self.reminder_enabled,
            reminders_fired=self.reminders_fired or [],
            recurrence=recurrence,
            depends_on=self.depends_on or [],
            parent_task_id=self.parent_task_id,
            project_id=self.project_id,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    def apply(self, task) -> None:
        """Copy mutable fields from a Pydantic task onto this row."""
        self.title = task.title
        self.kind = enum_to_value(task.kind)
        self.priority = enum_to_value(task.priority)
        self.status = enum_to_value(task.status)
        self.start = task.start
        self.deadline = task.deadline
        self.reminder_enabled = task.reminder_enabled
        self.reminders_fired = list(task.reminders_fired)
        self.recurrence = task.recurrence.model_dump(mode="json") if task.recurrence else None
        self.depends_on = list(task.depends_on)
        self.parent_task_id = task.parent_task_id
        self.project_id = task.project_id
        self.updated_at = task.updated_at

    @classmethod
    def from_pydantic(cls, task):
        """Create database model from Pydantic model."""
        row = cls(id=task.id, owner_id=task.owner_id, created_at=task.created_at)
        row.apply(task)
        return row
