"""Repository layer for database operations."""

import logging
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from taskengine.models.task import Task, TaskKind, TaskStatus
from taskengine.database.models import TaskDB, enum_to_value

logger = logging.getLogger(__name__)


class TaskRepository:
    """Repository for Task database operations."""

    def __init__(self, db: Session):
        self.db = db

    def create(self, task: Task) -> Task:
        """Create a new task."""
        try:
            task_db = TaskDB.from_pydantic(task)
            self.db.add(task_db)
            self.db.commit()
            self.db.refresh(task_db)
            logger.debug(f"Created task {task.id}: {task.title[:50]}")
            return task_db.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to create task {task.id}: {type(e).__name__}: {str(e)}")
            raise

    def get(self, owner_id: str, task_id: str) -> Optional[Task]:
        """Get task by ID for a specific owner."""
        task_db = self.db.query(TaskDB).filter(
            TaskDB.id == task_id,
            TaskDB.owner_id == owner_id,
        ).first()
        return task_db.to_pydantic() if task_db else None

    def get_all(self, owner_id: str) -> List[Task]:
        """Snapshot of every task for an owner, ordered by start."""
        tasks_db = self.db.query(TaskDB).filter(
            TaskDB.owner_id == owner_id,
        ).order_by(TaskDB.start).all()
        return [task_db.to_pydantic() for task_db in tasks_db]

    def list(
        self,
        owner_id: str,
        status: Optional[TaskStatus] = None,
        priority: Optional[str] = None,
        kind: Optional[TaskKind] = None,
        start_from: Optional[datetime] = None,
        start_to: Optional[datetime] = None,
    ) -> List[Task]:
        """Filtered task list for an owner, ordered by start."""
        query = self.db.query(TaskDB).filter(TaskDB.owner_id == owner_id)
        if status is not None:
            query = query.filter(TaskDB.status == enum_to_value(status))
        if priority is not None:
            query = query.filter(TaskDB.priority == enum_to_value(priority))
        if kind is not None:
            query = query.filter(TaskDB.kind == enum_to_value(kind))
        if start_from is not None:
            query = query.filter(TaskDB.start >= start_from)
        if start_to is not None:
            query = query.filter(TaskDB.start <= start_to)
        return [task_db.to_pydantic() for task_db in query.order_by(TaskDB.start).all()]

    def get_for_reminders(self, now: datetime, grace: timedelta = timedelta(0)) -> List[Task]:
        """Tasks across all owners that may have a reminder due."""
        cutoff = now - grace
        tasks_db = self.db.query(TaskDB).filter(
            TaskDB.reminder_enabled.is_(True),
            TaskDB.status != TaskStatus.COMPLETED.value,
            or_(
                and_(TaskDB.kind == TaskKind.INSTANT.value, TaskDB.start >= cutoff),
                and_(TaskDB.kind == TaskKind.SPAN.value, TaskDB.deadline >= cutoff),
            ),
        ).all()
        return [task_db.to_pydantic() for task_db in tasks_db]

    def update(self, task: Task) -> Task:
        """Update an existing task (owner_id must match task.owner_id)."""
        task_db = self.db.query(TaskDB).filter(
            TaskDB.id == task.id,
            TaskDB.owner_id == task.owner_id,
        ).first()
        if not task_db:
            raise ValueError(f"Task {task.id} not found")

        task_db.apply(task)

        try:
            self.db.commit()
            self.db.refresh(task_db)
            logger.debug(f"Updated task {task.id}: {task.title[:50]}")
            return task_db.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to update task {task.id}: {type(e).__name__}: {str(e)}")
            raise

    def add_reminder_fired(self, task_id: str, quarter: int) -> bool:
        """Record a fired reminder quarter. Returns False if it was already recorded."""
        task_db = self.db.query(TaskDB).filter(TaskDB.id == task_id).first()
        if not task_db:
            return False
        fired = list(task_db.reminders_fired or [])
        if quarter in fired:
            return False
        # Reassign so SQLAlchemy detects the JSON change.
        task_db.reminders_fired = sorted(fired + [quarter])
        try:
            self.db.commit()
            return True
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to record reminder {quarter} for task {task_id}: {type(e).__name__}: {str(e)}")
            raise

    def delete(self, owner_id: str, task_id: str) -> bool:
        """Delete a task by ID for a specific owner."""
        task_db = self.db.query(TaskDB).filter(
            TaskDB.id == task_id,
            TaskDB.owner_id == owner_id,
        ).first()
        if not task_db:
            return False

        try:
            self.db.delete(task_db)
            self.db.commit()
            logger.debug(f"Deleted task {task_id}")
            return True
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to delete task {task_id}: {type(e).__name__}: {str(e)}")
            raise
