"""Dependency and subtask graph.

Tasks are held in an id-keyed map; parent and dependency edges are ids, never
object references, so cycle checks are plain ancestor-chain walks.
"""

import logging
from collections import defaultdict
from typing import Dict, Iterable, List, Optional

from taskengine.engine.errors import (
    CircularDependency,
    DependencyUnresolved,
    SubtasksIncomplete,
    TaskValidationError,
)
from taskengine.models.task import Task, TaskStatus

logger = logging.getLogger(__name__)


class TaskGraph:
    """Read-only view over one owner's tasks for dependency/subtask rules."""

    def __init__(self, tasks: Iterable[Task], owner_id: str):
        self.owner_id = owner_id
        self.tasks: Dict[str, Task] = {t.id: t for t in tasks if t.owner_id == owner_id}
        self._children: Dict[str, List[str]] = defaultdict(list)
        for task in self.tasks.values():
            if task.parent_task_id:
                self._children[task.parent_task_id].append(task.id)

    def get(self, task_id: str) -> Optional[Task]:
        return self.tasks.get(task_id)

    def _is_completed(self, task_id: str) -> bool:
        task = self.tasks.get(task_id)
        return task is not None and task.status == TaskStatus.COMPLETED

    # Dependencies

    def validate_dependencies(self, depends_on: Iterable[str], task_id: Optional[str] = None) -> None:
        """Every dependency must be an existing task of the same owner."""
        depends_on = list(depends_on)
        if task_id is not None and task_id in depends_on:
            raise TaskValidationError("A task cannot depend on itself")
        missing = [dep for dep in depends_on if dep not in self.tasks]
        if missing:
            raise DependencyUnresolved("One or more dependency tasks not found", missing)

    def blocked_by(self, task: Task) -> List[str]:
        """Dependency ids that are not yet completed."""
        return [dep for dep in task.depends_on if not self._is_completed(dep)]

    def is_blocked(self, task: Task) -> bool:
        return bool(self.blocked_by(task))

    # Parent / subtask chain

    def validate_parent(self, task_id: Optional[str], parent_id: str) -> None:
        """Parent must exist for this owner and must not create a cycle."""
        if parent_id not in self.tasks:
            raise TaskValidationError("Parent task not found")
        if task_id is not None:
            self.ensure_no_cycle(task_id, parent_id)

    def ancestors(self, task_id: str) -> List[str]:
        """Walk parent pointers from task_id to the root (task_id excluded)."""
        chain: List[str] = []
        seen = {task_id}
        cur = self.tasks.get(task_id)
        while cur is not None and cur.parent_task_id:
            parent_id = cur.parent_task_id
            if parent_id in seen:
                # Corrupt snapshot; stop rather than loop forever.
                logger.warning(f"Parent chain of task {task_id} already contains a cycle at {parent_id}")
                break
            chain.append(parent_id)
            seen.add(parent_id)
            cur = self.tasks.get(parent_id)
        return chain

    def creates_cycle(self, task_id: str, parent_id: str) -> bool:
        """True if making parent_id the parent of task_id would close a loop."""
        if task_id == parent_id:
            return True
        return task_id in self.ancestors(parent_id)

    def ensure_no_cycle(self, task_id: str, parent_id: str) -> None:
        if self.creates_cycle(task_id, parent_id):
            raise CircularDependency(task_id, parent_id)

    def subtask_ids(self, task_id: str) -> List[str]:
        return list(self._children.get(task_id, []))

    def incomplete_subtasks(self, task_id: str) -> List[str]:
        return [sid for sid in self.subtask_ids(task_id) if not self._is_completed(sid)]

    def compute_progress(self, task_id: str) -> Optional[int]:
        """Percent of subtasks completed, or None when the task has no subtasks."""
        subtasks = self.subtask_ids(task_id)
        if not subtasks:
            return None
        completed = sum(1 for sid in subtasks if self._is_completed(sid))
        return round(100 * completed / len(subtasks))

    # Status transitions

    def check_status_transition(self, task: Task, new_status: TaskStatus) -> None:
        """Reject starting or completing a task that is blocked.

        Completing also requires every subtask to be completed.
        """
        if new_status == TaskStatus.COMPLETED:
            incomplete = self.incomplete_subtasks(task.id)
            if incomplete:
                raise SubtasksIncomplete(incomplete)
        if new_status in (TaskStatus.IN_PROGRESS, TaskStatus.COMPLETED):
            blocking = self.blocked_by(task)
            if blocking:
                verb = "start" if new_status == TaskStatus.IN_PROGRESS else "complete"
                raise DependencyUnresolved(
                    f"Cannot {verb} task - the following dependencies must be completed first: "
                    + ", ".join(blocking),
                    blocking,
                )

    def should_auto_complete(self, parent_id: str) -> bool:
        """True when the parent has subtasks, all completed, and is itself open."""
        parent = self.tasks.get(parent_id)
        if parent is None or parent.status == TaskStatus.COMPLETED:
            return False
        subtasks = self.subtask_ids(parent_id)
        return bool(subtasks) and all(self._is_completed(sid) for sid in subtasks)

    def with_task(self, task: Task) -> "TaskGraph":
        """A new graph with task inserted or replaced."""
        tasks = dict(self.tasks)
        tasks[task.id] = task
        return TaskGraph(tasks.values(), self.owner_id)
