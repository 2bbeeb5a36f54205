"""Task service: the engine's caller.

Loads an owner's task snapshot, runs the engine's checks against a candidate
mutation and persists accepted changes. Each owner's validate-then-mutate
sequence runs under a per-owner lock so two requests cannot both pass the
conflict check against the same stale snapshot within this process.
"""

import logging
import threading
import weakref
from contextlib import contextmanager
from datetime import date, datetime, timedelta
from typing import Callable, Iterator, List, Optional

from pydantic import ValidationError
from sqlalchemy.orm import Session

from taskengine.database.repository import TaskRepository
from taskengine.engine.conflicts import check_conflicts
from taskengine.engine.daily_limit import check_daily_limit
from taskengine.engine.dependencies import TaskGraph
from taskengine.engine.errors import ConflictDetected, LimitExceeded, TaskNotFound, TaskValidationError
from taskengine.engine.intervals import Interval, make_interval
from taskengine.engine.priority import priority_score, sort_by_priority
from taskengine.engine.workload import check_overcommitment, compute_workload, current_week_range
from taskengine.models.constants import DEFAULT_OVERCOMMIT_HOURS, MAX_HOURS_PER_DAY
from taskengine.models.reports import ConflictReport, OvercommitmentReport, WorkloadSummary
from taskengine.models.task import Task, TaskKind, TaskStatus, to_utc_naive
from taskengine.models.task_factory import create_task_base
from taskengine.models.task_schemas import TaskCreate, TaskUpdate, TaskView
from taskengine.recurrence import complete_occurrence, describe_recurrence

logger = logging.getLogger(__name__)

# Entries drop out once no request holds or waits on the owner's lock.
_owner_locks: "weakref.WeakValueDictionary[str, threading.Lock]" = weakref.WeakValueDictionary()
_owner_locks_guard = threading.Lock()


@contextmanager
def owner_lock(owner_id: str) -> Iterator[None]:
    """Serialize mutations for one owner."""
    with _owner_locks_guard:
        lock = _owner_locks.get(owner_id)
        if lock is None:
            lock = threading.Lock()
            _owner_locks[owner_id] = lock
    with lock:
        yield


def utcnow() -> datetime:
    return datetime.utcnow()


class TaskService:
    """Service layer for task business logic."""

    def __init__(self, db: Session, clock: Optional[Callable[[], datetime]] = None):
        """
        Args:
            db: Database session
            clock: Optional clock function for testing (returns naive UTC datetime)
        """
        self.repository = TaskRepository(db)
        self._clock = clock or utcnow

    def _now(self) -> datetime:
        return to_utc_naive(self._clock())

    def _snapshot(self, owner_id: str) -> List[Task]:
        return self.repository.get_all(owner_id)

    @staticmethod
    def _find(tasks: List[Task], task_id: str) -> Task:
        for task in tasks:
            if task.id == task_id:
                return task
        raise TaskNotFound(task_id)

    # Placement checks

    def check_conflicts(
        self,
        owner_id: str,
        kind: TaskKind,
        start: datetime,
        deadline: Optional[datetime] = None,
        exclude_task_id: Optional[str] = None,
    ) -> ConflictReport:
        """Dry-run conflict check for a candidate placement."""
        candidate = make_interval(to_utc_naive(start), to_utc_naive(deadline), kind)
        return check_conflicts(owner_id, candidate, self._snapshot(owner_id), self._now(), exclude_task_id)

    def _validate_placement(
        self,
        owner_id: str,
        candidate: Interval,
        tasks: List[Task],
        exclude_task_id: Optional[str],
        override_conflicts: bool,
        now: datetime,
    ) -> None:
        if not override_conflicts:
            report = check_conflicts(owner_id, candidate, tasks, now, exclude_task_id)
            if report.has_conflict:
                raise ConflictDetected(report)

        limit = check_daily_limit(owner_id, candidate, tasks, exclude_task_id)
        if limit.exceeds:
            raise LimitExceeded(limit.date, limit.hours, MAX_HOURS_PER_DAY)

    # CRUD

    def create_task(self, owner_id: str, data: TaskCreate) -> Task:
        """Validate and persist a new task.

        Raises:
            ConflictDetected: soft conflict and override_conflicts not set
            LimitExceeded: a day would exceed the daily ceiling
            DependencyUnresolved / TaskValidationError: bad graph references
        """
        with owner_lock(owner_id):
            now = self._now()
            try:
                task = create_task_base(
                    owner_id=owner_id,
                    title=data.title,
                    kind=data.kind,
                    start=data.start,
                    now=now,
                    deadline=data.deadline,
                    priority=data.priority,
                    status=data.status,
                    reminder_enabled=data.reminder_enabled,
                    recurrence=data.recurrence,
                    depends_on=data.depends_on,
                    parent_task_id=data.parent_task_id,
                    project_id=data.project_id,
                )
            except ValidationError as e:
                raise TaskValidationError(str(e)) from e

            tasks = self._snapshot(owner_id)
            graph = TaskGraph(tasks, owner_id)
            graph.validate_dependencies(task.depends_on, task.id)
            if task.parent_task_id:
                graph.validate_parent(task.id, task.parent_task_id)
            if task.status != TaskStatus.PENDING:
                graph.with_task(task).check_status_transition(task, TaskStatus(task.status))

            self._validate_placement(
                owner_id,
                make_interval(task.start, task.deadline, TaskKind(task.kind)),
                tasks,
                None,
                data.override_conflicts,
                now,
            )

            created = self.repository.create(task)
            logger.info(f"Owner {owner_id}: created task {created.id}")
            return created

    def get_task(self, owner_id: str, task_id: str) -> Task:
        task = self.repository.get(owner_id, task_id)
        if task is None:
            raise TaskNotFound(task_id)
        return task

    def list_tasks(
        self,
        owner_id: str,
        status: Optional[TaskStatus] = None,
        priority: Optional[str] = None,
        kind: Optional[TaskKind] = None,
        start_from: Optional[datetime] = None,
        start_to: Optional[datetime] = None,
        sort: str = "start",
    ) -> List[Task]:
        tasks = self.repository.list(
            owner_id,
            status=status,
            priority=priority,
            kind=kind,
            start_from=to_utc_naive(start_from),
            start_to=to_utc_naive(start_to),
        )
        if sort == "priority":
            return sort_by_priority(tasks, self._now())
        return tasks

    def update_task(self, owner_id: str, task_id: str, data: TaskUpdate) -> Task:
        """Apply a partial update after running placement and graph checks."""
        with owner_lock(owner_id):
            now = self._now()
            tasks = self._snapshot(owner_id)
            current = self._find(tasks, task_id)
            fields = data.model_dump(exclude_unset=True, exclude={"override_conflicts"})
            new_status = fields.pop("status", None)
            # Only parent_task_id, deadline, recurrence and project_id may be cleared with null.
            for key in ("title", "priority", "start", "reminder_enabled", "depends_on"):
                if key in fields and fields[key] is None:
                    del fields[key]

            graph = TaskGraph(tasks, owner_id)
            if "depends_on" in fields:
                graph.validate_dependencies(fields["depends_on"], task_id)
            if fields.get("parent_task_id"):
                graph.validate_parent(task_id, fields["parent_task_id"])

            try:
                candidate = Task.model_validate({**current.model_dump(), **fields, "updated_at": now})
            except ValidationError as e:
                raise TaskValidationError(str(e)) from e

            if candidate.start != current.start or candidate.deadline != current.deadline:
                self._validate_placement(
                    owner_id,
                    make_interval(candidate.start, candidate.deadline, TaskKind(candidate.kind)),
                    tasks,
                    task_id,
                    data.override_conflicts,
                    now,
                )

            graph = graph.with_task(candidate)
            if new_status is not None:
                graph.check_status_transition(candidate, TaskStatus(new_status))

            if new_status == TaskStatus.COMPLETED and candidate.is_recurring:
                transition = complete_occurrence(candidate, now)
                updated = transition.task
                logger.info(
                    f"Owner {owner_id}: recurring task {task_id} "
                    + ("series ended" if transition.series_ended else f"advanced to {updated.start.isoformat()}")
                )
            elif new_status is not None:
                update = {"status": new_status}
                if new_status == TaskStatus.COMPLETED:
                    update["reminder_enabled"] = False
                updated = candidate.model_copy(update=update)
            else:
                updated = candidate

            saved = self.repository.update(updated)

            # Only a completion made by this update re-checks the parent.
            if saved.parent_task_id and new_status == TaskStatus.COMPLETED and saved.status == TaskStatus.COMPLETED:
                self._auto_complete_ancestors(owner_id, saved.parent_task_id, graph.with_task(saved), now)
            return saved

    def _auto_complete_ancestors(self, owner_id: str, parent_id: str, graph: TaskGraph, now: datetime) -> None:
        """Complete parents whose subtasks are now all completed, walking up the chain."""
        while parent_id and graph.should_auto_complete(parent_id):
            parent = graph.get(parent_id)
            update = {"status": TaskStatus.COMPLETED, "updated_at": now}
            if parent.kind == TaskKind.SPAN:
                update["reminder_enabled"] = False
            saved = self.repository.update(parent.model_copy(update=update))
            logger.info(f"Owner {owner_id}: auto-completed parent task {parent_id}")
            graph = graph.with_task(saved)
            parent_id = saved.parent_task_id

    def delete_task(self, owner_id: str, task_id: str) -> None:
        """Delete a task and detach references to it from other tasks."""
        with owner_lock(owner_id):
            tasks = self._snapshot(owner_id)
            self._find(tasks, task_id)
            now = self._now()
            for task in tasks:
                if task.id == task_id:
                    continue
                update = {}
                if task_id in task.depends_on:
                    update["depends_on"] = [d for d in task.depends_on if d != task_id]
                if task.parent_task_id == task_id:
                    update["parent_task_id"] = None
                if update:
                    update["updated_at"] = now
                    self.repository.update(task.model_copy(update=update))
            self.repository.delete(owner_id, task_id)
            logger.info(f"Owner {owner_id}: deleted task {task_id}")

    # Views

    def get_task_view(self, owner_id: str, task: Task) -> TaskView:
        return self.get_task_views(owner_id, [task])[0]

    def get_task_views(self, owner_id: str, tasks: List[Task]) -> List[TaskView]:
        """Enrich tasks with blocked/progress/priority information."""
        graph = TaskGraph(self._snapshot(owner_id), owner_id)
        now = self._now()
        views: List[TaskView] = []
        for task in tasks:
            blocked_by = graph.blocked_by(task)
            subtasks = graph.subtask_ids(task.id)
            views.append(
                TaskView(
                    **task.model_dump(),
                    blocked_by=blocked_by,
                    is_blocked=bool(blocked_by),
                    subtasks=subtasks or None,
                    progress=graph.compute_progress(task.id),
                    priority_score=priority_score(task, now),
                    recurrence_text=describe_recurrence(task.recurrence) if task.recurrence else None,
                )
            )
        return views

    # Workload

    def compute_workload(self, owner_id: str, start: date, end: date) -> WorkloadSummary:
        return compute_workload(owner_id, self._snapshot(owner_id), start, end)

    def current_week_workload(self, owner_id: str) -> WorkloadSummary:
        monday, sunday = current_week_range(self._now())
        return self.compute_workload(owner_id, monday, sunday)

    def check_overcommitment(
        self, owner_id: str, day: date, max_hours: float = DEFAULT_OVERCOMMIT_HOURS
    ) -> OvercommitmentReport:
        return check_overcommitment(owner_id, self._snapshot(owner_id), day, max_hours)

    # Reminder support

    def tasks_for_reminders(self, now: datetime, grace: timedelta = timedelta(0)) -> List[Task]:
        """Reminder candidates across owners."""
        return self.repository.get_for_reminders(to_utc_naive(now), grace)

    def mark_reminder_fired(self, task_id: str, quarter: int) -> bool:
        return self.repository.add_reminder_fired(task_id, quarter)
