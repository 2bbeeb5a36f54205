"""FastAPI web application for taskengine."""

import logging
from contextlib import asynccontextmanager
from datetime import date, datetime
from typing import Callable, List, Optional

from fastapi import Depends, FastAPI, Header, HTTPException, Query, Request, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from taskengine.config import settings
from taskengine.database.database import SessionLocal, get_db, init_db
from taskengine.engine.errors import (
    ConflictDetected,
    DependencyUnresolved,
    EngineError,
    LimitExceeded,
    SubtasksIncomplete,
)
from taskengine.models.recurrence import RecurrencePattern
from taskengine.models.reports import ConflictReport, OvercommitmentReport, WorkloadSummary
from taskengine.models.task import TaskKind, TaskPriority, TaskStatus
from taskengine.models.task_schemas import ConflictCheckRequest, TaskCreate, TaskUpdate, TaskView
from taskengine.models.constants import DEFAULT_OVERCOMMIT_HOURS
from taskengine.recurrence import describe_recurrence, upcoming_occurrences
from taskengine.services.reminder_service import ReminderService, start_reminder_scheduler, stop_reminder_scheduler
from taskengine.services.task_service import TaskService, utcnow

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.basicConfig(level=settings.LOG_LEVEL.upper())
    init_db()
    if settings.REMINDERS_ENABLED:
        start_reminder_scheduler(ReminderService(SessionLocal))
    yield
    if settings.REMINDERS_ENABLED:
        stop_reminder_scheduler()


# Initialize FastAPI app
app = FastAPI(
    title="taskengine API",
    description="Task scheduling with conflict detection, workload limits, recurrence and reminders",
    version=settings.APP_VERSION,
    lifespan=lifespan,
)


# Response models
class TaskResponse(BaseModel):
    """Response for a single task."""
    task: TaskView


class TaskListResponse(BaseModel):
    """Response for task listing."""
    tasks: List[TaskView]
    count: int


class RecurrencePreviewRequest(BaseModel):
    start: datetime
    recurrence: RecurrencePattern
    limit: int = Field(5, ge=1, le=50)


class RecurrencePreviewResponse(BaseModel):
    description: str
    occurrences: List[datetime]


# Dependencies
def get_owner_id(x_owner_id: str = Header(...)) -> str:
    """Owner identity for tenancy scoping."""
    owner_id = x_owner_id.strip()
    if not owner_id:
        raise HTTPException(status_code=400, detail="X-Owner-Id header must not be empty")
    return owner_id


def get_clock() -> Callable[[], datetime]:
    return utcnow


def get_task_service(
    db: Session = Depends(get_db),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> TaskService:
    return TaskService(db, clock=clock)


# Error mapping
@app.exception_handler(EngineError)
async def engine_error_handler(request: Request, exc: EngineError):
    content = {"detail": exc.message}
    if isinstance(exc, ConflictDetected):
        content["conflict"] = exc.report.model_dump(mode="json")
    elif isinstance(exc, LimitExceeded):
        content["date"] = exc.date.isoformat()
        content["hours"] = round(exc.hours, 2)
        content["max_hours"] = exc.max_hours
    elif isinstance(exc, (DependencyUnresolved, SubtasksIncomplete)):
        content["task_ids"] = exc.task_ids
    logger.debug(f"{request.method} {request.url.path} rejected: {type(exc).__name__}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=content)


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy", "version": settings.APP_VERSION}


# Tasks
@app.post("/tasks", response_model=TaskResponse, status_code=201)
def create_task(
    data: TaskCreate,
    owner_id: str = Depends(get_owner_id),
    service: TaskService = Depends(get_task_service),
):
    """Create a task. Returns 409 with a conflict report on soft conflicts."""
    task = service.create_task(owner_id, data)
    return TaskResponse(task=service.get_task_view(owner_id, task))


@app.get("/tasks", response_model=TaskListResponse)
def list_tasks(
    status: Optional[TaskStatus] = Query(None),
    priority: Optional[TaskPriority] = Query(None),
    kind: Optional[TaskKind] = Query(None),
    start_date: Optional[datetime] = Query(None, description="Only tasks starting at or after this time"),
    end_date: Optional[datetime] = Query(None, description="Only tasks starting at or before this time"),
    sort: str = Query("start", pattern="^(start|priority)$"),
    owner_id: str = Depends(get_owner_id),
    service: TaskService = Depends(get_task_service),
):
    """List tasks for the owner."""
    tasks = service.list_tasks(
        owner_id,
        status=status,
        priority=priority,
        kind=kind,
        start_from=start_date,
        start_to=end_date,
        sort=sort,
    )
    views = service.get_task_views(owner_id, tasks)
    return TaskListResponse(tasks=views, count=len(views))


@app.post("/tasks/check-conflicts", response_model=ConflictReport)
def check_conflicts(
    data: ConflictCheckRequest,
    owner_id: str = Depends(get_owner_id),
    service: TaskService = Depends(get_task_service),
):
    """Dry-run conflict check; nothing is stored."""
    return service.check_conflicts(owner_id, data.kind, data.start, data.deadline, data.exclude_task_id)


@app.get("/tasks/{task_id}", response_model=TaskResponse)
def get_task(
    task_id: str,
    owner_id: str = Depends(get_owner_id),
    service: TaskService = Depends(get_task_service),
):
    task = service.get_task(owner_id, task_id)
    return TaskResponse(task=service.get_task_view(owner_id, task))


@app.patch("/tasks/{task_id}", response_model=TaskResponse)
def update_task(
    task_id: str,
    data: TaskUpdate,
    owner_id: str = Depends(get_owner_id),
    service: TaskService = Depends(get_task_service),
):
    """Partially update a task."""
    task = service.update_task(owner_id, task_id, data)
    return TaskResponse(task=service.get_task_view(owner_id, task))


@app.delete("/tasks/{task_id}", status_code=204)
def delete_task(
    task_id: str,
    owner_id: str = Depends(get_owner_id),
    service: TaskService = Depends(get_task_service),
):
    service.delete_task(owner_id, task_id)
    return Response(status_code=204)


# Workload
@app.get("/workload", response_model=WorkloadSummary)
def get_workload(
    start: date = Query(...),
    end: date = Query(...),
    owner_id: str = Depends(get_owner_id),
    service: TaskService = Depends(get_task_service),
):
    """Per-day workload between start and end (inclusive)."""
    if end < start:
        raise HTTPException(status_code=400, detail="end must not be before start")
    return service.compute_workload(owner_id, start, end)


@app.get("/workload/week", response_model=WorkloadSummary)
def get_week_workload(
    owner_id: str = Depends(get_owner_id),
    service: TaskService = Depends(get_task_service),
):
    """Workload for the current Monday-Sunday week."""
    return service.current_week_workload(owner_id)


@app.get("/workload/overcommitment", response_model=OvercommitmentReport)
def get_overcommitment(
    day: date = Query(..., alias="date"),
    max_hours: float = Query(DEFAULT_OVERCOMMIT_HOURS, gt=0),
    owner_id: str = Depends(get_owner_id),
    service: TaskService = Depends(get_task_service),
):
    return service.check_overcommitment(owner_id, day, max_hours)


# Recurrence
@app.post("/recurrence/preview", response_model=RecurrencePreviewResponse)
async def preview_recurrence(data: RecurrencePreviewRequest):
    """Describe a pattern and list its next occurrences."""
    return RecurrencePreviewResponse(
        description=describe_recurrence(data.recurrence),
        occurrences=list(upcoming_occurrences(data.start, data.recurrence, data.limit)),
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
