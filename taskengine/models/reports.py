"""Engine result models: conflict reports, slot suggestions and workload views."""

import datetime as dt
from typing import List, Optional

from pydantic import BaseModel, Field


class SlotSuggestion(BaseModel):
    """A proposed placement for a span task. Informational only."""

    start: dt.datetime
    deadline: dt.datetime
    reason: str


class ConflictEntry(BaseModel):
    """A group of tasks that overlap the candidate."""

    conflicting_task_ids: List[str]
    message: str = "You already have a task scheduled during this time."
    severity: str = Field("soft", description="Conflicts are advisory and never hard-blocking")


class ConflictReport(BaseModel):
    """Result of a conflict check."""

    has_conflict: bool = False
    conflicts: List[ConflictEntry] = Field(default_factory=list)
    suggested_slots: Optional[List[SlotSuggestion]] = None
    candidate_duration_ms: Optional[int] = None


class DailyLimitResult(BaseModel):
    """Result of the daily hour-limit guard."""

    exceeds: bool = False
    date: Optional[dt.date] = None
    hours: Optional[float] = None


class TaskFragment(BaseModel):
    """Portion of a task's hours attributed to one calendar day."""

    task_id: str
    hours: float


class DailyWorkload(BaseModel):
    date: dt.date
    total_hours: float = 0.0
    task_count: int = 0
    tasks: List[TaskFragment] = Field(default_factory=list)


class WorkloadSummary(BaseModel):
    daily_workloads: List[DailyWorkload]
    range_total_hours: float
    average_per_day: float
    busiest_date: Optional[dt.date] = None
    max_hours_per_day: float = 0.0


class OvercommitmentReport(BaseModel):
    is_overcommitted: bool
    hours: float
    max_hours: float
    message: str
