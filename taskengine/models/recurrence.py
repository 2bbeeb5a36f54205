"""Recurrence pattern model for taskengine.

A recurring task is a single task whose current occurrence is rolled forward
in place each time it is completed. The pattern describes how to compute the
next occurrence and when the series ends.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class RecurrenceFrequency(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class RecurrencePattern(BaseModel):
    """Recurrence definition for a task.

    Notes:
    - `days_of_week` uses 0=Sunday ... 6=Saturday and only applies to weekly patterns.
    - `day_of_month` only applies to monthly patterns.
    - At most one end condition may be set; neither means the series never ends.
    """

    frequency: RecurrenceFrequency
    interval: int = Field(1, ge=1, description="Every N units (days/weeks/months/years)")

    end_date: Optional[datetime] = Field(None, description="Series ends once the next occurrence is past this")
    occurrences_remaining: Optional[int] = Field(
        None, ge=1, description="Occurrences left in the series, including the current one"
    )

    days_of_week: Optional[List[int]] = Field(
        None, description="For weekly recurrence: weekday indices (0=Sunday)"
    )
    day_of_month: Optional[int] = Field(None, ge=1, le=31, description="For monthly recurrence")

    class Config:
        """Pydantic configuration."""
        use_enum_values = True

    @field_validator("days_of_week")
    @classmethod
    def _validate_days_of_week(cls, v):
        if v is None:
            return None
        for day in v:
            if day < 0 or day > 6:
                raise ValueError("days_of_week entries must be between 0 (Sunday) and 6 (Saturday)")
        return sorted(set(v))

    @field_validator("end_date")
    @classmethod
    def _validate_end_date(cls, v):
        if v is not None and v.tzinfo is not None:
            return v.astimezone(timezone.utc).replace(tzinfo=None)
        return v

    @model_validator(mode="after")
    def _validate_shape(self):
        if self.end_date is not None and self.occurrences_remaining is not None:
            raise ValueError("recurrence cannot have both end_date and occurrences_remaining")
        if self.days_of_week and self.frequency != RecurrenceFrequency.WEEKLY:
            raise ValueError("days_of_week is only valid for weekly recurrence")
        if self.day_of_month is not None and self.frequency != RecurrenceFrequency.MONTHLY:
            raise ValueError("day_of_month is only valid for monthly recurrence")
        return self
