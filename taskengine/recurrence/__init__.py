"""Recurrence engine for taskengine."""

from taskengine.recurrence.next_occurrence import (
    describe_recurrence,
    next_occurrence,
    upcoming_occurrences,
)
from taskengine.recurrence.advance import OccurrenceTransition, complete_occurrence

__all__ = [
    "describe_recurrence",
    "next_occurrence",
    "upcoming_occurrences",
    "OccurrenceTransition",
    "complete_occurrence",
]
