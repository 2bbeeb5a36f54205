"""Free-slot finder for taskengine.

Sweeps forward from an anchor time through the owner's busy intervals and
proposes up to three placements for a span task of a given duration.
Suggestions are informational only and never applied automatically.
"""

import logging
from datetime import datetime, timedelta
from typing import List, Sequence, Tuple

from taskengine.models.constants import FREE_SLOT_HORIZON_DAYS, MAX_SLOT_SUGGESTIONS
from taskengine.models.reports import SlotSuggestion

logger = logging.getLogger(__name__)

REASON_GAP = "Free slot before your next task"
REASON_AFTER_ALL = "Available after your scheduled tasks"
REASON_FALLBACK = "First available time after your tasks"


def find_free_slots(
    busy: Sequence[Tuple[datetime, datetime]],
    duration_ms: int,
    anchor: datetime,
    horizon_days: int = FREE_SLOT_HORIZON_DAYS,
    max_suggestions: int = MAX_SLOT_SUGGESTIONS,
) -> List[SlotSuggestion]:
    """Find free placements for a task of the given duration.

    Args:
        busy: Busy (start, end) pairs; instant tasks are zero-width
        duration_ms: Required duration in milliseconds
        anchor: Search start, normally max(requested start, now)
        horizon_days: How far past the anchor to search
        max_suggestions: Maximum suggestions to return

    Returns:
        Up to max_suggestions suggestions in chronological order
    """
    duration = timedelta(milliseconds=duration_ms)
    horizon = anchor + timedelta(days=horizon_days)
    blocks = sorted(busy, key=lambda b: b[0])

    suggestions: List[SlotSuggestion] = []
    cursor = anchor

    for block_start, block_end in blocks:
        if block_start >= horizon:
            break
        if block_start - cursor >= duration and cursor + duration <= horizon:
            suggestions.append(
                SlotSuggestion(start=cursor, deadline=cursor + duration, reason=REASON_GAP)
            )
            if len(suggestions) >= max_suggestions:
                break
        cursor = max(cursor, block_end)

    if len(suggestions) < max_suggestions and cursor + duration <= horizon:
        suggestions.append(
            SlotSuggestion(start=cursor, deadline=cursor + duration, reason=REASON_AFTER_ALL)
        )

    if not suggestions:
        # Nothing fits inside the horizon: fall back to right after the last busy block.
        fallback = max(anchor, blocks[-1][1]) if blocks else anchor
        suggestions.append(
            SlotSuggestion(start=fallback, deadline=fallback + duration, reason=REASON_FALLBACK)
        )

    logger.debug(f"Found {len(suggestions)} slot suggestions for {duration_ms}ms from {anchor.isoformat()}")
    return suggestions
