"""Constants for taskengine.

This module centralizes all magic numbers and default values used by the engine.
"""

# Daily hour ceiling (hour-limit guard and workload cap)
MAX_HOURS_PER_DAY = 24.0

# Free-slot search
FREE_SLOT_HORIZON_DAYS = 7
MAX_SLOT_SUGGESTIONS = 3

# Priority scoring
PRIORITY_BASE_SCORES = {
    "low": 1,
    "medium": 2,
    "high": 3,
}
PRIORITY_BASE_MULTIPLIER = 10
OVERDUE_BONUS = 100
# (hours until deadline, bonus) checked in order; first match wins
DEADLINE_URGENCY_BONUSES = (
    (2, 50),
    (6, 30),
    (24, 20),
    (48, 10),
    (168, 5),
)
IN_PROGRESS_BONUS = 15
COMPLETED_SCORE = -1000

# Reminder quarters (% of time remaining)
REMINDER_QUARTERS = (0, 25, 50, 75)

# Workload
DEFAULT_OVERCOMMIT_HOURS = 8.0

# Task defaults
MAX_TITLE_LENGTH = 200
