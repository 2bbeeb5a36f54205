"""Reminder sweep.

A background job periodically loads reminder candidates, fires any due quarter
that has not fired yet and records it so the same quarter never fires twice.
"""

import logging
from datetime import datetime, timedelta
from typing import Callable, List, Optional, Tuple

from apscheduler.schedulers.background import BackgroundScheduler
from sqlalchemy.orm import Session

from taskengine.config import settings
from taskengine.engine.reminders import build_reminder_message, is_reminder_eligible, pending_reminder_quarter
from taskengine.models.task import Task, to_utc_naive
from taskengine.services.task_service import TaskService, utcnow

logger = logging.getLogger(__name__)


class Notifier:
    """Delivery channel for reminder messages."""

    def notify(self, task: Task, quarter: int, message: str) -> None:
        raise NotImplementedError


class LoggingNotifier(Notifier):
    """Writes reminders to the application log."""

    def notify(self, task: Task, quarter: int, message: str) -> None:
        logger.info(f"Reminder for owner {task.owner_id}, task {task.id}: {message}")


class ReminderService:
    """Finds and fires due reminders across all owners."""

    def __init__(
        self,
        session_factory: Callable[[], Session],
        notifier: Optional[Notifier] = None,
        clock: Optional[Callable[[], datetime]] = None,
        grace: Optional[timedelta] = None,
    ):
        self.session_factory = session_factory
        self.notifier = notifier or LoggingNotifier()
        self._clock = clock or utcnow
        self.grace = grace if grace is not None else timedelta(minutes=settings.REMINDER_GRACE_MINUTES)

    def process_reminders(self, now: Optional[datetime] = None) -> List[Tuple[str, int]]:
        """Run one sweep.

        Returns:
            (task_id, quarter) pairs fired during this sweep
        """
        now = to_utc_naive(now or self._clock())
        fired: List[Tuple[str, int]] = []
        db = self.session_factory()
        try:
            service = TaskService(db, clock=lambda: now)
            for task in service.tasks_for_reminders(now, self.grace):
                if not is_reminder_eligible(task, now, self.grace):
                    continue
                quarter = pending_reminder_quarter(task, now)
                if quarter is None:
                    continue
                # Record first; a concurrent sweep that lost the race sees False and skips.
                if not service.mark_reminder_fired(task.id, quarter):
                    continue
                self.notifier.notify(task, quarter, build_reminder_message(task, quarter))
                fired.append((task.id, quarter))
        finally:
            db.close()

        if fired:
            logger.info(f"Reminder sweep fired {len(fired)} reminder(s)")
        return fired


scheduler = BackgroundScheduler()


def start_reminder_scheduler(reminder_service: ReminderService) -> BackgroundScheduler:
    """Schedule the sweep every REMINDER_SWEEP_MINUTES and start the scheduler."""
    scheduler.add_job(
        reminder_service.process_reminders,
        "interval",
        minutes=settings.REMINDER_SWEEP_MINUTES,
        id="reminder_sweep",
        replace_existing=True,
        next_run_time=datetime.now(),
    )
    if not scheduler.running:
        scheduler.start()
    logger.info(f"Reminder scheduler started (every {settings.REMINDER_SWEEP_MINUTES} min)")
    return scheduler


def stop_reminder_scheduler() -> None:
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Reminder scheduler stopped")
