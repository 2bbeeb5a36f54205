"""Tests for reminder quarter selection and the reminder sweep."""

from datetime import timedelta

import pytest

from taskengine.engine.reminders import (
    build_reminder_message,
    due_reminder_quarter,
    is_reminder_eligible,
    pending_reminder_quarter,
    reference_time,
)
from taskengine.models.task import TaskKind, TaskStatus
from taskengine.services.reminder_service import Notifier, ReminderService


class RecordingNotifier(Notifier):
    def __init__(self):
        self.sent = []

    def notify(self, task, quarter, message):
        self.sent.append((task.id, quarter, message))


class TestQuarterSelection:
    """Created at now, reference time 100 minutes later."""

    @pytest.fixture
    def task(self, make_task, fixed_now):
        return make_task(
            start=fixed_now,
            deadline=fixed_now + timedelta(minutes=100),
            reminder_enabled=True,
        )

    @pytest.mark.parametrize(
        "elapsed_minutes,quarter",
        [(10, None), (25, 75), (40, 75), (50, 50), (74, 50), (75, 25), (99, 25), (100, 0), (130, 0)],
    )
    def test_quarter_for_elapsed_time(self, task, fixed_now, elapsed_minutes, quarter):
        assert due_reminder_quarter(task, fixed_now + timedelta(minutes=elapsed_minutes)) == quarter

    def test_already_fired_quarter_is_not_pending(self, task, fixed_now):
        fired = task.model_copy(update={"reminders_fired": [50]})
        now = fixed_now + timedelta(minutes=60)

        assert due_reminder_quarter(fired, now) == 50
        assert pending_reminder_quarter(fired, now) is None

    def test_instant_uses_start(self, make_task, fixed_now):
        task = make_task(kind=TaskKind.INSTANT, start=fixed_now + timedelta(hours=4))
        assert reference_time(task) == task.start
        assert due_reminder_quarter(task, fixed_now + timedelta(hours=3)) == 25

    def test_zero_length_window(self, make_task, fixed_now):
        task = make_task(kind=TaskKind.INSTANT, start=fixed_now + timedelta(hours=1),
                         created_at=fixed_now + timedelta(hours=2))
        assert due_reminder_quarter(task, fixed_now) is None


class TestEligibility:
    def test_disabled_or_completed_not_eligible(self, make_task, fixed_now):
        assert is_reminder_eligible(make_task(reminder_enabled=False), fixed_now) is False
        done = make_task(reminder_enabled=True, status=TaskStatus.COMPLETED)
        assert is_reminder_eligible(done, fixed_now) is False

    def test_grace_window(self, make_task, fixed_now):
        task = make_task(kind=TaskKind.INSTANT, start=fixed_now, reminder_enabled=True)
        later = fixed_now + timedelta(minutes=3)

        assert is_reminder_eligible(task, later) is False
        assert is_reminder_eligible(task, later, grace=timedelta(minutes=5)) is True

    def test_messages(self, make_task, fixed_now):
        span = make_task(title="Report")
        instant = make_task(title="Call", kind=TaskKind.INSTANT)

        assert build_reminder_message(span, 0).startswith("Deadline alert!")
        assert "25% time remaining" in build_reminder_message(span, 25)
        assert "halfway" in build_reminder_message(span, 50)
        assert "starting now" in build_reminder_message(instant, 0)
        assert "75% time remaining" in build_reminder_message(instant, 75)


class TestReminderService:
    """End-to-end sweep over the repository."""

    def test_sweep_fires_each_quarter_once(self, session_factory, task_repository, make_task, fixed_now):
        task = task_repository.create(make_task(
            start=fixed_now,
            deadline=fixed_now + timedelta(minutes=100),
            reminder_enabled=True,
        ))
        notifier = RecordingNotifier()
        service = ReminderService(session_factory, notifier=notifier, grace=timedelta(minutes=5))

        assert service.process_reminders(fixed_now + timedelta(minutes=30)) == [(task.id, 75)]
        # Same quarter again: nothing
        assert service.process_reminders(fixed_now + timedelta(minutes=40)) == []
        assert service.process_reminders(fixed_now + timedelta(minutes=60)) == [(task.id, 50)]
        assert service.process_reminders(fixed_now + timedelta(minutes=101)) == [(task.id, 0)]

        assert [q for _, q, _ in notifier.sent] == [75, 50, 0]
        task_repository.db.expire_all()
        reloaded = task_repository.get(task.owner_id, task.id)
        assert reloaded.reminders_fired == [0, 50, 75]

    def test_sweep_skips_tasks_past_grace(self, session_factory, task_repository, make_task, fixed_now):
        task_repository.create(make_task(
            kind=TaskKind.INSTANT,
            start=fixed_now,
            reminder_enabled=True,
            created_at=fixed_now - timedelta(hours=1),
        ))
        notifier = RecordingNotifier()
        service = ReminderService(session_factory, notifier=notifier, grace=timedelta(minutes=5))

        assert service.process_reminders(fixed_now + timedelta(minutes=30)) == []
        assert notifier.sent == []

    def test_sweep_ignores_disabled_tasks(self, session_factory, task_repository, make_task, fixed_now):
        task_repository.create(make_task(start=fixed_now, deadline=fixed_now + timedelta(minutes=10)))
        service = ReminderService(session_factory, notifier=RecordingNotifier())

        assert service.process_reminders(fixed_now + timedelta(minutes=20)) == []
