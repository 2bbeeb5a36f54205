"""Tests for the daily hour-limit guard."""

from datetime import datetime, timedelta

from taskengine.engine.daily_limit import check_daily_limit, daily_span_hours
from taskengine.engine.errors import LimitExceeded
from taskengine.engine.intervals import Interval, make_interval, split_hours_by_day
from taskengine.models.task import TaskKind, TaskStatus

DAY = datetime(2025, 3, 11)


def _span(start, end):
    return Interval(start=start, end=end, kind=TaskKind.SPAN)


class TestSplitHoursByDay:
    def test_single_day(self):
        assert split_hours_by_day(DAY.replace(hour=9), DAY.replace(hour=17)) == {DAY.date(): 8.0}

    def test_crosses_midnight(self):
        hours = split_hours_by_day(DAY.replace(hour=22), DAY + timedelta(days=1, hours=2))
        assert hours == {DAY.date(): 2.0, (DAY + timedelta(days=1)).date(): 2.0}

    def test_ending_at_midnight_adds_no_empty_day(self):
        hours = split_hours_by_day(DAY.replace(hour=20), DAY + timedelta(days=1))
        assert hours == {DAY.date(): 4.0}

    def test_daily_span_hours_sums_intervals(self):
        totals = daily_span_hours([
            _span(DAY.replace(hour=1), DAY.replace(hour=3)),
            _span(DAY.replace(hour=10), DAY.replace(hour=15)),
        ])
        assert totals == {DAY.date(): 7.0}


class TestCheckDailyLimit:
    """Hard daily ceiling of 24 span hours."""

    def test_exceeding_day_is_reported(self, make_task, test_owner_id):
        existing = make_task(start=DAY, deadline=DAY.replace(hour=20))
        candidate = _span(DAY.replace(hour=18), DAY.replace(hour=23))

        result = check_daily_limit(test_owner_id, candidate, [existing])

        assert result.exceeds is True
        assert result.date == DAY.date()
        assert result.hours == 25.0

    def test_exactly_24_hours_is_allowed(self, make_task, test_owner_id):
        existing = make_task(start=DAY, deadline=DAY.replace(hour=22))
        candidate = _span(DAY.replace(hour=22), DAY + timedelta(days=1, hours=2))

        assert check_daily_limit(test_owner_id, candidate, [existing]).exceeds is False

    def test_instant_candidate_always_passes(self, make_task, test_owner_id):
        existing = make_task(start=DAY, deadline=DAY + timedelta(hours=23, minutes=59))
        candidate = make_interval(DAY.replace(hour=12), None, TaskKind.INSTANT)

        assert check_daily_limit(test_owner_id, candidate, [existing]).exceeds is False

    def test_completed_spans_still_count(self, make_task, test_owner_id):
        existing = make_task(start=DAY, deadline=DAY.replace(hour=20), status=TaskStatus.COMPLETED)
        candidate = _span(DAY.replace(hour=18), DAY.replace(hour=23))

        assert check_daily_limit(test_owner_id, candidate, [existing]).exceeds is True

    def test_edited_task_is_replaced_not_double_counted(self, make_task, test_owner_id):
        existing = make_task(start=DAY, deadline=DAY.replace(hour=20))
        candidate = _span(DAY, DAY.replace(hour=22))

        result = check_daily_limit(test_owner_id, candidate, [existing], exclude_task_id=existing.id)
        assert result.exceeds is False

    def test_other_owner_hours_are_ignored(self, make_task, test_owner_id, other_owner_id):
        theirs = make_task(owner_id=other_owner_id, start=DAY, deadline=DAY.replace(hour=20))
        candidate = _span(DAY.replace(hour=18), DAY.replace(hour=23))

        assert check_daily_limit(test_owner_id, candidate, [theirs]).exceeds is False

    def test_limit_exceeded_message(self):
        err = LimitExceeded(DAY.date(), 25.0, 24)
        assert "Tuesday, March 11, 2025" in err.message
        assert "25.0 hours" in err.message
        assert err.hours == 25.0
