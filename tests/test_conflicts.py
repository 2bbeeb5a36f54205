"""Tests for conflict detection and free-slot suggestions."""

import itertools
from datetime import datetime, timedelta

import pytest

from taskengine.engine.conflicts import active_tasks, check_conflicts
from taskengine.engine.free_slots import REASON_AFTER_ALL, REASON_FALLBACK, REASON_GAP, find_free_slots
from taskengine.engine.intervals import Interval, intervals_conflict, make_interval, task_interval
from taskengine.models.task import TaskKind, TaskStatus


def _span(start, end):
    return Interval(start=start, end=end, kind=TaskKind.SPAN)


def _instant(at):
    return Interval(start=at, end=at, kind=TaskKind.INSTANT)


T0 = datetime(2025, 1, 10, 0, 0)


class TestIntervalsConflict:
    """Pairwise overlap rules."""

    def test_touching_spans_do_not_conflict(self):
        a = _span(T0, T0 + timedelta(hours=10))
        b = _span(T0 + timedelta(hours=10), T0 + timedelta(hours=20))
        assert intervals_conflict(a, b) is False
        assert intervals_conflict(b, a) is False

    def test_overlapping_spans_conflict(self):
        a = _span(T0, T0 + timedelta(hours=10))
        b = _span(T0 + timedelta(hours=9), T0 + timedelta(hours=20))
        assert intervals_conflict(a, b) is True

    def test_instants_conflict_only_at_same_time(self):
        assert intervals_conflict(_instant(T0), _instant(T0)) is True
        assert intervals_conflict(_instant(T0), _instant(T0 + timedelta(minutes=1))) is False

    @pytest.mark.parametrize("offset_hours", [0, 5, 10])
    def test_instant_inside_span_includes_endpoints(self, offset_hours):
        span = _span(T0, T0 + timedelta(hours=10))
        instant = _instant(T0 + timedelta(hours=offset_hours))
        assert intervals_conflict(span, instant) is True

    def test_instant_outside_span(self):
        span = _span(T0, T0 + timedelta(hours=10))
        assert intervals_conflict(span, _instant(T0 + timedelta(hours=10, seconds=1))) is False

    def test_overlap_is_symmetric(self):
        points = [T0 + timedelta(hours=h) for h in (0, 2, 4, 6)]
        intervals = [_instant(p) for p in points]
        intervals += [_span(a, b) for a, b in itertools.combinations(points, 2)]
        for a, b in itertools.product(intervals, repeat=2):
            assert intervals_conflict(a, b) == intervals_conflict(b, a)

    def test_make_interval_for_instant_is_zero_width(self):
        interval = make_interval(T0, None, TaskKind.INSTANT)
        assert interval.start == interval.end == T0
        assert interval.is_instant


class TestCheckConflicts:
    """Conflict detection against an owner's snapshot."""

    def test_two_instants_at_same_time(self, make_task, test_owner_id):
        at = datetime(2025, 1, 10, 14, 0)
        existing = make_task(kind=TaskKind.INSTANT, start=at)

        report = check_conflicts(test_owner_id, _instant(at), [existing], now=at)

        assert report.has_conflict is True
        assert len(report.conflicts) == 1
        assert report.conflicts[0].conflicting_task_ids == [existing.id]
        assert report.conflicts[0].severity == "soft"
        # Instant candidates never get slot suggestions
        assert report.suggested_slots is None

    def test_no_conflict_returns_empty_report(self, make_task, test_owner_id, fixed_now):
        existing = make_task(start=fixed_now, deadline=fixed_now + timedelta(hours=1))
        candidate = _span(fixed_now + timedelta(hours=1), fixed_now + timedelta(hours=2))

        report = check_conflicts(test_owner_id, candidate, [existing], fixed_now)

        assert report.has_conflict is False
        assert report.conflicts == []
        assert report.suggested_slots is None

    def test_completed_span_does_not_block(self, make_task, test_owner_id, fixed_now):
        done = make_task(status=TaskStatus.COMPLETED)
        candidate = task_interval(done)

        assert check_conflicts(test_owner_id, candidate, [done], fixed_now).has_conflict is False

    def test_completed_instant_still_blocks(self, make_task, test_owner_id, fixed_now):
        done = make_task(kind=TaskKind.INSTANT, start=fixed_now, status=TaskStatus.COMPLETED)

        assert check_conflicts(test_owner_id, _instant(fixed_now), [done], fixed_now).has_conflict is True

    def test_other_owner_is_ignored(self, make_task, test_owner_id, other_owner_id, fixed_now):
        theirs = make_task(owner_id=other_owner_id)

        report = check_conflicts(test_owner_id, task_interval(theirs), [theirs], fixed_now)
        assert report.has_conflict is False

    def test_edited_task_is_excluded(self, make_task, test_owner_id, fixed_now):
        task = make_task()

        report = check_conflicts(test_owner_id, task_interval(task), [task], fixed_now, exclude_task_id=task.id)
        assert report.has_conflict is False

    def test_span_conflict_suggests_first_gap_after_blocking_task(self, make_task, test_owner_id):
        day = datetime(2025, 3, 10)
        morning = make_task(start=day.replace(hour=8), deadline=day.replace(hour=10))
        evening = make_task(start=day.replace(hour=16), deadline=day.replace(hour=18))
        candidate = _span(day.replace(hour=9), day.replace(hour=13))

        report = check_conflicts(test_owner_id, candidate, [evening, morning], now=day.replace(hour=9))

        assert report.has_conflict is True
        assert report.conflicts[0].conflicting_task_ids == [morning.id]
        assert report.candidate_duration_ms == 4 * 3600 * 1000
        slots = report.suggested_slots
        assert [(s.start, s.deadline) for s in slots] == [
            (day.replace(hour=10), day.replace(hour=14)),
            (day.replace(hour=18), day.replace(hour=22)),
        ]
        assert slots[0].reason == REASON_GAP
        assert slots[1].reason == REASON_AFTER_ALL

    def test_suggestions_anchor_at_now_for_past_candidates(self, make_task, test_owner_id, fixed_now):
        past_start = fixed_now - timedelta(hours=5)
        existing = make_task(start=past_start, deadline=past_start + timedelta(hours=2))
        candidate = _span(past_start, past_start + timedelta(hours=1))

        report = check_conflicts(test_owner_id, candidate, [existing], fixed_now)

        assert report.has_conflict is True
        assert all(slot.start >= fixed_now for slot in report.suggested_slots)

    def test_active_tasks_sorted_by_start(self, make_task, test_owner_id, fixed_now):
        later = make_task(start=fixed_now + timedelta(hours=5), deadline=fixed_now + timedelta(hours=6))
        earlier = make_task(start=fixed_now, deadline=fixed_now + timedelta(hours=1))

        assert [t.id for t in active_tasks([later, earlier], test_owner_id)] == [earlier.id, later.id]


class TestFindFreeSlots:
    """Free-slot sweep."""

    def test_empty_calendar_suggests_anchor(self):
        slots = find_free_slots([], 3600 * 1000, anchor=T0)
        assert len(slots) == 1
        assert slots[0].start == T0
        assert slots[0].deadline == T0 + timedelta(hours=1)
        assert slots[0].reason == REASON_AFTER_ALL

    def test_at_most_three_suggestions(self):
        busy = [(T0 + timedelta(hours=h), T0 + timedelta(hours=h + 1)) for h in (1, 3, 5, 7)]
        slots = find_free_slots(busy, 3600 * 1000, anchor=T0)
        assert [s.start for s in slots] == [T0, T0 + timedelta(hours=2), T0 + timedelta(hours=4)]
        assert all(s.reason == REASON_GAP for s in slots)

    def test_gap_too_small_is_skipped(self):
        busy = [
            (T0 + timedelta(minutes=30), T0 + timedelta(hours=1)),
            (T0 + timedelta(hours=1, minutes=30), T0 + timedelta(hours=2)),
        ]
        slots = find_free_slots(busy, 3600 * 1000, anchor=T0)
        assert len(slots) == 1
        assert slots[0].start == T0 + timedelta(hours=2)

    def test_fallback_when_horizon_is_full(self):
        busy = [(T0, T0 + timedelta(days=8))]
        slots = find_free_slots(busy, 3600 * 1000, anchor=T0)
        assert len(slots) == 1
        assert slots[0].reason == REASON_FALLBACK
        assert slots[0].start == T0 + timedelta(days=8)

    def test_suggestions_are_chronological_and_non_overlapping(self):
        busy = [(T0 + timedelta(hours=2), T0 + timedelta(hours=3)), (T0 + timedelta(hours=6), T0 + timedelta(hours=9))]
        slots = find_free_slots(busy, 2 * 3600 * 1000, anchor=T0)
        for a, b in zip(slots, slots[1:]):
            assert a.deadline <= b.start
        for slot in slots:
            for start, end in busy:
                assert not (slot.start < end and slot.deadline > start)
