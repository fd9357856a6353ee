"""Tests for recurring tasks."""

from datetime import date, datetime, timezone

import pytest

from weekboard.board import Board
from weekboard.core.recurrence import (
    next_occurrence_after,
    next_recurrence,
    rule_from_strings,
    spawn_next_instance,
)
from weekboard.core.tasks import Frequency, Priority, RecurrenceRule, Status, Task, TaskUpdate

from conftest import MemoryRepo


def utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


class TestNextRecurrence:
    @pytest.mark.parametrize(
        "frequency, expected",
        [
            (Frequency.DAILY, utc(2025, 1, 16)),
            (Frequency.WEEKLY, utc(2025, 1, 22)),
            (Frequency.MONTHLY, utc(2025, 2, 15)),
            (Frequency.QUARTERLY, utc(2025, 4, 15)),
            (Frequency.YEARLY, utc(2026, 1, 15)),
        ],
    )
    def test_one_interval(self, frequency, expected):
        assert next_recurrence(frequency, utc(2025, 1, 15)) == expected

    def test_month_end_clamps(self):
        assert next_recurrence(Frequency.MONTHLY, utc(2025, 1, 31)) == utc(2025, 2, 28)
        assert next_recurrence(Frequency.QUARTERLY, utc(2024, 11, 30)) == utc(2025, 2, 28)

    def test_leap_day_yearly(self):
        assert next_recurrence(Frequency.YEARLY, utc(2024, 2, 29)) == utc(2025, 2, 28)

    def test_several_intervals(self):
        assert next_recurrence(Frequency.WEEKLY, utc(2025, 1, 15), 3) == utc(2025, 2, 5)
        assert next_recurrence(Frequency.MONTHLY, utc(2025, 1, 31), 2) == utc(2025, 3, 31)


class TestNextOccurrenceAfter:
    def test_one_interval_when_already_future(self):
        assert next_occurrence_after(Frequency.WEEKLY, utc(2025, 1, 15), utc(2025, 1, 10)) == utc(2025, 1, 22)

    def test_collapses_missed_intervals(self):
        assert next_occurrence_after(Frequency.WEEKLY, utc(2025, 1, 1), utc(2025, 1, 25)) == utc(2025, 1, 29)

    def test_occurrence_equal_to_now_is_skipped(self):
        assert next_occurrence_after(Frequency.DAILY, utc(2025, 1, 1), utc(2025, 1, 3)) == utc(2025, 1, 4)

    def test_month_end_does_not_drift(self):
        # Jan 31 -> Feb 28 -> Mar 31, not Mar 28
        assert next_occurrence_after(Frequency.MONTHLY, utc(2025, 1, 31), utc(2025, 3, 1)) == utc(2025, 3, 31)


class TestRuleFromStrings:
    def test_rule_from_strings(self):
        rule = rule_from_strings("monthly", "2025-03-01")
        assert rule == RecurrenceRule(Frequency.MONTHLY, date(2025, 3, 1))

    def test_rule_from_strings_rejects_unknown_frequency(self):
        with pytest.raises(ValueError):
            rule_from_strings("hourly")


class TestSpawnNextInstance:
    @pytest.fixture
    def completed(self):
        return Task(
            id="src",
            title="Water plants",
            status=Status.COMPLETE,
            priority=Priority.MEDIUM,
            weekly_plan_id="w1",
            due_at=utc(2025, 1, 15, 9),
            reminder_at=utc(2025, 1, 15, 8),
            recurrence_rule=RecurrenceRule(Frequency.WEEKLY, date(2025, 1, 1)),
        )

    def test_spawns_next_instance(self, completed, now):
        instance = spawn_next_instance(completed, order=3, now=now)

        assert instance.status is Status.TODO
        assert instance.order == 3
        assert instance.title == "Water plants"
        assert instance.priority is Priority.MEDIUM
        assert instance.due_at == utc(2025, 1, 22, 9)
        assert instance.reminder_at == utc(2025, 1, 22, 8)
        assert instance.recurrence_source_id == "src"
        assert instance.weekly_plan_id is None
        assert instance.recurrence_rule.frequency is Frequency.WEEKLY

    def test_long_overdue_task_spawns_after_now(self, completed, now):
        completed.due_at = utc(2024, 6, 3)
        completed.reminder_at = utc(2024, 6, 2)
        instance = spawn_next_instance(completed, order=0, now=now)

        assert instance.due_at == utc(2025, 1, 20)
        assert instance.reminder_at == utc(2025, 1, 19)
        assert not instance.is_overdue(now)

    def test_completed_task_stops_recurring(self, completed, now):
        spawn_next_instance(completed, order=0, now=now)
        assert completed.recurrence_rule is None
        assert spawn_next_instance(completed, order=0, now=now) is None

    def test_source_id_follows_first_task(self, completed, now):
        completed.recurrence_source_id = "origin"
        assert spawn_next_instance(completed, order=0, now=now).recurrence_source_id == "origin"

    def test_non_recurring(self, now):
        assert spawn_next_instance(Task(id="t", title="Once"), order=0, now=now) is None


class TestBoardCompletion:
    @pytest.fixture
    def recurring(self):
        return Task(
            id="rec",
            title="Weekly review",
            due_at=utc(2025, 1, 17),
            recurrence_rule=RecurrenceRule(Frequency.WEEKLY, date(2025, 1, 3)),
        )

    def test_move_to_complete_spawns(self, recurring, now):
        board = Board(MemoryRepo([recurring]))
        board.move_task("rec", Status.COMPLETE, 0, now=now)

        spawned = [t for t in board.tasks() if t.recurrence_source_id == "rec"]
        assert len(spawned) == 1
        assert spawned[0].due_at == utc(2025, 1, 24)
        assert spawned[0].id in board.repo.tasks

    def test_update_status_spawns_once(self, recurring, now):
        board = Board(MemoryRepo([recurring]))
        board.update_task("rec", TaskUpdate(status=Status.COMPLETE), now=now)
        board.update_task("rec", TaskUpdate(status=Status.TODO), now=now)
        board.update_task("rec", TaskUpdate(status=Status.COMPLETE), now=now)

        assert len([t for t in board.tasks() if t.recurrence_source_id == "rec"]) == 1

    def test_completing_stale_task_spawns_instance_that_is_not_overdue(self, recurring, now):
        recurring.due_at = utc(2024, 6, 3)
        board = Board(MemoryRepo([recurring]))
        board.set_status_and_order("rec", Status.COMPLETE, 0, now=now)

        spawned = next(t for t in board.tasks() if t.recurrence_source_id == "rec")
        assert spawned.due_at == utc(2025, 1, 20)
        assert not spawned.is_overdue(now)
