"""Tests for the JSON file adapters."""

import json
from datetime import date, datetime, timezone

import pytest

from weekboard.adapters.file_board import FileBoardStore
from weekboard.adapters.file_dismissals import FileDismissalStore
from weekboard.core.alerts import DismissalSet
from weekboard.core.tasks import Frequency, Priority, RecurrenceRule, Status, Task, WeeklyPlan


@pytest.fixture
def store(tmp_path):
    return FileBoardStore(tmp_path / "data" / "board.json")


class TestFileBoardStore:
    def test_missing_file_is_empty(self, store):
        assert store.load_tasks() == []
        assert store.load_plans() == []

    def test_save_and_load(self, store, now):
        task = Task(
            id="a",
            title="Plan sprint",
            status=Status.IN_PROGRESS,
            order=2,
            created_at=now,
            priority=Priority.HIGH,
            due_at=now,
            recurrence_rule=RecurrenceRule(Frequency.MONTHLY, date(2025, 1, 1)),
        )
        store.save_tasks([task])

        assert store.load_tasks() == [task]

    def test_camel_case_records(self, store, now):
        store.save_tasks([Task(id="a", title="A", created_at=now, weekly_plan_id="w1")])
        raw = json.loads(store.path.read_text())["tasks"][0]
        assert raw["weeklyPlanId"] == "w1"
        assert raw["createdAt"] == "2025-01-15T12:00:00Z"

    def test_upsert_keeps_file_order(self, store):
        store.save_tasks([Task(id="a", title="A"), Task(id="b", title="B")])
        store.save_tasks([Task(id="a", title="A2"), Task(id="c", title="C")])

        loaded = store.load_tasks()
        assert [t.id for t in loaded] == ["a", "b", "c"]
        assert loaded[0].title == "A2"

    def test_plans(self, store):
        plan = WeeklyPlan(id="w1", week_start=datetime(2025, 1, 9, tzinfo=timezone.utc), title="Week")
        store.save_plan(plan)
        store.save_plan(WeeklyPlan(id="w1", week_start=plan.week_start, title="Renamed"))

        plans = store.load_plans()
        assert len(plans) == 1
        assert plans[0].title == "Renamed"

    def test_plans_and_tasks_share_file(self, store):
        store.save_plan(WeeklyPlan(id="w1", week_start=datetime(2025, 1, 9, tzinfo=timezone.utc)))
        store.save_tasks([Task(id="a", title="A")])
        assert [p.id for p in store.load_plans()] == ["w1"]

    def test_corrupt_file_raises(self, store):
        store.path.parent.mkdir(parents=True)
        store.path.write_text("{not json")
        with pytest.raises(json.JSONDecodeError):
            store.load_tasks()

    def test_lenient_record_parsing(self, store):
        store.path.parent.mkdir(parents=True)
        store.path.write_text(
            json.dumps(
                {"tasks": [{"id": "a", "title": "A", "status": "bogus", "dueAt": "2025-01-20"}]}
            )
        )
        task = store.load_tasks()[0]
        assert task.status is Status.TODO
        assert task.due_at == datetime(2025, 1, 20, tzinfo=timezone.utc)

    def test_top_level_list_raises(self, store):
        store.path.parent.mkdir(parents=True)
        store.path.write_text("[]")
        with pytest.raises(ValueError, match="JSON object"):
            store.load_tasks()


class TestFileDismissalStore:
    def test_round_trip(self, tmp_path):
        store = FileDismissalStore(tmp_path / "dismissed.json")
        store.save(DismissalSet(overdue={"x:2024-01-01T00:00:00Z"}, reminder={"y"}))
        assert store.load() == DismissalSet(overdue={"x:2024-01-01T00:00:00Z"}, reminder={"y"})

    def test_missing_file(self, tmp_path):
        assert FileDismissalStore(tmp_path / "absent.json").load() == DismissalSet()

    def test_corrupt_file_is_empty(self, tmp_path):
        path = tmp_path / "dismissed.json"
        path.write_text("[[[")
        assert FileDismissalStore(path).load() == DismissalSet()

    def test_wrong_shape_is_empty(self, tmp_path):
        path = tmp_path / "dismissed.json"
        path.write_text("[]")
        assert FileDismissalStore(path).load() == DismissalSet()

    def test_undecodable_bytes_are_empty(self, tmp_path):
        path = tmp_path / "dismissed.json"
        path.write_bytes(b"\xff\xfe\x00garbage")
        assert FileDismissalStore(path).load() == DismissalSet()

    def test_non_list_keys_are_empty(self, tmp_path):
        path = tmp_path / "dismissed.json"
        path.write_text(json.dumps({"overdue": 5, "reminder": ["r"]}))
        assert FileDismissalStore(path).load() == DismissalSet(reminder={"r"})

    def test_non_string_keys_are_empty(self, tmp_path):
        path = tmp_path / "dismissed.json"
        path.write_text(json.dumps({"overdue": ["a:2024-01-01T00:00:00Z", 1], "reminder": ["r"]}))
        assert FileDismissalStore(path).load() == DismissalSet(reminder={"r"})
