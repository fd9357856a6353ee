"""Tests for the board service intents."""

from datetime import timedelta

import pytest

from weekboard.board import Board
from weekboard.config import Config
from weekboard.core.errors import ReorderError
from weekboard.core.ordering import SortMode, partition
from weekboard.core.tasks import Priority, Status, Task, TaskUpdate

from conftest import MemoryRepo


@pytest.fixture
def board():
    tasks = [Task(id=f"t{i}", title=f"Todo {i}", order=i) for i in range(3)]
    tasks.append(Task(id="p0", title="Doing", status=Status.IN_PROGRESS, order=0))
    return Board(MemoryRepo(tasks))


def column_ids(board, status):
    return [t.id for t in partition(board.tasks(), status)]


class TestAddTask:
    def test_placed_last(self, board, now):
        task = board.add_task("New", now=now)
        assert task.order == 3
        assert column_ids(board, Status.TODO)[-1] == task.id
        assert task.created_at == now

    def test_first_in_empty_column(self, board):
        task = board.add_task("Done already", Status.COMPLETE)
        assert task.order == 0

    def test_persisted(self, board):
        task = board.add_task("Saved", priority=Priority.HIGH)
        assert board.repo.tasks[task.id].priority is Priority.HIGH


class TestUpdateTask:
    def test_partial_update(self, board):
        board.update_task("t0", TaskUpdate(title="Renamed"))
        task = board.get_task("t0")
        assert task.title == "Renamed"
        assert task.order == 0

    def test_explicit_clear(self, board, now):
        board.update_task("t0", TaskUpdate(due_at=now))
        board.update_task("t0", TaskUpdate(due_at=None))
        assert board.get_task("t0").due_at is None

    def test_unset_leaves_field(self, board, now):
        board.update_task("t0", TaskUpdate(due_at=now))
        board.update_task("t0", TaskUpdate(title="Other"))
        assert board.get_task("t0").due_at == now

    def test_status_change_places_last(self, board):
        board.update_task("t0", TaskUpdate(status=Status.IN_PROGRESS))
        assert column_ids(board, Status.IN_PROGRESS) == ["p0", "t0"]

    def test_empty_update_saves_nothing(self, board):
        board.update_task("t0", TaskUpdate())
        assert board.repo.saved == []

    def test_unknown_task(self, board):
        assert board.update_task("missing", TaskUpdate(title="x")) is None


class TestDeleteTask:
    def test_soft_delete_closes_gap(self, board, now):
        assert board.delete_task("t1", now) is True

        assert board.get_task("t1") is None
        assert board.repo.tasks["t1"].deleted_at == now
        assert [t.order for t in partition(board.tasks(), Status.TODO)] == [0, 1]

    def test_deleted_hidden_everywhere(self, board):
        board.delete_task("t1")
        assert "t1" not in [t.id for t in board.column(Status.TODO)]
        assert "t1" not in [t.id for t in board.tasks()]


class TestMoveTask:
    def test_cross_column(self, board):
        board.move_task("t0", Status.IN_PROGRESS, 0)

        assert column_ids(board, Status.IN_PROGRESS) == ["t0", "p0"]
        assert column_ids(board, Status.TODO) == ["t1", "t2"]
        assert [t.order for t in partition(board.tasks(), Status.TODO)] == [0, 1]

    def test_within_column(self, board):
        board.move_task("t2", Status.TODO, 0)
        assert column_ids(board, Status.TODO) == ["t2", "t0", "t1"]

    def test_unknown_task(self, board):
        assert board.move_task("missing", Status.TODO, 0) is False

    def test_set_status_and_order(self, board):
        assert board.set_status_and_order("t1", Status.COMPLETE, 7) is True
        task = board.get_task("t1")
        assert task.status is Status.COMPLETE
        assert task.order == 7


class TestReorder:
    def test_reorder_task(self, board):
        assert board.reorder_task("t0", 2) is True
        assert column_ids(board, Status.TODO) == ["t1", "t2", "t0"]

    def test_reorder_task_same_index(self, board):
        assert board.reorder_task("t1", 1) is False
        assert board.repo.saved == []

    def test_reorder_partition(self, board):
        reordered = board.reorder_partition(Status.TODO, ["t2", "t0", "t1"])
        assert [t.id for t in reordered] == ["t2", "t0", "t1"]
        assert [t.order for t in reordered] == [0, 1, 2]

    def test_reorder_partition_missing_task(self, board):
        with pytest.raises(ReorderError, match="missing"):
            board.reorder_partition(Status.TODO, ["t2", "t0"])
        assert column_ids(board, Status.TODO) == ["t0", "t1", "t2"]

    def test_reorder_partition_foreign_task(self, board):
        with pytest.raises(ReorderError):
            board.reorder_partition(Status.TODO, ["t2", "t0", "t1", "p0"])

    def test_reorder_partition_duplicate(self, board):
        with pytest.raises(ReorderError, match="more than once"):
            board.reorder_partition(Status.TODO, ["t2", "t2", "t1"])


class TestColumnView:
    def test_default_sort_mode(self):
        tasks = [
            Task(id="a", title="A", priority=Priority.LOW, order=0),
            Task(id="b", title="B", priority=Priority.HIGH, order=1),
        ]
        board = Board(MemoryRepo(tasks))
        assert [t.id for t in board.column(Status.TODO)] == ["b", "a"]
        assert [t.id for t in board.column(Status.TODO, mode=SortMode.MANUAL)] == ["a", "b"]

    def test_overdue_mode_uses_now(self, now):
        tasks = [
            Task(id="later", title="Later", due_at=now + timedelta(days=1)),
            Task(id="late", title="Late", due_at=now - timedelta(days=1)),
        ]
        board = Board(MemoryRepo(tasks))
        shown = board.column(Status.TODO, mode=SortMode.OVERDUE, now=now)
        assert [t.id for t in shown] == ["late", "later"]


class TestPersistenceFailure:
    def test_save_error_is_logged_and_change_kept(self, caplog):
        class BrokenRepo(MemoryRepo):
            def save_tasks(self, tasks):
                raise OSError("disk full")

        board = Board(BrokenRepo())
        task = board.add_task("Kept in memory")

        assert board.get_task(task.id) is task
        assert "disk full" in caplog.text


class TestOpen:
    def test_open_archives_and_uses_config(self, tmp_path, now):
        config = Config(board_file=str(tmp_path / "board.json"), sort_mode=SortMode.MANUAL)
        repo = MemoryRepo(
            [Task(id="old", title="Old", status=Status.COMPLETE, created_at=now - timedelta(days=30))]
        )

        board = Board.open(config, repo=repo, now=now)

        assert board.sort_mode is SortMode.MANUAL
        assert board.get_task("old").archived_at == now

    def test_open_without_archive(self, now):
        repo = MemoryRepo(
            [Task(id="old", title="Old", status=Status.COMPLETE, created_at=now - timedelta(days=30))]
        )
        board = Board.open(Config(), repo=repo, now=now, auto_archive=False)
        assert board.get_task("old").archived_at is None
