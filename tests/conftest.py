"""Shared fixtures."""

from datetime import datetime, timezone

import pytest

from weekboard.board import Board
from weekboard.core.tasks import Task, WeeklyPlan


class MemoryRepo:
    """In-memory TaskRepository that records every save."""

    def __init__(self, tasks: list[Task] | None = None, plans: list[WeeklyPlan] | None = None):
        self.tasks = {t.id: t for t in tasks or []}
        self.plans = {p.id: p for p in plans or []}
        self.saved: list[list[str]] = []

    def load_tasks(self) -> list[Task]:
        return list(self.tasks.values())

    def load_plans(self) -> list[WeeklyPlan]:
        return list(self.plans.values())

    def save_tasks(self, tasks: list[Task]) -> None:
        self.saved.append([t.id for t in tasks])
        for task in tasks:
            self.tasks[task.id] = task

    def save_plan(self, plan: WeeklyPlan) -> None:
        self.plans[plan.id] = plan


@pytest.fixture
def now():
    return datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def repo():
    return MemoryRepo()


@pytest.fixture
def board(repo):
    return Board(repo)
