"""Task repository interface."""

from typing import Protocol

from weekboard.core.tasks import Task, WeeklyPlan


class TaskRepository(Protocol):
    """Interface for loading and committing board records."""

    def load_tasks(self) -> list[Task]:
        """Load all task records, including soft-deleted ones."""
        ...

    def load_plans(self) -> list[WeeklyPlan]:
        """Load all weekly plans."""
        ...

    def save_tasks(self, tasks: list[Task]) -> None:
        """Insert or replace the given tasks by id."""
        ...

    def save_plan(self, plan: WeeklyPlan) -> None:
        """Insert or replace a weekly plan by id."""
        ...
