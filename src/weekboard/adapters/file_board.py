"""File-based board storage adapter."""

import json
import logging
from pathlib import Path

from weekboard.core.tasks import Task, WeeklyPlan

logger = logging.getLogger(__name__)


class FileBoardStore:
    """
    JSON file board storage.

    Implements TaskRepository protocol. One file holds every task and weekly
    plan; saves are upserts by id and rewrite the whole file.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path).expanduser()

    def _read(self) -> dict:
        if not self.path.exists():
            return {"tasks": [], "plans": []}
        try:
            data = json.loads(self.path.read_text())
        except json.JSONDecodeError as e:
            logger.error(f"Board file {self.path} is not valid JSON: {e}")
            raise
        if not isinstance(data, dict):
            raise ValueError(f"Board file {self.path} must hold a JSON object, not {type(data).__name__}")
        data.setdefault("tasks", [])
        data.setdefault("plans", [])
        return data

    def _write(self, data: dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(data, indent=2))
        tmp.replace(self.path)

    def load_tasks(self) -> list[Task]:
        """Load all task records, including soft-deleted ones."""
        return [Task.from_dict(raw) for raw in self._read()["tasks"]]

    def load_plans(self) -> list[WeeklyPlan]:
        """Load all weekly plans."""
        return [WeeklyPlan.from_dict(raw) for raw in self._read()["plans"]]

    def save_tasks(self, tasks: list[Task]) -> None:
        """Insert or replace the given tasks by id, keeping file order."""
        if not tasks:
            return
        data = self._read()
        index = {raw["id"]: i for i, raw in enumerate(data["tasks"])}
        for task in tasks:
            record = task.to_dict()
            if task.id in index:
                data["tasks"][index[task.id]] = record
            else:
                index[task.id] = len(data["tasks"])
                data["tasks"].append(record)
        self._write(data)

    def save_plan(self, plan: WeeklyPlan) -> None:
        """Insert or replace a weekly plan by id."""
        data = self._read()
        plans = [raw for raw in data["plans"] if raw["id"] != plan.id]
        plans.append(plan.to_dict())
        data["plans"] = plans
        self._write(data)
