"""
Board ordering - pure sort strategies and partition helpers.

Every function here takes tasks already filtered to one status partition (or
filters them itself) and never mutates stored order or status, except the
explicit partition helpers at the bottom, which return reordered lists.
"""

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import assert_never

from .tasks import Priority, Status, Task, WeeklyPlan, utcnow

FormulaRanker = Callable[[str], int]

# Sort key for tasks without a formula step; real ranks are >= 0.
UNASSIGNED_FORMULA_RANK = -1


class SortMode(Enum):
    """Display strategy for a board column."""

    PRIORITY_FORMULA = "priority-formula"
    FORMULA = "formula"
    MANUAL = "manual"
    OVERDUE = "overdue"


def priority_rank(priority: Priority) -> int:
    """High priority sorts first."""
    match priority:
        case Priority.HIGH:
            return 0
        case Priority.MEDIUM:
            return 1
        case Priority.LOW:
            return 2
        case Priority.NONE:
            return 3
        case _:
            assert_never(priority)


def ranker_from_mapping(ranks: Mapping[str, int]) -> FormulaRanker:
    """Formula ranker backed by a {step_id: rank} table. Unknown steps rank 0."""

    def rank(step_id: str) -> int:
        return ranks.get(step_id, 0)

    return rank


def _formula_key(task: Task, ranker: FormulaRanker) -> int:
    # Negated so that higher ranks (earlier conditions) sort first
    if not task.formula_step_id:
        return -UNASSIGNED_FORMULA_RANK
    return -ranker(task.formula_step_id)


def _week_key(task: Task, week_starts: Mapping[str, float]) -> float:
    if not task.weekly_plan_id:
        return 0
    return week_starts.get(task.weekly_plan_id, 0)


def plan_week_starts(plans: Iterable[WeeklyPlan]) -> dict[str, float]:
    """Plan id to week_start epoch seconds, for the chronological tie-break."""
    return {plan.id: plan.week_start.timestamp() for plan in plans}


def sort_manual(tasks: Iterable[Task]) -> list[Task]:
    """User-defined order."""
    return sorted(tasks, key=lambda t: (t.order, t.id))


def sort_priority_formula(
    tasks: Iterable[Task],
    ranker: FormulaRanker,
    week_starts: Mapping[str, float] | None = None,
    active_plan_id: str | None = None,
) -> list[Task]:
    """
    Priority, then formula step (descending), then plan week, then order.

    The plan-week tie-break only applies on the main board, where tasks from
    several weeks are mixed; earlier weeks come first.
    """
    week_starts = week_starts or {}

    def sort_key(t: Task) -> tuple:
        week = _week_key(t, week_starts) if active_plan_id is None else 0
        return (priority_rank(t.priority), _formula_key(t, ranker), week, t.order, t.id)

    return sorted(tasks, key=sort_key)


def sort_formula(
    tasks: Iterable[Task],
    ranker: FormulaRanker,
    week_starts: Mapping[str, float] | None = None,
    active_plan_id: str | None = None,
) -> list[Task]:
    """Same as sort_priority_formula without the priority key."""
    week_starts = week_starts or {}

    def sort_key(t: Task) -> tuple:
        week = _week_key(t, week_starts) if active_plan_id is None else 0
        return (_formula_key(t, ranker), week, t.order, t.id)

    return sorted(tasks, key=sort_key)


def sort_overdue(tasks: Iterable[Task], now: datetime | None = None) -> list[Task]:
    """
    Overdue first (most overdue first), then soonest due, then no due date.
    """
    now = now or utcnow()

    def sort_key(t: Task) -> tuple:
        if t.is_overdue(now):
            return (0, t.due_at.timestamp(), t.order, t.id)
        if t.due_at is not None:
            return (1, t.due_at.timestamp(), t.order, t.id)
        return (2, 0.0, t.order, t.id)

    return sorted(tasks, key=sort_key)


def sort_tasks(
    tasks: Iterable[Task],
    mode: SortMode,
    ranker: FormulaRanker | None = None,
    plans: Iterable[WeeklyPlan] = (),
    active_plan_id: str | None = None,
    now: datetime | None = None,
) -> list[Task]:
    """Sort one column's tasks using the given display strategy."""
    ranker = ranker or ranker_from_mapping({})
    match mode:
        case SortMode.MANUAL:
            return sort_manual(tasks)
        case SortMode.OVERDUE:
            return sort_overdue(tasks, now)
        case SortMode.FORMULA:
            return sort_formula(tasks, ranker, plan_week_starts(plans), active_plan_id)
        case SortMode.PRIORITY_FORMULA:
            return sort_priority_formula(tasks, ranker, plan_week_starts(plans), active_plan_id)
        case _:
            assert_never(mode)


# ============== Views ==============


@dataclass
class ViewFilter:
    """Optional narrowing of a column beyond its scope."""

    categories: list[str] = field(default_factory=list)
    bugged_only: bool = False
    formula_steps: list[str] = field(default_factory=list)

    def matches(self, task: Task) -> bool:
        if self.categories and task.category not in self.categories:
            return False
        if self.bugged_only and not task.bugged:
            return False
        if self.formula_steps and task.formula_step_id not in self.formula_steps:
            return False
        return True


def visible_tasks(
    tasks: Iterable[Task],
    active_plan_id: str | None = None,
    view_filter: ViewFilter | None = None,
) -> list[Task]:
    """
    Tasks shown in a scope.

    A plan scope shows all of that plan's tasks, including forwarded and
    archived ones. The main board hides both.
    """
    shown = [t for t in tasks if not t.is_deleted]
    if active_plan_id:
        shown = [t for t in shown if t.weekly_plan_id == active_plan_id]
    else:
        shown = [t for t in shown if not t.is_superseded and t.archived_at is None]
    if view_filter:
        shown = [t for t in shown if view_filter.matches(t)]
    return shown


def column_tasks(
    tasks: Iterable[Task],
    status: Status,
    mode: SortMode = SortMode.PRIORITY_FORMULA,
    ranker: FormulaRanker | None = None,
    plans: Iterable[WeeklyPlan] = (),
    active_plan_id: str | None = None,
    view_filter: ViewFilter | None = None,
    now: datetime | None = None,
) -> list[Task]:
    """Visible tasks of one status, sorted for display."""
    shown = [t for t in visible_tasks(tasks, active_plan_id, view_filter) if t.status is status]
    return sort_tasks(shown, mode, ranker, plans, active_plan_id, now)


# ============== Partitions ==============


def partition(tasks: Iterable[Task], status: Status, exclude_id: str | None = None) -> list[Task]:
    """All live tasks of one status in stored order."""
    return sort_manual(
        t for t in tasks if t.status is status and not t.is_deleted and t.id != exclude_id
    )


def next_order(tasks: Iterable[Task], status: Status) -> float:
    """An order value placing a new task last in its partition."""
    orders = [t.order for t in tasks if t.status is status and not t.is_deleted]
    return max(orders) + 1 if orders else 0


def reassign_order(tasks: list[Task]) -> list[Task]:
    """Give tasks strictly increasing order values matching list position."""
    for index, task in enumerate(tasks):
        task.order = index
    return tasks


def move_within(column: list[Task], task_id: str, to_index: int) -> list[Task]:
    """Array move: remove the task, then insert it at to_index."""
    reordered = list(column)
    old_index = next(i for i, t in enumerate(reordered) if t.id == task_id)
    moved = reordered.pop(old_index)
    reordered.insert(max(0, min(to_index, len(reordered))), moved)
    return reordered


def insert_into(column: list[Task], task: Task, to_index: int) -> list[Task]:
    """Insert task into a column that does not contain it."""
    placed = [t for t in column if t.id != task.id]
    placed.insert(max(0, min(to_index, len(placed))), task)
    return placed
