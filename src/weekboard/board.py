"""
Board service - the in-memory working set and its intents.

Shared by the CLI and the alert watcher. Each intent is one synchronous pass:
it mutates the working set through the pure core, then hands the changed
records to the repository. Persistence is fire-and-forget: a failed save is
logged and the in-memory change stands.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

from .adapters.file_board import FileBoardStore
from .config import Config
from .core import archive as archiving
from .core.errors import ForwardError, ReorderError
from .core.forwarding import ForwardResult, forward_tasks, lineage
from .core.ordering import (
    FormulaRanker,
    SortMode,
    ViewFilter,
    column_tasks,
    insert_into,
    move_within,
    next_order,
    partition,
    ranker_from_mapping,
    reassign_order,
)
from .core.recurrence import spawn_next_instance
from .core.tasks import Status, Task, TaskUpdate, WeeklyPlan, apply_update, new_id, utcnow
from .core.weeks import WeekSettings, current_week_start
from .ports.task_repo import TaskRepository

logger = logging.getLogger(__name__)


@dataclass
class NewPlan:
    """Request to create a weekly plan as the destination of a forward."""

    title: str
    week_start: datetime
    formula_id: str | None = None
    notes: str = ""


class Board:
    """One user's board: tasks, weekly plans and the intents that change them."""

    def __init__(
        self,
        repo: TaskRepository,
        ranker: FormulaRanker | None = None,
        sort_mode: SortMode = SortMode.PRIORITY_FORMULA,
        week_settings: WeekSettings | None = None,
    ):
        self.repo = repo
        self.ranker = ranker or ranker_from_mapping({})
        self.sort_mode = sort_mode
        self.week_settings = week_settings or WeekSettings()
        self._tasks: dict[str, Task] = {}
        self._plans: dict[str, WeeklyPlan] = {}
        self.reload()

    @classmethod
    def open(
        cls,
        config: Config,
        repo: TaskRepository | None = None,
        now: datetime | None = None,
        auto_archive: bool = True,
    ) -> "Board":
        """Load the board and run the archive transition for the current week."""
        board = cls(
            repo or FileBoardStore(config.board_path),
            ranker=ranker_from_mapping(config.formula_ranks),
            sort_mode=config.sort_mode,
            week_settings=config.week_settings(),
        )
        if auto_archive:
            board.archive(now=now)
        return board

    def reload(self) -> None:
        """Replace the working set with the repository's records."""
        self._tasks = {t.id: t for t in self.repo.load_tasks()}
        self._plans = {p.id: p for p in self.repo.load_plans()}

    # ============== Reads ==============

    def tasks(self) -> list[Task]:
        """All non-deleted tasks."""
        return [t for t in self._tasks.values() if not t.is_deleted]

    def get_task(self, task_id: str) -> Task | None:
        task = self._tasks.get(task_id)
        if task is None or task.is_deleted:
            return None
        return task

    def plans(self) -> list[WeeklyPlan]:
        return sorted(self._plans.values(), key=lambda p: (p.week_start, p.id))

    def get_plan(self, plan_id: str) -> WeeklyPlan | None:
        return self._plans.get(plan_id)

    def column(
        self,
        status: Status,
        plan_id: str | None = None,
        mode: SortMode | None = None,
        view_filter: ViewFilter | None = None,
        now: datetime | None = None,
    ) -> list[Task]:
        """Visible tasks of one column in display order."""
        return column_tasks(
            self._tasks.values(),
            status,
            mode or self.sort_mode,
            self.ranker,
            self._plans.values(),
            plan_id,
            view_filter,
            now,
        )

    def archived(self) -> list[Task]:
        return archiving.archived_tasks(self._tasks.values())

    def lineage(self, task_id: str) -> list[Task]:
        return lineage(self._tasks, task_id)

    # ============== Persistence ==============

    def _persist(self, tasks: Iterable[Task]) -> None:
        changed = list({t.id: t for t in tasks}.values())
        if not changed:
            return
        try:
            self.repo.save_tasks(changed)
        except OSError as e:
            logger.error(f"Failed to save {len(changed)} task(s): {e}")

    def _persist_plan(self, plan: WeeklyPlan) -> None:
        try:
            self.repo.save_plan(plan)
        except OSError as e:
            logger.error(f"Failed to save plan {plan.id}: {e}")

    def _lookup(self, task_id: str, intent: str) -> Task | None:
        task = self.get_task(task_id)
        if task is None:
            logger.warning(f"{intent}: task {task_id} not found; ignoring")
        return task

    def _completed(self, task: Task, previous: Status, now: datetime | None = None) -> list[Task]:
        """Side effects of a task entering the complete column."""
        if previous is Status.COMPLETE or task.status is not Status.COMPLETE:
            return []
        instance = spawn_next_instance(task, next_order(self.tasks(), Status.TODO), now)
        if instance is None:
            return []
        self._tasks[instance.id] = instance
        return [instance]

    # ============== Task intents ==============

    def add_task(
        self,
        title: str,
        status: Status = Status.TODO,
        now: datetime | None = None,
        **fields,
    ) -> Task:
        """Create a task placed last in its column."""
        task = Task(
            id=new_id(),
            title=title,
            status=status,
            order=next_order(self.tasks(), status),
            created_at=now or utcnow(),
            **fields,
        )
        self._tasks[task.id] = task
        self._persist([task])
        logger.info(f"Added task {task.id} to {status.value}")
        return task

    def update_task(self, task_id: str, update: TaskUpdate, now: datetime | None = None) -> Task | None:
        """
        Apply a partial update.

        A status change without an explicit order places the task last in its
        new column.
        """
        task = self._lookup(task_id, "update")
        if task is None or update.is_empty():
            return task

        previous = task.status
        changes = update.changes()
        if "status" in changes and changes["status"] is not previous and "order" not in changes:
            task.order = next_order(self.tasks(), changes["status"])
        apply_update(task, update)

        self._persist([task, *self._completed(task, previous, now)])
        return task

    def delete_task(self, task_id: str, now: datetime | None = None) -> bool:
        """Soft-delete a task and close the gap in its column."""
        task = self._lookup(task_id, "delete")
        if task is None:
            return False
        task.deleted_at = now or utcnow()
        remaining = reassign_order(partition(self._tasks.values(), task.status))
        self._persist([task, *remaining])
        logger.info(f"Deleted task {task_id}")
        return True

    def set_status_and_order(
        self, task_id: str, status: Status, order: float, now: datetime | None = None
    ) -> bool:
        """Set a task's status and order directly."""
        task = self._lookup(task_id, "set status")
        if task is None:
            return False
        previous = task.status
        task.status = status
        task.order = order
        self._persist([task, *self._completed(task, previous, now)])
        return True

    def move_task(self, task_id: str, to_status: Status, to_index: int, now: datetime | None = None) -> bool:
        """
        Place a task at to_index in to_status.

        Both the destination and (for a cross-column move) the source column
        get fresh, strictly increasing order values.
        """
        task = self._lookup(task_id, "move")
        if task is None:
            return False

        previous = task.status
        destination = partition(self._tasks.values(), to_status, exclude_id=task.id)
        task.status = to_status
        changed = reassign_order(insert_into(destination, task, to_index))

        if previous is not to_status:
            changed += reassign_order(partition(self._tasks.values(), previous))

        changed += self._completed(task, previous, now)
        self._persist(changed)
        logger.debug(f"Moved {task_id} to {to_status.value}[{to_index}]")
        return True

    def reorder_task(self, task_id: str, to_index: int) -> bool:
        """Array-move a task within its own column."""
        task = self._lookup(task_id, "reorder")
        if task is None:
            return False

        column = partition(self._tasks.values(), task.status)
        old_index = next(i for i, t in enumerate(column) if t.id == task_id)
        if old_index == to_index:
            return False

        self._persist(reassign_order(move_within(column, task_id, to_index)))
        return True

    def reorder_partition(self, status: Status, ordered_ids: list[str]) -> list[Task]:
        """
        Rewrite a whole column's order from an explicit id sequence.

        Raises ReorderError, changing nothing, unless ordered_ids names every
        task in the column exactly once.
        """
        column = partition(self._tasks.values(), status)
        expected = {t.id for t in column}
        if len(ordered_ids) != len(set(ordered_ids)):
            raise ReorderError("Reorder lists a task more than once")
        if set(ordered_ids) != expected:
            missing = expected - set(ordered_ids)
            extra = set(ordered_ids) - expected
            raise ReorderError(
                f"Reorder must name exactly the {status.value} tasks "
                f"(missing: {sorted(missing)}, not in column: {sorted(extra)})"
            )

        by_id = {t.id: t for t in column}
        reordered = reassign_order([by_id[task_id] for task_id in ordered_ids])
        self._persist(reordered)
        return reordered

    # ============== Plans & forwarding ==============

    def add_plan(
        self,
        title: str,
        week_start: datetime,
        formula_id: str | None = None,
        notes: str = "",
        plan_id: str | None = None,
    ) -> WeeklyPlan:
        plan = WeeklyPlan(
            id=plan_id or new_id(),
            week_start=week_start,
            title=title,
            formula_id=formula_id,
            notes=notes,
        )
        self._plans[plan.id] = plan
        self._persist_plan(plan)
        logger.info(f"Added weekly plan {plan.id} starting {week_start.isoformat()}")
        return plan

    def forward(
        self,
        source_ids: list[str],
        plan_id: str | None = None,
        new_plan: NewPlan | None = None,
        now: datetime | None = None,
    ) -> ForwardResult:
        """
        Forward tasks into an existing plan, or into a plan created first.

        Raises ForwardError when there is no usable destination. Individual
        tasks that cannot be forwarded are reported in the result.
        """
        if new_plan is not None and plan_id is not None:
            raise ForwardError("Specify either a destination plan or a new plan, not both")
        if new_plan is not None:
            plan = self.add_plan(new_plan.title, new_plan.week_start, new_plan.formula_id, new_plan.notes)
            plan_id = plan.id
        elif plan_id is None:
            raise ForwardError("Must specify a destination plan or a new plan")
        elif plan_id not in self._plans:
            raise ForwardError(f"Weekly plan {plan_id} not found")

        result = forward_tasks(self._tasks, source_ids, plan_id, now)
        for clone in result.clones:
            self._tasks[clone.id] = clone
            self._persist([self._tasks[clone.forwarded_from_task_id], clone])
        return result

    # ============== Archive ==============

    def archive(self, cutoff: datetime | None = None, now: datetime | None = None) -> list[str]:
        """Archive completed tasks from before cutoff (default: this week's start)."""
        now = now or utcnow()
        cutoff = cutoff or current_week_start(now, self.week_settings)
        archived = archiving.archive_completed(self._tasks.values(), self._plans.values(), cutoff, now)
        self._persist(archived)
        return [t.id for t in archived]

    def restore(self, task_id: str) -> bool:
        """Un-archive a task, returning it to todo."""
        task = self._lookup(task_id, "restore")
        if task is None:
            return False
        if task.archived_at is None:
            logger.warning(f"restore: task {task_id} is not archived; ignoring")
            return False
        archiving.restore_task(self.tasks(), task)
        self._persist([task])
        return True
