"""Archive transition - move finished work out of the current view."""

import logging
from collections.abc import Iterable, Mapping
from datetime import datetime, timezone

from .ordering import next_order
from .tasks import Status, Task, WeeklyPlan, utcnow

logger = logging.getLogger(__name__)


def _utc_date(moment: datetime):
    return moment.astimezone(timezone.utc).date()


def should_archive(task: Task, plans: Mapping[str, WeeklyPlan], cutoff: datetime) -> bool:
    """
    Whether a task belongs to a period that ended before cutoff.

    Plan-scoped tasks compare the plan's week_start by calendar date, since
    plans are often created with a date-only week_start. Unscoped tasks
    compare their own creation instant.
    """
    if task.status is not Status.COMPLETE or task.archived_at is not None or task.is_deleted:
        return False

    if task.weekly_plan_id is None:
        return task.created_at < cutoff

    plan = plans.get(task.weekly_plan_id)
    if plan is None:
        return False
    return _utc_date(plan.week_start) < _utc_date(cutoff)


def archive_completed(
    tasks: Iterable[Task],
    plans: Iterable[WeeklyPlan],
    cutoff: datetime,
    now: datetime | None = None,
) -> list[Task]:
    """
    Stamp archived_at on completed tasks from earlier periods.

    Idempotent: already-archived tasks are skipped, so a second pass with the
    same cutoff changes nothing. Returns the tasks archived by this pass.
    """
    now = now or utcnow()
    plans_by_id = {plan.id: plan for plan in plans}
    archived = []
    for task in tasks:
        if should_archive(task, plans_by_id, cutoff):
            task.archived_at = now
            archived.append(task)

    if archived:
        logger.info(f"Archived {len(archived)} completed task(s) before {cutoff.isoformat()}")
    return archived


def restore_task(tasks: Iterable[Task], task: Task) -> Task:
    """
    Bring an archived task back onto the board.

    The task returns to todo, last in that column; leaving it complete would
    let the next archive pass take it straight back.
    """
    order = next_order(tasks, Status.TODO)
    task.archived_at = None
    task.status = Status.TODO
    task.order = order
    logger.info(f"Restored archived task {task.id}")
    return task


def archived_tasks(tasks: Iterable[Task]) -> list[Task]:
    """Archived, non-deleted tasks, most recently archived first."""
    found = [t for t in tasks if t.archived_at is not None and not t.is_deleted]
    return sorted(found, key=lambda t: (t.archived_at, t.id), reverse=True)
