"""Forwarding - clone unfinished tasks into another weekly plan."""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from .ordering import next_order
from .tasks import Status, Task, new_id, utcnow

logger = logging.getLogger(__name__)


class Rejection(Enum):
    """Why a task was not forwarded."""

    NOT_FOUND = "not found"
    DELETED = "deleted"
    COMPLETE = "already complete"
    ALREADY_FORWARDED = "already forwarded"
    SAME_PLAN = "already in the destination plan"


@dataclass
class ForwardResult:
    plan_id: str
    clones: list[Task] = field(default_factory=list)
    rejected: dict[str, Rejection] = field(default_factory=dict)

    @property
    def forwarded_count(self) -> int:
        return len(self.clones)


def check_forwardable(task: Task | None, plan_id: str) -> Rejection | None:
    """Reason task cannot be forwarded into plan_id, or None if it can."""
    if task is None:
        return Rejection.NOT_FOUND
    if task.is_deleted:
        return Rejection.DELETED
    if task.status is Status.COMPLETE:
        return Rejection.COMPLETE
    if task.is_superseded:
        return Rejection.ALREADY_FORWARDED
    if task.weekly_plan_id == plan_id:
        return Rejection.SAME_PLAN
    return None


def clone_for_plan(source: Task, plan_id: str, order: float, now: datetime) -> Task:
    """
    Copy of source scoped to plan_id.

    The formula step is cleared because the destination plan may use a
    different formula; dates and lineage start fresh.
    """
    return Task(
        id=new_id(),
        title=source.title,
        description=source.description,
        status=source.status,
        order=order,
        created_at=now,
        priority=source.priority,
        label=source.label,
        category=source.category,
        bugged=source.bugged,
        weekly_plan_id=plan_id,
        formula_step_id=None,
        forwarded_from_task_id=source.id,
        recurrence_rule=source.recurrence_rule,
    )


def forward_tasks(
    tasks: Mapping[str, Task],
    source_ids: Iterable[str],
    plan_id: str,
    now: datetime | None = None,
) -> ForwardResult:
    """
    Forward each source task into plan_id.

    Each task either forwards completely (clone created and source linked) or
    is rejected on its own; one rejection never blocks the rest. Clones are
    returned, not inserted: the caller adds them to its working set.
    """
    now = now or utcnow()
    result = ForwardResult(plan_id=plan_id)
    working = list(tasks.values())

    for source_id in dict.fromkeys(source_ids):
        source = tasks.get(source_id)
        reason = check_forwardable(source, plan_id)
        if reason is not None:
            logger.warning(f"Not forwarding {source_id}: {reason.value}")
            result.rejected[source_id] = reason
            continue

        clone = clone_for_plan(source, plan_id, next_order(working, source.status), now)
        source.forwarded_to_task_id = clone.id
        working.append(clone)
        result.clones.append(clone)
        logger.info(f"Forwarded {source.id} -> {clone.id} into plan {plan_id}")

    return result


def lineage(tasks: Mapping[str, Task], task_id: str) -> list[Task]:
    """
    The forward chain containing task_id, oldest first.

    Walks back through forwarded_from and then forward through forwarded_to;
    the seen set stops a corrupted (cyclic) chain.
    """
    start = tasks.get(task_id)
    if start is None:
        return []

    seen = {start.id}
    head = start
    while head.forwarded_from_task_id and head.forwarded_from_task_id in tasks:
        previous = tasks[head.forwarded_from_task_id]
        if previous.id in seen:
            break
        seen.add(previous.id)
        head = previous

    chain = [head]
    visited = {head.id}
    current = head
    while current.forwarded_to_task_id and current.forwarded_to_task_id in tasks:
        following = tasks[current.forwarded_to_task_id]
        if following.id in visited:
            break
        visited.add(following.id)
        chain.append(following)
        current = following
    return chain
