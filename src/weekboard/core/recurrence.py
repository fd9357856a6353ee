"""Recurring task arithmetic and next-instance spawning."""

import calendar
import logging
from datetime import date, datetime, timedelta
from typing import assert_never

from .tasks import Frequency, RecurrenceRule, Status, Task, new_id, utcnow

logger = logging.getLogger(__name__)


def _add_months(moment: datetime, months: int) -> datetime:
    """Add calendar months, clamping the day to the target month's length."""
    month_index = moment.month - 1 + months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def next_recurrence(frequency: Frequency, from_date: datetime, intervals: int = 1) -> datetime:
    """The occurrence the given number of intervals after from_date."""
    match frequency:
        case Frequency.DAILY:
            return from_date + timedelta(days=intervals)
        case Frequency.WEEKLY:
            return from_date + timedelta(days=7 * intervals)
        case Frequency.MONTHLY:
            return _add_months(from_date, intervals)
        case Frequency.QUARTERLY:
            return _add_months(from_date, 3 * intervals)
        case Frequency.YEARLY:
            return _add_months(from_date, 12 * intervals)
        case _:
            assert_never(frequency)


def next_occurrence_after(frequency: Frequency, moment: datetime, now: datetime) -> datetime:
    """
    First occurrence after moment that is also later than now.

    Missed intervals collapse into one: a weekly task last due three weeks ago
    yields its first occurrence after now, not three overdue ones. Intervals
    are counted from moment so month-end clamping does not drift.
    """
    intervals = 1
    following = next_recurrence(frequency, moment)
    while following <= now:
        intervals += 1
        following = next_recurrence(frequency, moment, intervals)
    return following


def spawn_next_instance(completed: Task, order: float, now: datetime | None = None) -> Task | None:
    """
    Create the next instance of a recurring task that was just completed.

    Due and reminder instants advance to their first occurrence after now.
    The completed task's rule is cleared so it cannot spawn twice. Returns
    None when the task does not recur.
    """
    rule = completed.recurrence_rule
    if rule is None:
        return None
    now = now or utcnow()

    due_at = next_occurrence_after(rule.frequency, completed.due_at, now) if completed.due_at else None
    reminder_at = (
        next_occurrence_after(rule.frequency, completed.reminder_at, now) if completed.reminder_at else None
    )

    instance = Task(
        id=new_id(),
        title=completed.title,
        description=completed.description,
        status=Status.TODO,
        order=order,
        created_at=now,
        priority=completed.priority,
        label=completed.label,
        category=completed.category,
        due_at=due_at,
        reminder_at=reminder_at,
        recurrence_rule=rule,
        recurrence_source_id=completed.recurrence_source_id or completed.id,
    )
    completed.recurrence_rule = None
    logger.info(f"Spawned recurring instance {instance.id} from {completed.id} ({rule.frequency.value})")
    return instance


def rule_from_strings(frequency: str, start: str | None = None) -> RecurrenceRule:
    """Build a rule from CLI-style strings; start defaults to today."""
    return RecurrenceRule(
        frequency=Frequency(frequency),
        start_date=date.fromisoformat(start) if start else date.today(),
    )
