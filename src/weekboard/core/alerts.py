"""
Overdue and reminder alerts - pure deduplication logic.

Alerts are keyed by a composite key:
- overdue: "<task id>:<due_at>", so moving a due date makes the task eligible
  to alert again
- reminder: "<task id>", since a reminder is cleared once it fires

A key fires at most once per process (the notified set) and never again once
dismissed (the dismissed set, which the caller persists).
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, assert_never

from .tasks import Status, Task, format_instant, utcnow

logger = logging.getLogger(__name__)


class AlertKind(Enum):
    OVERDUE = "overdue"
    REMINDER = "reminder"


@dataclass(frozen=True)
class Alert:
    kind: AlertKind
    task_id: str
    title: str
    key: str

    @property
    def id(self) -> str:
        return f"{self.kind.value}-{self.task_id}"

    def format(self) -> str:
        match self.kind:
            case AlertKind.OVERDUE:
                return f"Overdue: {self.title}"
            case AlertKind.REMINDER:
                return f"Reminder: {self.title}"
            case _:
                assert_never(self.kind)


def overdue_key(task: Task) -> str:
    return f"{task.id}:{format_instant(task.due_at)}"


def reminder_key(task: Task) -> str:
    return task.id


def key_task_id(key: str) -> str:
    """Task id part of a composite key."""
    return key.partition(":")[0]


@dataclass
class DismissalSet:
    """Dismissed composite keys, persisted between runs."""

    overdue: set[str] = field(default_factory=set)
    reminder: set[str] = field(default_factory=set)

    def keys(self, kind: AlertKind) -> set[str]:
        match kind:
            case AlertKind.OVERDUE:
                return self.overdue
            case AlertKind.REMINDER:
                return self.reminder
            case _:
                assert_never(kind)

    def to_dict(self) -> dict[str, list[str]]:
        return {"overdue": sorted(self.overdue), "reminder": sorted(self.reminder)}

    @classmethod
    def from_dict(cls, data: dict) -> "DismissalSet":
        """Keys from a stored record; any entry that is not a list of strings reads as empty."""
        return cls(
            overdue=_key_set(data.get("overdue")),
            reminder=_key_set(data.get("reminder")),
        )


def _key_set(raw: Any) -> set[str]:
    if not isinstance(raw, list) or not all(isinstance(key, str) for key in raw):
        return set()
    return set(raw)


@dataclass
class ScanResult:
    alerts: list[Alert] = field(default_factory=list)
    # Task ids whose reminder fired and must be cleared on the task itself
    reminders_fired: list[str] = field(default_factory=list)
    dismissals_changed: bool = False


class AlertDeduplicator:
    """
    At-most-once alerts per composite key.

    Holds the in-process notified sets, the persisted dismissed set and the
    alerts currently pending (shown but not dismissed).
    """

    def __init__(self, dismissed: DismissalSet | None = None):
        self.dismissed = dismissed or DismissalSet()
        self.notified = DismissalSet()
        self.pending: dict[str, Alert] = {}

    def is_suppressed(self, kind: AlertKind, key: str) -> bool:
        return key in self.notified.keys(kind) or key in self.dismissed.keys(kind)

    def record_alert(self, kind: AlertKind, key: str) -> bool:
        """Mark a key as notified. Returns False if it was already suppressed."""
        if self.is_suppressed(kind, key):
            return False
        self.notified.keys(kind).add(key)
        return True

    def dismiss_alert(self, kind: AlertKind, key: str) -> bool:
        """Add a key to the dismissed set. Returns True if the set changed."""
        keys = self.dismissed.keys(kind)
        changed = key not in keys
        keys.add(key)
        for alert_id, alert in list(self.pending.items()):
            if alert.kind is kind and alert.key == key:
                del self.pending[alert_id]
        return changed

    def dismiss(self, alert: Alert) -> bool:
        return self.dismiss_alert(alert.kind, alert.key)

    def _collect_garbage(self, live_ids: set[str]) -> bool:
        """Drop keys whose task no longer exists. Returns True if dismissals changed."""
        changed = False
        for kind in AlertKind:
            notified = self.notified.keys(kind)
            notified -= {k for k in notified if key_task_id(k) not in live_ids}

            dismissed = self.dismissed.keys(kind)
            gone = {k for k in dismissed if key_task_id(k) not in live_ids}
            if gone:
                dismissed -= gone
                changed = True
        return changed

    def _retire_pending(self, tasks_by_id: dict[str, Task]) -> None:
        for alert_id, alert in list(self.pending.items()):
            task = tasks_by_id.get(alert.task_id)
            if task is None:
                del self.pending[alert_id]
            elif alert.kind is AlertKind.OVERDUE and task.status is Status.COMPLETE:
                del self.pending[alert_id]

    def scan(self, tasks: Iterable[Task], now: datetime | None = None) -> ScanResult:
        """
        Check every task once and return newly fired alerts.

        An empty snapshot means tasks have not loaded yet; nothing is fired
        or garbage-collected in that case.
        """
        now = now or utcnow()
        live = {t.id: t for t in tasks if not t.is_deleted}
        result = ScanResult()
        if not live:
            return result

        result.dismissals_changed = self._collect_garbage(set(live))

        for task in live.values():
            if task.due_at is not None and task.status is not Status.COMPLETE and task.due_at < now:
                key = overdue_key(task)
                if self.record_alert(AlertKind.OVERDUE, key):
                    result.alerts.append(Alert(AlertKind.OVERDUE, task.id, task.title, key))

            if task.reminder_at is not None and task.reminder_at <= now:
                key = reminder_key(task)
                if self.record_alert(AlertKind.REMINDER, key):
                    result.alerts.append(Alert(AlertKind.REMINDER, task.id, task.title, key))
                    result.reminders_fired.append(task.id)

        for alert in result.alerts:
            self.pending[alert.id] = alert
        self._retire_pending(live)

        if result.alerts:
            logger.info(f"Alert scan fired {len(result.alerts)} alert(s)")
        return result
