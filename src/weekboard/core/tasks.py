"""Pure task domain model - no I/O dependencies."""

import uuid
from dataclasses import dataclass, field, fields
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any


class Status(Enum):
    """Board column a task lives in."""

    TODO = "todo"
    IN_PROGRESS = "in-progress"
    COMPLETE = "complete"

    @classmethod
    def parse(cls, raw: str | None) -> "Status":
        if not raw:
            return cls.TODO
        try:
            return cls(raw)
        except ValueError:
            return cls.TODO


COLUMNS: tuple[Status, ...] = (Status.TODO, Status.IN_PROGRESS, Status.COMPLETE)


class Priority(Enum):
    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @classmethod
    def parse(cls, raw: str | None) -> "Priority":
        if not raw:
            return cls.NONE
        try:
            return cls(raw)
        except ValueError:
            return cls.NONE


class Label(Enum):
    NONE = "none"
    RED = "red"
    ORANGE = "orange"
    YELLOW = "yellow"
    GREEN = "green"
    BLUE = "blue"
    PURPLE = "purple"

    @classmethod
    def parse(cls, raw: str | None) -> "Label":
        if not raw:
            return cls.NONE
        try:
            return cls(raw)
        except ValueError:
            return cls.NONE


class Frequency(Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"


# ============== Instants ==============


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_instant(raw: str | None) -> datetime | None:
    """
    Parse a stored ISO-8601 instant.

    Date-only strings and naive timestamps are read as UTC.
    """
    if not raw:
        return None
    value = datetime.fromisoformat(raw)
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def format_instant(value: datetime | None) -> str | None:
    """Format an instant as UTC ISO-8601 with a Z suffix."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def new_id() -> str:
    return uuid.uuid4().hex


# ============== Records ==============


@dataclass
class RecurrenceRule:
    """How often a task repeats, counted from start_date."""

    frequency: Frequency
    start_date: date

    def to_dict(self) -> dict:
        return {"frequency": self.frequency.value, "startDate": self.start_date.isoformat()}

    @classmethod
    def from_dict(cls, data: dict) -> "RecurrenceRule":
        return cls(
            frequency=Frequency(data["frequency"]),
            start_date=date.fromisoformat(data["startDate"].split("T")[0]),
        )


@dataclass
class Task:
    """A single card on the board."""

    id: str
    title: str
    status: Status = Status.TODO
    order: float = 0
    created_at: datetime = field(default_factory=utcnow)
    description: str = ""
    priority: Priority = Priority.NONE
    label: Label = Label.NONE
    category: str | None = None
    bugged: bool = False
    weekly_plan_id: str | None = None
    formula_step_id: str | None = None
    due_at: datetime | None = None
    reminder_at: datetime | None = None
    forwarded_from_task_id: str | None = None
    forwarded_to_task_id: str | None = None
    archived_at: datetime | None = None
    deleted_at: datetime | None = None
    recurrence_rule: RecurrenceRule | None = None
    recurrence_source_id: str | None = None

    @property
    def is_superseded(self) -> bool:
        """Forwarded tasks are replaced by their clone in current views."""
        return self.forwarded_to_task_id is not None

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def is_overdue(self, now: datetime) -> bool:
        return (
            self.due_at is not None
            and self.status is not Status.COMPLETE
            and self.due_at < now
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the camelCase record shape used on disk."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "status": self.status.value,
            "order": self.order,
            "createdAt": format_instant(self.created_at),
            "priority": self.priority.value,
            "label": self.label.value,
            "category": self.category,
            "bugged": self.bugged,
            "weeklyPlanId": self.weekly_plan_id,
            "formulaStepId": self.formula_step_id,
            "dueAt": format_instant(self.due_at),
            "reminderAt": format_instant(self.reminder_at),
            "forwardedFromTaskId": self.forwarded_from_task_id,
            "forwardedToTaskId": self.forwarded_to_task_id,
            "archivedAt": format_instant(self.archived_at),
            "deletedAt": format_instant(self.deleted_at),
            "recurrenceRule": self.recurrence_rule.to_dict() if self.recurrence_rule else None,
            "recurrenceSourceId": self.recurrence_source_id,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Task":
        rule = data.get("recurrenceRule")
        return cls(
            id=data["id"],
            title=data.get("title", ""),
            description=data.get("description") or "",
            status=Status.parse(data.get("status")),
            order=data.get("order", 0),
            created_at=parse_instant(data.get("createdAt")) or utcnow(),
            priority=Priority.parse(data.get("priority")),
            label=Label.parse(data.get("label")),
            category=data.get("category") or None,
            bugged=bool(data.get("bugged", False)),
            weekly_plan_id=data.get("weeklyPlanId") or None,
            formula_step_id=data.get("formulaStepId") or None,
            due_at=parse_instant(data.get("dueAt")),
            reminder_at=parse_instant(data.get("reminderAt")),
            forwarded_from_task_id=data.get("forwardedFromTaskId") or None,
            forwarded_to_task_id=data.get("forwardedToTaskId") or None,
            archived_at=parse_instant(data.get("archivedAt")),
            deleted_at=parse_instant(data.get("deletedAt")),
            recurrence_rule=RecurrenceRule.from_dict(rule) if rule else None,
            recurrence_source_id=data.get("recurrenceSourceId") or None,
        )


@dataclass
class WeeklyPlan:
    """A planning-period scope. Plans are ordered by week_start."""

    id: str
    week_start: datetime
    title: str = ""
    formula_id: str | None = None
    notes: str = ""
    created_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "weekStart": format_instant(self.week_start),
            "formulaId": self.formula_id,
            "notes": self.notes,
            "createdAt": format_instant(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "WeeklyPlan":
        return cls(
            id=data["id"],
            week_start=parse_instant(data["weekStart"]),
            title=data.get("title", ""),
            formula_id=data.get("formulaId") or None,
            notes=data.get("notes") or "",
            created_at=parse_instant(data.get("createdAt")) or utcnow(),
        )


# ============== Partial updates ==============


class _Unset:
    """Marker for "field not sent" in a partial update."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()


@dataclass
class TaskUpdate:
    """
    Partial task update.

    Fields left as UNSET are not touched. None is an explicit "clear this
    field", so TaskUpdate(reminder_at=None) really removes a reminder.
    """

    title: Any = UNSET
    description: Any = UNSET
    status: Any = UNSET
    order: Any = UNSET
    priority: Any = UNSET
    label: Any = UNSET
    category: Any = UNSET
    bugged: Any = UNSET
    weekly_plan_id: Any = UNSET
    formula_step_id: Any = UNSET
    due_at: Any = UNSET
    reminder_at: Any = UNSET
    recurrence_rule: Any = UNSET

    def changes(self) -> dict[str, Any]:
        """Only the fields that were explicitly sent."""
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not UNSET
        }

    def is_empty(self) -> bool:
        return not self.changes()


def apply_update(task: Task, update: TaskUpdate) -> Task:
    """Apply the update's sent fields to task in place."""
    for name, value in update.changes().items():
        setattr(task, name, value)
    return task
