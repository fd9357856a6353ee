"""Functional core - pure board logic with no I/O."""

from .tasks import (
    Frequency,
    Label,
    Priority,
    RecurrenceRule,
    Status,
    Task,
    TaskUpdate,
    UNSET,
    WeeklyPlan,
)
from .ordering import SortMode, ViewFilter, column_tasks, sort_tasks
from .drag import DragController, DragState
from .forwarding import ForwardResult, Rejection, forward_tasks
from .archive import archive_completed, restore_task
from .alerts import Alert, AlertDeduplicator, AlertKind, DismissalSet
from .weeks import WeekSettings, current_week_start
from .errors import ForwardError, ReorderError, WeekboardError

__all__ = [
    # Tasks
    "Frequency",
    "Label",
    "Priority",
    "RecurrenceRule",
    "Status",
    "Task",
    "TaskUpdate",
    "UNSET",
    "WeeklyPlan",
    # Ordering
    "SortMode",
    "ViewFilter",
    "column_tasks",
    "sort_tasks",
    # Drag
    "DragController",
    "DragState",
    # Forwarding
    "ForwardResult",
    "Rejection",
    "forward_tasks",
    # Archive
    "archive_completed",
    "restore_task",
    # Alerts
    "Alert",
    "AlertDeduplicator",
    "AlertKind",
    "DismissalSet",
    # Weeks
    "WeekSettings",
    "current_week_start",
    # Errors
    "ForwardError",
    "ReorderError",
    "WeekboardError",
]
