"""Ports - interfaces/protocols for external dependencies."""

from .task_repo import TaskRepository
from .dismissal_store import DismissalStore
from .alert_sink import AlertSink

__all__ = [
    "TaskRepository",
    "DismissalStore",
    "AlertSink",
]
