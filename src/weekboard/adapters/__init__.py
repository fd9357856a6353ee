"""Adapters - I/O implementations of ports."""

from .file_board import FileBoardStore
from .file_dismissals import FileDismissalStore
from .console_alerts import ConsoleAlertSink
from .telegram_alerts import TelegramAlertSink

__all__ = [
    "FileBoardStore",
    "FileDismissalStore",
    "ConsoleAlertSink",
    "TelegramAlertSink",
]
