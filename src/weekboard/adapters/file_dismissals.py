"""File-based dismissed-alert storage adapter."""

import json
import logging
from pathlib import Path

from weekboard.core.alerts import DismissalSet

logger = logging.getLogger(__name__)


class FileDismissalStore:
    """
    JSON file holding dismissed alert keys.

    Implements DismissalStore protocol. A missing or unreadable file is an
    empty set, so a corrupt file never blocks alerts.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path).expanduser()

    def load(self) -> DismissalSet:
        if not self.path.exists():
            return DismissalSet()
        try:
            data = json.loads(self.path.read_text())
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning(f"Ignoring unreadable dismissals file {self.path}: {e}")
            return DismissalSet()
        if not isinstance(data, dict):
            return DismissalSet()
        return DismissalSet.from_dict(data)

    def save(self, dismissed: DismissalSet) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(dismissed.to_dict(), indent=2))
