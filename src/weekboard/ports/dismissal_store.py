"""Dismissed-alert storage interface."""

from typing import Protocol

from weekboard.core.alerts import DismissalSet


class DismissalStore(Protocol):
    """Interface for the persisted set of dismissed alert keys."""

    def load(self) -> DismissalSet:
        """Load dismissed keys. Returns an empty set if nothing is stored."""
        ...

    def save(self, dismissed: DismissalSet) -> None:
        """Replace the stored dismissed keys."""
        ...
