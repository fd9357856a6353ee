"""Alert delivery interface."""

from typing import Protocol

from weekboard.core.alerts import Alert


class AlertSink(Protocol):
    """Interface for showing fired alerts to the user."""

    async def deliver(self, alerts: list[Alert]) -> None:
        """Deliver a batch of newly fired alerts."""
        ...
