"""Console alert sink."""

import click

from weekboard.core.alerts import Alert, AlertKind


class ConsoleAlertSink:
    """Implements AlertSink protocol by echoing alerts to the terminal."""

    async def deliver(self, alerts: list[Alert]) -> None:
        for alert in alerts:
            color = "red" if alert.kind is AlertKind.OVERDUE else "yellow"
            click.secho(f"[{alert.key}] {alert.format()}", fg=color)
