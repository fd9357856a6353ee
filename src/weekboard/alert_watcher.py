"""Periodic alert scan - runs the deduplicator on an interval and delivers alerts."""

import asyncio
import logging
from datetime import datetime

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from .adapters.console_alerts import ConsoleAlertSink
from .adapters.file_dismissals import FileDismissalStore
from .adapters.telegram_alerts import TelegramAlertSink
from .board import Board
from .config import Config, load_config
from .core.alerts import Alert, AlertDeduplicator, AlertKind
from .core.tasks import TaskUpdate, utcnow
from .ports.alert_sink import AlertSink
from .ports.dismissal_store import DismissalStore

logger = logging.getLogger(__name__)


class AlertWatcher:
    """
    Glue between the board, the deduplicator and the dismissal store.

    A tick rereads the board (other processes may have changed it), scans,
    clears fired reminders on their tasks and saves dismissals when they
    changed.
    """

    def __init__(self, board: Board, store: DismissalStore, reload: bool = True):
        self.board = board
        self.store = store
        self.reload = reload
        self.deduplicator = AlertDeduplicator(store.load())

    def tick(self, now: datetime | None = None) -> list[Alert]:
        """Run one scan. Returns newly fired alerts."""
        if self.reload:
            self.board.reload()
        result = self.deduplicator.scan(self.board.tasks(), now or utcnow())

        for task_id in result.reminders_fired:
            # None, not UNSET: the stored reminder must actually be cleared
            self.board.update_task(task_id, TaskUpdate(reminder_at=None))

        if result.dismissals_changed:
            self._save_dismissals()
        return result.alerts

    def pending(self) -> list[Alert]:
        return list(self.deduplicator.pending.values())

    def dismiss(self, alert: Alert) -> None:
        if self.deduplicator.dismiss(alert):
            self._save_dismissals()

    def dismiss_key(self, kind: AlertKind, key: str) -> None:
        if self.deduplicator.dismiss_alert(kind, key):
            self._save_dismissals()

    def _save_dismissals(self) -> None:
        try:
            self.store.save(self.deduplicator.dismissed)
        except OSError as e:
            logger.error(f"Failed to save dismissed alerts: {e}")


async def run_tick(watcher: AlertWatcher, sink: AlertSink) -> None:
    """Scheduled job: scan, then deliver whatever fired."""
    alerts = watcher.tick()
    if alerts:
        logger.info(f"Delivering {len(alerts)} alert(s)")
        await sink.deliver(alerts)


def build_sink(config: Config) -> AlertSink:
    """Telegram when configured, otherwise the console."""
    if config.telegram_bot_token and config.telegram_allowed_users:
        return TelegramAlertSink.from_token(config.telegram_bot_token, config.telegram_allowed_users)
    return ConsoleAlertSink()


def setup_scheduler(watcher: AlertWatcher, sink: AlertSink, config: Config | None = None) -> AsyncIOScheduler:
    """Set up the interval alert scan."""
    if config is None:
        config = load_config()

    scheduler = AsyncIOScheduler(timezone=config.timezone or "UTC")
    scheduler.add_job(
        run_tick,
        IntervalTrigger(seconds=config.alert_interval_seconds),
        args=[watcher, sink],
        id="alert_scan",
        max_instances=1,
        coalesce=True,
        next_run_time=datetime.now(scheduler.timezone),
    )
    logger.info(f"Scheduled alert scan every {config.alert_interval_seconds}s")
    return scheduler


def run_watcher(config: Config | None = None) -> None:
    """Run the alert watcher until interrupted."""
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=logging.INFO,
    )

    if config is None:
        config = load_config()
    board = Board.open(config)
    watcher = AlertWatcher(board, FileDismissalStore(config.dismissals_path))
    sink = build_sink(config)

    async def serve() -> None:
        scheduler = setup_scheduler(watcher, sink, config)
        scheduler.start()
        logger.info("Alert watcher started")
        try:
            await asyncio.Event().wait()
        finally:
            scheduler.shutdown(wait=False)

    asyncio.run(serve())
