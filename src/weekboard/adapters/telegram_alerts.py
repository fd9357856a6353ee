"""Telegram alert sink."""

import logging

from telegram import Bot
from telegram.error import TelegramError

from weekboard.core.alerts import Alert

logger = logging.getLogger(__name__)

# Telegram rejects messages longer than 4096 characters
MAX_MESSAGE_LENGTH = 4000


class TelegramAlertSink:
    """
    Sends fired alerts to Telegram users.

    Implements AlertSink protocol. One message per user per batch; a failed
    send to one user is logged and does not stop the others.
    """

    def __init__(self, bot: Bot, user_ids: list[int]):
        self.bot = bot
        self.user_ids = user_ids

    @classmethod
    def from_token(cls, token: str, user_ids: list[int]) -> "TelegramAlertSink":
        if not token:
            raise ValueError("TELEGRAM_BOT_TOKEN not configured. Add it to weekboard.conf")
        return cls(Bot(token), user_ids)

    @staticmethod
    def format_batch(alerts: list[Alert]) -> str:
        lines = ["*Board alerts*", ""]
        lines.extend(f"- {alert.format()}" for alert in alerts)
        text = "\n".join(lines)
        return text[:MAX_MESSAGE_LENGTH]

    async def deliver(self, alerts: list[Alert]) -> None:
        if not alerts:
            return
        text = self.format_batch(alerts)
        for user_id in self.user_ids:
            try:
                await self.bot.send_message(chat_id=user_id, text=text, parse_mode="Markdown")
            except TelegramError as e:
                logger.error(f"Failed to send alerts to user {user_id}: {e}")
