"""Configuration management for weekboard."""

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from .core.ordering import SortMode
from .core.weeks import WeekSettings

logger = logging.getLogger(__name__)

WEEKBOARD_HOME = Path(os.environ.get("WEEKBOARD_HOME", Path.home() / "weekboard"))
CONFIG_FILE = WEEKBOARD_HOME / "config" / "weekboard.conf"
DATA_DIR = WEEKBOARD_HOME / "data"

DAY_NAMES = ["sunday", "monday", "tuesday", "wednesday", "thursday", "friday", "saturday"]


@dataclass
class Config:
    """weekboard configuration."""

    board_file: str = ""
    dismissals_file: str = ""
    timezone: str = "UTC"
    week_start_day: int = 4
    week_start_hour: int = 14
    week_end_day: int = 4
    week_end_hour: int = 14
    sort_mode: SortMode = SortMode.PRIORITY_FORMULA
    alert_interval_seconds: int = 30
    # Formula step id -> rank; higher ranks sort first
    formula_ranks: dict[str, int] = field(default_factory=dict)
    # Telegram alert delivery
    telegram_bot_token: str = ""
    telegram_allowed_users: list[int] = field(default_factory=list)

    @property
    def board_path(self) -> Path:
        if self.board_file:
            return Path(self.board_file).expanduser()
        return DATA_DIR / "board.json"

    @property
    def dismissals_path(self) -> Path:
        if self.dismissals_file:
            return Path(self.dismissals_file).expanduser()
        return DATA_DIR / "dismissed_alerts.json"

    def week_settings(self) -> WeekSettings:
        return WeekSettings(
            start_day=self.week_start_day,
            start_hour=self.week_start_hour,
            end_day=self.week_end_day,
            end_hour=self.week_end_hour,
            timezone=self.timezone,
        )


def parse_day(value: str) -> int:
    """Day of week as 0=Sunday..6=Saturday, from a name or a number."""
    if value.isdigit():
        day = int(value)
    else:
        day = DAY_NAMES.index(value.strip().lower())
    if not 0 <= day <= 6:
        raise ValueError(f"Day out of range: {value}")
    return day


def parse_hour(value: str) -> int:
    """Hour 0-23, from "14" or "14:00"."""
    hour = int(value.split(":")[0])
    if not 0 <= hour <= 23:
        raise ValueError(f"Hour out of range: {value}")
    return hour


def _strip_value(value: str) -> str:
    # Handle quoted values with inline comments: "value" # comment
    if value.startswith('"'):
        end_quote = value.find('"', 1)
        return value[1:end_quote] if end_quote != -1 else value[1:]
    if value.startswith("'"):
        end_quote = value.find("'", 1)
        return value[1:end_quote] if end_quote != -1 else value[1:]
    # Unquoted: strip inline comments
    if "#" in value:
        return value.split("#")[0].strip()
    return value


def load_config(path: Path | None = None) -> Config:
    """Load configuration from weekboard.conf."""
    config = Config()
    path = path or CONFIG_FILE

    if not path.exists():
        return config

    for line in path.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue

        if "=" not in line:
            continue

        key, _, value = line.partition("=")
        key = key.strip().lower()
        value = _strip_value(value.strip())

        try:
            match key:
                case "board_file":
                    config.board_file = value
                case "dismissals_file":
                    config.dismissals_file = value
                case "timezone":
                    config.timezone = value
                case "week_start_day":
                    config.week_start_day = parse_day(value)
                case "week_start_hour":
                    config.week_start_hour = parse_hour(value)
                case "week_end_day":
                    config.week_end_day = parse_day(value)
                case "week_end_hour":
                    config.week_end_hour = parse_hour(value)
                case "sort_mode":
                    config.sort_mode = SortMode(value)
                case "alert_interval_seconds":
                    config.alert_interval_seconds = max(1, int(value))
                case "formula_ranks":
                    # JSON object: {"step-id": 1700, ...}
                    config.formula_ranks = {str(k): int(v) for k, v in json.loads(value).items()}
                case "telegram_bot_token":
                    config.telegram_bot_token = value
                case "telegram_allowed_users":
                    config.telegram_allowed_users = [int(u.strip()) for u in value.split(",") if u.strip()]
                case _:
                    logger.debug(f"Ignoring unknown config key: {key}")
        except (ValueError, AttributeError) as e:
            logger.warning(f"Invalid value for {key.upper()}: {e}")

    return config
