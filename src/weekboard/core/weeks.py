"""Planning-period boundaries - pure date arithmetic."""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo


@dataclass
class WeekSettings:
    """
    When a planning week begins and ends.

    Days use 0=Sunday .. 6=Saturday. Defaults to a Thursday 14:00 to
    Thursday 14:00 week.
    """

    start_day: int = 4
    start_hour: int = 14
    end_day: int = 4
    end_hour: int = 14
    timezone: str = "UTC"

    def zone(self) -> ZoneInfo:
        return ZoneInfo(self.timezone or "UTC")


def _sunday_based_weekday(moment: datetime) -> int:
    # datetime.weekday() is Monday=0; settings are Sunday=0
    return (moment.weekday() + 1) % 7


def week_start_date(now: datetime, settings: WeekSettings) -> datetime:
    """Most recent start boundary on or before now, as an aware datetime."""
    local_now = now.astimezone(settings.zone())
    days_since_start = (_sunday_based_weekday(local_now) - settings.start_day + 7) % 7
    boundary = local_now.replace(
        hour=settings.start_hour, minute=0, second=0, microsecond=0
    ) - timedelta(days=days_since_start)
    if local_now < boundary:
        boundary -= timedelta(days=7)
    return boundary


def week_end_date(now: datetime, settings: WeekSettings) -> datetime:
    """End boundary of the week that contains now."""
    start = week_start_date(now, settings)

    if settings.start_day == settings.end_day and settings.start_hour == settings.end_hour:
        return start + timedelta(days=7)

    days_to_end = (settings.end_day - settings.start_day + 7) % 7
    end = start.replace(hour=settings.end_hour) + timedelta(days=days_to_end or 7)
    if settings.end_day == settings.start_day and settings.end_hour <= settings.start_hour:
        end += timedelta(days=7)
    return end


def current_week_start(now: datetime, settings: WeekSettings) -> datetime:
    """
    Cutoff used by the archive transition: the current week's end minus 7 days.

    Returned in UTC.
    """
    end = week_end_date(now, settings)
    return (end - timedelta(days=7)).astimezone(timezone.utc)
