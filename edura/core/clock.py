"""Time source used by scheduled jobs and time-window checks."""

from datetime import date, datetime
from typing import Protocol
from zoneinfo import ZoneInfo

from edura.core.config import settings


class Clock(Protocol):
    """Anything that can tell the current local time."""

    def now(self) -> datetime: ...


class SystemClock:
    """Wall-clock time in the configured timezone."""

    def __init__(self, tz_name: str) -> None:
        self.tz = ZoneInfo(tz_name)

    def now(self) -> datetime:
        return datetime.now(self.tz)


class FixedClock:
    """Clock frozen at a given instant."""

    def __init__(self, moment: datetime) -> None:
        self.moment = moment

    def now(self) -> datetime:
        return self.moment


def get_clock() -> Clock:
    """Dependency for getting the current time source."""
    return SystemClock(settings.TIMEZONE)


def day_of_week(day: date) -> int:
    """Day of week with Sunday = 0 ... Saturday = 6."""
    return day.isoweekday() % 7


def minutes_since_midnight(moment: datetime) -> int:
    return moment.hour * 60 + moment.minute


def parse_hhmm(value: str) -> int:
    """Convert "HH:MM" to minutes since midnight."""
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def billing_month_of(day: date) -> str:
    """Billing month key, e.g. "2024-06"."""
    return f"{day.year:04d}-{day.month:02d}"
