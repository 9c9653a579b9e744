"""Timezone-aware date/time helpers and the injectable clock."""

from datetime import date, datetime
from zoneinfo import ZoneInfo

from flask import current_app


class SystemClock:
    """Wall clock in a fixed timezone."""

    def __init__(self, tz_name: str = 'UTC'):
        self.tz = ZoneInfo(tz_name)

    def now(self) -> datetime:
        return datetime.now(self.tz)

    def today(self) -> date:
        return self.now().date()


class FixedClock:
    """
    Clock frozen at a given instant.

    Used by tests and by batch jobs that must evaluate "today" for a
    specific day.
    """

    def __init__(self, instant: datetime):
        self.instant = instant

    def now(self) -> datetime:
        return self.instant

    def today(self) -> date:
        return self.instant.date()


def get_clock():
    """Build the application clock from config."""
    return SystemClock(current_app.config.get('TIMEZONE', 'UTC'))


def format_timestamp(value: datetime) -> str:
    """Serialize a datetime as an ISO string with second precision."""
    return value.replace(microsecond=0).isoformat()
