"""
Business Calendar

The single source of truth for "today". Sales, usage and shopping actions
are scoped by the civil date in one fixed timezone, never by server time.
"""

from datetime import datetime, timedelta, timezone
from typing import Callable, Optional
from zoneinfo import ZoneInfo

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class BusinessCalendar:
    """
    Business-date and timestamp provider.

    Example:
        calendar = BusinessCalendar("America/New_York")
        calendar.today()          # "2026-02-06"
        calendar.timestamp()      # "2026-02-06T14:03:11.123Z"
    """

    def __init__(self, tz_name: str = "America/New_York", clock: Optional[Clock] = None):
        self.tz_name = tz_name
        self.tz = ZoneInfo(tz_name)
        self._clock = clock or utc_now

    def now(self) -> datetime:
        """Current instant as an aware UTC datetime"""
        current = self._clock()
        if current.tzinfo is None:
            current = current.replace(tzinfo=timezone.utc)
        return current.astimezone(timezone.utc)

    def business_date(self, instant: datetime) -> str:
        """Civil date of ``instant`` in the business timezone"""
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=timezone.utc)
        return instant.astimezone(self.tz).strftime("%Y-%m-%d")

    def today(self) -> str:
        return self.business_date(self.now())

    def yesterday(self) -> str:
        local = self.now().astimezone(self.tz).date()
        return (local - timedelta(days=1)).isoformat()

    def timestamp(self) -> str:
        """ISO-8601 UTC timestamp with millisecond precision"""
        return self.now().isoformat(timespec="milliseconds").replace("+00:00", "Z")

    def local_display(self) -> str:
        return self.now().astimezone(self.tz).strftime("%Y-%m-%d %I:%M %p %Z")
