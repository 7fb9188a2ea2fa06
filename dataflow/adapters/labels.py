"""
Date Label Adapter

Formats the human-readable date range of a candle. The chart core only
depends on the DateRangeFormatter protocol; the default formatter writes
non-localized ISO-style dates.
"""

from datetime import datetime, tzinfo
from typing import Optional, Protocol


class DateRangeFormatter(Protocol):
    """Protocol for candle date-range labels"""

    def format_date(self, value: datetime) -> str:
        ...

    def format_date_time_span(self, start: datetime, end: datetime) -> str:
        ...


class DefaultDateRangeFormatter:
    """
    ISO-style labels rendered in a fixed zone.

    Example usage:
        formatter = DefaultDateRangeFormatter(ZoneInfo("Europe/Berlin"))
        formatter.format_date(start)                 # "2024-03-15"
        formatter.format_date_time_span(start, end)  # "2024-03-15 10:00 - 11:00"
    """

    def __init__(self, tz: Optional[tzinfo] = None):
        self.tz = tz

    def _local(self, value: datetime) -> datetime:
        return value.astimezone(self.tz) if self.tz is not None else value

    def format_date(self, value: datetime) -> str:
        return self._local(value).strftime("%Y-%m-%d")

    def format_date_time_span(self, start: datetime, end: datetime) -> str:
        start, end = self._local(start), self._local(end)
        if start.date() == end.date():
            return f"{start:%Y-%m-%d %H:%M} - {end:%H:%M}"
        return f"{start:%Y-%m-%d %H:%M} - {end:%Y-%m-%d %H:%M}"
