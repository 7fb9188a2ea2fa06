"""
Tick Rounding

Maps a timestamp to the start of the bucket containing it for a granularity.
Rounding is done on wall-clock time in an explicit time zone, so day, week,
month and year boundaries follow the zone's local midnight.
"""

from datetime import datetime, timedelta, timezone, tzinfo
from typing import Union

from schemas.market_data import Granularity

ONE_MILLISECOND = timedelta(milliseconds=1)


def round_to_bucket_start(
    timestamp: datetime,
    granularity: Union[Granularity, str],
    tz: tzinfo,
) -> datetime:
    """
    Round a timestamp down to the start of its bucket.

    The result is idempotent and monotonic in timestamp for a fixed
    granularity and zone.

    Args:
        timestamp: Timezone-aware timestamp (naive values are read as UTC)
        granularity: Bucket width
        tz: Zone whose wall clock defines the bucket boundaries

    Returns:
        Bucket start as a UTC instant, so starts on both sides of a DST
        fall-back stay distinct when compared or hashed

    Raises:
        ValueError: If granularity is not a known Granularity
    """
    granularity = Granularity.parse(granularity)
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    local = _to_wall_clock(timestamp, tz)
    local = local.replace(second=0, microsecond=0)

    if granularity is Granularity.YEAR:
        local = local.replace(month=1, day=1, hour=0, minute=0)
    elif granularity is Granularity.MONTH:
        local = local.replace(day=1, hour=0, minute=0)
    elif granularity is Granularity.WEEK:
        monday = local - timedelta(days=local.isoweekday() - 1)
        local = monday.replace(hour=0, minute=0)
    elif granularity is Granularity.DAY:
        local = local.replace(hour=0, minute=0)
    elif granularity is Granularity.HOUR:
        local = local.replace(minute=0)
    elif granularity is Granularity.TEN_MINUTES:
        local = local.replace(minute=local.minute - local.minute % 10)

    return local.replace(tzinfo=tz).astimezone(timezone.utc)


def previous_bucket_start(
    start: datetime,
    granularity: Union[Granularity, str],
    tz: tzinfo,
) -> datetime:
    """Start of the bucket immediately before the one starting at `start`"""
    # step on absolute time so a DST shift cannot skew the millisecond
    instant = start.astimezone(timezone.utc) - ONE_MILLISECOND
    return round_to_bucket_start(instant, granularity, tz)


def _to_wall_clock(timestamp: datetime, tz: tzinfo) -> datetime:
    """Naive wall-clock time of `timestamp` in `tz`"""
    return timestamp.astimezone(tz).replace(tzinfo=None)
