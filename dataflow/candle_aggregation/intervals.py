"""
Interval Generation and Bucket Assignment

Builds the trailing window of empty buckets ending at "now" and distributes
time-sorted trades into it with a two-pointer scan.
"""

import logging
from datetime import datetime, tzinfo
from typing import List, Sequence, Union

from schemas.chart_data import Bucket
from schemas.market_data import Granularity, TradeRecord
from dataflow.candle_aggregation.ticks import previous_bucket_start, round_to_bucket_start

logger = logging.getLogger(__name__)


class UnsortedTradesError(ValueError):
    """Raised by the checked assignment path when trades are not time-ordered"""


def generate_intervals(
    now: datetime,
    granularity: Union[Granularity, str],
    tz: tzinfo,
    max_ticks: int,
) -> List[Bucket]:
    """
    Generate `max_ticks + 2` empty buckets ending with the bucket of `now`.

    Starts are built backwards: the last bucket starts at the rounded `now`,
    every earlier one at the bucket start just before its successor.

    Args:
        now: Reference time of the window's newest bucket
        granularity: Bucket width
        tz: Zone defining bucket boundaries
        max_ticks: Chart window width

    Returns:
        Buckets ordered oldest first with strictly increasing starts
    """
    if max_ticks < 1:
        raise ValueError(f"max_ticks must be positive, got {max_ticks}")

    starts = [round_to_bucket_start(now, granularity, tz)]
    for _ in range(max_ticks + 1):
        starts.append(previous_bucket_start(starts[-1], granularity, tz))

    return [Bucket(start=start) for start in reversed(starts)]


def assign_trades(trades: Sequence[TradeRecord], buckets: List[Bucket]) -> int:
    """
    Assign trades to buckets in place.

    Trades MUST be sorted ascending by timestamp; this is not checked and
    unsorted input silently yields wrong membership (see assign_trades_checked).
    A trade joins bucket i when it is strictly after bucket i's start and not
    after bucket i+1's start. The cursor is carried across trades so sorted
    input costs O(n + buckets). Bucket 0 and the newest bucket never receive
    trades; bucket max_ticks also takes every trade newer than its start.

    Args:
        trades: Time-sorted trades
        buckets: Output of generate_intervals

    Returns:
        Number of trades dropped as too old for the window
    """
    max_ticks = len(buckets) - 2
    dropped = 0
    i = max_ticks
    for trade in trades:
        # move forwards if the trade is newer than the cursor's bucket
        while i < max_ticks and trade.timestamp > buckets[i + 1].start:
            i += 1

        # scan backwards until the bucket start is before the trade
        assigned = False
        while i > 0:
            if trade.timestamp > buckets[i].start:
                buckets[i].trades.append(trade)
                assigned = True
                break
            i -= 1

        if not assigned:
            dropped += 1

    if dropped:
        logger.debug(f"Dropped {dropped} trades older than the chart window")
    return dropped


def assign_trades_checked(trades: Sequence[TradeRecord], buckets: List[Bucket]) -> int:
    """
    Validate sort order, then assign trades with assign_trades.

    Raises:
        UnsortedTradesError: If any trade is older than its predecessor
    """
    for index in range(1, len(trades)):
        if trades[index].timestamp < trades[index - 1].timestamp:
            raise UnsortedTradesError(
                f"Trades not sorted by timestamp at index {index}: "
                f"{trades[index].timestamp.isoformat()} < "
                f"{trades[index - 1].timestamp.isoformat()}"
            )
    return assign_trades(trades, buckets)
