"""
USD Average Price Table

Volume-weighted average USD price per bucket start, for every granularity.
Used to estimate the USD value of trades quoted in other currencies.
"""

import logging
from collections import defaultdict
from datetime import datetime, tzinfo
from typing import Dict, Iterable, List, Tuple

from schemas.market_data import Granularity, TradeRecord
from dataflow.candle_aggregation.fixed_point import divide_half_up, scale_up
from dataflow.candle_aggregation.ticks import round_to_bucket_start

logger = logging.getLogger(__name__)

UsdPriceTable = Dict[Granularity, Dict[datetime, int]]

DEFAULT_VOLUME_EXPONENT = 8


def average_price(trades: Iterable[TradeRecord], exponent: int = DEFAULT_VOLUME_EXPONENT) -> int:
    """
    Volume-weighted average price of trades in the smallest price unit.

    Returns 0 when the trades carry no amount.
    """
    accumulated_amount = 0
    accumulated_volume = 0
    for trade in trades:
        accumulated_amount += trade.amount
        accumulated_volume += trade.volume
    return divide_half_up(scale_up(accumulated_volume, exponent), accumulated_amount)


def build_usd_average_price_table(
    trades: Iterable[TradeRecord],
    tz: tzinfo,
    usd_currency_code: str = "USD",
    exponent: int = DEFAULT_VOLUME_EXPONENT,
) -> UsdPriceTable:
    """
    Build the USD average price table over all USD-quoted trades.

    Trades are grouped by rounded timestamp at every granularity; the table
    is not windowed. Groups without any amount are left out so lookups fall
    back to the previously known price.

    Args:
        trades: Full trade set, any currency, any order
        tz: Zone defining bucket boundaries
        usd_currency_code: Currency code of USD trades
        exponent: Fixed-point exponent of the trade volume unit

    Returns:
        Mapping granularity -> bucket start -> average USD price
    """
    groups: Dict[Granularity, Dict[datetime, List[TradeRecord]]] = {
        granularity: defaultdict(list) for granularity in Granularity
    }

    usd_trades = 0
    for trade in trades:
        if trade.currency != usd_currency_code:
            continue
        usd_trades += 1
        for granularity in Granularity:
            start = round_to_bucket_start(trade.timestamp, granularity, tz)
            groups[granularity][start].append(trade)

    table: UsdPriceTable = {}
    for granularity, by_start in groups.items():
        prices: Dict[datetime, int] = {}
        for start, group in by_start.items():
            if sum(t.amount for t in group) == 0:
                logger.debug(f"Skipping USD price for {granularity.value} bucket {start}: no amount")
                continue
            prices[start] = average_price(group, exponent)
        table[granularity] = prices

    logger.info(
        f"Built USD average price table from {usd_trades} trades: "
        + ", ".join(f"{g.value}={len(p)}" for g, p in table.items())
    )
    return table


def resolve_usd_prices(
    starts: Iterable[Tuple[int, datetime]],
    price_map: Dict[datetime, int],
) -> Dict[int, int]:
    """
    Resolve the USD price for each (tick, start) with carry-forward.

    Starts missing from price_map reuse the last resolved price; before any
    price is known the result is 0.
    """
    resolved = {}
    current = 0
    for tick, start in starts:
        if start in price_map:
            current = price_map[start]
        resolved[tick] = current
    return resolved
