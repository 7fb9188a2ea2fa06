"""
Chart Pipeline Stages

Blocking stage functions sequenced by the chart coordinator:
    (a) build_usd_average_price_table  (see usd_prices)
    (b) filter_trades_for_currency
    (c-f) build_update_chart_result

Every stage takes immutable snapshots and returns freshly built objects.
"""

import logging
from datetime import datetime, timezone, tzinfo
from typing import Iterable, List, Optional, Tuple

from schemas.chart_data import ChartPoint, UpdateChartResult
from schemas.market_data import Granularity, TradeRecord
from dataflow.adapters.labels import DateRangeFormatter, DefaultDateRangeFormatter
from dataflow.candle_aggregation.aggregator import (
    CRYPTO_EXPONENT,
    FIAT_EXPONENT,
    USD_VOLUME_SCALE_EXPONENT,
    aggregate_buckets,
)
from dataflow.candle_aggregation.intervals import (
    assign_trades,
    assign_trades_checked,
    generate_intervals,
)
from dataflow.candle_aggregation.usd_prices import UsdPriceTable

logger = logging.getLogger(__name__)


def filter_trades_for_currency(
    trades: Iterable[TradeRecord],
    currency_code: str,
    show_all_currencies: bool = False,
) -> Tuple[TradeRecord, ...]:
    """
    Select the trades of one currency, sorted ascending by timestamp.

    With show_all_currencies every trade passes the filter.
    """
    selected = [t for t in trades if show_all_currencies or t.currency == currency_code]
    selected.sort(key=lambda t: t.timestamp)
    logger.debug(
        f"Filtered {len(selected)} trades for "
        f"{'all currencies' if show_all_currencies else currency_code}"
    )
    return tuple(selected)


def build_update_chart_result(
    trades: Tuple[TradeRecord, ...],
    granularity: Granularity,
    usd_price_table: UsdPriceTable,
    is_crypto: bool,
    tz: tzinfo,
    max_ticks: int,
    formatter: Optional[DateRangeFormatter] = None,
    now: Optional[datetime] = None,
    crypto_exponent: int = CRYPTO_EXPONENT,
    fiat_exponent: int = FIAT_EXPONENT,
    usd_volume_scale_exponent: int = USD_VOLUME_SCALE_EXPONENT,
    validate_sort_order: bool = False,
    token=None,
) -> UpdateChartResult:
    """
    Bucket trades, aggregate candles and assemble the chart series.

    Args:
        trades: Trades of the target currency, sorted by timestamp
        granularity: Bucket width
        usd_price_table: Output of build_usd_average_price_table
        is_crypto: Whether the target currency is a cryptocurrency
        tz: Zone defining bucket boundaries
        max_ticks: Chart window width; max_ticks + 2 buckets are generated
        formatter: Date label formatter (defaults to ISO labels in tz)
        now: Window end, defaults to the current time
        validate_sort_order: Check trade order before assignment
        token: Optional cancellation token

    Returns:
        UpdateChartResult with all buckets and the price, volume and
        USD volume series
    """
    granularity = Granularity.parse(granularity)
    formatter = formatter or DefaultDateRangeFormatter(tz)
    now = now or datetime.now(timezone.utc)

    buckets = generate_intervals(now, granularity, tz, max_ticks)
    if validate_sort_order:
        dropped = assign_trades_checked(trades, buckets)
    else:
        dropped = assign_trades(trades, buckets)

    if token is not None:
        token.raise_if_cancelled()

    candles = aggregate_buckets(
        buckets,
        granularity,
        usd_price_table.get(granularity, {}),
        is_crypto,
        formatter,
        crypto_exponent=crypto_exponent,
        fiat_exponent=fiat_exponent,
        usd_volume_scale_exponent=usd_volume_scale_exponent,
        token=token,
    )

    price_items: List[ChartPoint] = [ChartPoint(c.tick, c.open, c) for c in candles]
    volume_items: List[ChartPoint] = [ChartPoint(c.tick, c.accumulated_amount, c) for c in candles]
    volume_in_usd_items: List[ChartPoint] = [ChartPoint(c.tick, c.volume_in_usd, c) for c in candles]

    logger.info(
        f"Chart {granularity.value}: {len(buckets)} buckets, {len(candles)} candles, "
        f"{len(trades) - dropped} trades assigned, {dropped} dropped"
    )

    return UpdateChartResult(
        buckets=buckets,
        price_items=price_items,
        volume_items=volume_items,
        volume_in_usd_items=volume_in_usd_items,
    )
