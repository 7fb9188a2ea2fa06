"""
Candle Aggregator

Turns the trades of each non-empty bucket into CandleData: OHLC, accumulated
amount and volume, average and median price, direction and a USD volume
estimate.
"""

import logging
from datetime import datetime
from typing import Dict, List, Optional

from schemas.chart_data import Bucket, CandleData
from schemas.market_data import Granularity, TradeRecord
from dataflow.adapters.labels import DateRangeFormatter
from dataflow.candle_aggregation.fixed_point import divide_half_up, median, scale_down, scale_up
from dataflow.candle_aggregation.usd_prices import resolve_usd_prices

logger = logging.getLogger(__name__)

CRYPTO_EXPONENT = 8
FIAT_EXPONENT = 8
USD_VOLUME_SCALE_EXPONENT = 4


class CandleBuilder:
    """Builds a candle from the trades of one bucket"""

    def __init__(
        self,
        tick: int,
        is_crypto: bool,
        crypto_exponent: int = CRYPTO_EXPONENT,
        fiat_exponent: int = FIAT_EXPONENT,
        usd_volume_scale_exponent: int = USD_VOLUME_SCALE_EXPONENT,
    ):
        self.tick = tick
        self.is_crypto = is_crypto
        self.crypto_exponent = crypto_exponent
        self.fiat_exponent = fiat_exponent
        self.usd_volume_scale_exponent = usd_volume_scale_exponent
        self.trades: List[TradeRecord] = []
        self.high: Optional[int] = None
        self.low: Optional[int] = None
        self.accumulated_amount: int = 0
        self.accumulated_volume: int = 0

    def add_trade(self, trade: TradeRecord) -> None:
        """Add a trade to this candle"""
        price = trade.price
        self.high = price if self.high is None else max(self.high, price)
        self.low = price if self.low is None else min(self.low, price)
        self.accumulated_amount += trade.amount
        self.accumulated_volume += trade.volume
        self.trades.append(trade)

    def is_empty(self) -> bool:
        """Check if candle has any data"""
        return not self.trades

    def average_price(self) -> int:
        """
        Volume-weighted average price.

        Crypto pairs carry the smallest-unit scale on the amount side, fiat
        pairs on the volume side. Zero denominators yield 0.
        """
        if self.is_crypto:
            return divide_half_up(
                scale_up(self.accumulated_amount, self.crypto_exponent),
                self.accumulated_volume,
            )
        return divide_half_up(
            scale_up(self.accumulated_volume, self.fiat_exponent),
            self.accumulated_amount,
        )

    def volume_in_usd(self, average_usd_price: int) -> int:
        """
        USD value of the accumulated amount, in whole USD.

        Price and amount are scaled down before multiplying and the product
        again afterwards; sub-dollar precision is discarded.
        """
        k = self.usd_volume_scale_exponent
        price = scale_down(average_usd_price, k)
        volume = price * scale_down(self.accumulated_amount, k)
        return scale_down(volume, k)

    def build(self, average_usd_price: int = 0, date_label: str = "") -> CandleData:
        """Build the final CandleData object"""
        if self.is_empty():
            raise ValueError(f"Cannot build empty candle for tick {self.tick}")

        ordered = sorted(self.trades, key=lambda t: t.timestamp)
        open_price = ordered[0].price
        close_price = ordered[-1].price

        if self.is_crypto:
            is_bullish = close_price < open_price
        else:
            is_bullish = close_price > open_price

        return CandleData(
            tick=self.tick,
            open=open_price,
            close=close_price,
            high=self.high,
            low=self.low,
            average_price=self.average_price(),
            median_price=median(t.price for t in self.trades),
            accumulated_amount=self.accumulated_amount,
            accumulated_volume=self.accumulated_volume,
            num_trades=len(self.trades),
            is_bullish=is_bullish,
            date_label=date_label,
            volume_in_usd=self.volume_in_usd(average_usd_price),
        )


def format_date_label(
    granularity: Granularity,
    start: datetime,
    end: Optional[datetime],
    formatter: DateRangeFormatter,
) -> str:
    """
    Date range label of a bucket.

    Intraday granularities show a date-time span, day and coarser show the
    two boundary dates.
    """
    if end is None:
        return formatter.format_date(start)
    if granularity < Granularity.DAY:
        return formatter.format_date_time_span(start, end)
    return f"{formatter.format_date(start)} - {formatter.format_date(end)}"


def aggregate_buckets(
    buckets: List[Bucket],
    granularity: Granularity,
    usd_price_map: Dict[datetime, int],
    is_crypto: bool,
    formatter: DateRangeFormatter,
    crypto_exponent: int = CRYPTO_EXPONENT,
    fiat_exponent: int = FIAT_EXPONENT,
    usd_volume_scale_exponent: int = USD_VOLUME_SCALE_EXPONENT,
    token=None,
) -> List[CandleData]:
    """
    Aggregate every non-empty bucket into CandleData.

    The USD price of a bucket is looked up by its start in usd_price_map;
    a missing entry carries the last resolved price forward.

    Args:
        buckets: Filled buckets, oldest first
        granularity: Bucket width, selects the label style
        usd_price_map: Bucket start -> average USD price for this granularity
        is_crypto: Whether the target currency is a cryptocurrency
        formatter: Date label formatter
        token: Optional cancellation token, checked between buckets

    Returns:
        Candles sorted by tick ascending
    """
    non_empty = [(tick, bucket) for tick, bucket in enumerate(buckets) if not bucket.is_empty()]
    usd_prices = resolve_usd_prices(((tick, b.start) for tick, b in non_empty), usd_price_map)

    candles = []
    for tick, bucket in non_empty:
        if token is not None:
            token.raise_if_cancelled()

        builder = CandleBuilder(
            tick,
            is_crypto,
            crypto_exponent=crypto_exponent,
            fiat_exponent=fiat_exponent,
            usd_volume_scale_exponent=usd_volume_scale_exponent,
        )
        for trade in bucket.trades:
            builder.add_trade(trade)

        end = buckets[tick + 1].start if tick + 1 < len(buckets) else None
        label = format_date_label(granularity, bucket.start, end, formatter)
        candle = builder.build(usd_prices[tick], label)
        candles.append(candle)

        logger.debug(
            f"Candle {tick} {label}: O={candle.open} H={candle.high} "
            f"L={candle.low} C={candle.close} trades={candle.num_trades}"
        )

    candles.sort(key=lambda c: c.tick)
    return candles
