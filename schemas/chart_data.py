"""
Chart Data Schemas

Dataclasses for bucketed trades and the candle series derived from them.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import List

from schemas.market_data import TradeRecord


@dataclass
class Bucket:
    """
    A time interval of the chart and the trades assigned to it.

    `start` labels the bucket; buckets are created empty per run and filled
    by trade assignment.
    """
    start: datetime
    trades: List[TradeRecord] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.trades


@dataclass(frozen=True)
class CandleData:
    """
    Aggregate of one non-empty bucket.

    All monetary fields are fixed-point integers in their smallest unit,
    except volume_in_usd which is in whole USD.
    """
    tick: int
    open: int
    close: int
    high: int
    low: int
    average_price: int
    median_price: int
    accumulated_amount: int
    accumulated_volume: int
    num_trades: int
    is_bullish: bool
    date_label: str
    volume_in_usd: int

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "tick": self.tick,
            "open": self.open,
            "close": self.close,
            "high": self.high,
            "low": self.low,
            "average_price": self.average_price,
            "median_price": self.median_price,
            "accumulated_amount": self.accumulated_amount,
            "accumulated_volume": self.accumulated_volume,
            "num_trades": self.num_trades,
            "is_bullish": self.is_bullish,
            "date_label": self.date_label,
            "volume_in_usd": self.volume_in_usd,
        }

    def to_json(self) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict())


@dataclass(frozen=True)
class ChartPoint:
    """One point of a chart series: x = bucket index, y = metric value"""
    tick: int
    value: int
    candle: CandleData


@dataclass
class UpdateChartResult:
    """
    Full output of a chart calculation run.

    Attributes:
        buckets: Every generated bucket, empty ones included, oldest first
        price_items: Open price per non-empty bucket
        volume_items: Accumulated amount per non-empty bucket
        volume_in_usd_items: USD volume estimate per non-empty bucket
    """
    buckets: List[Bucket]
    price_items: List[ChartPoint]
    volume_items: List[ChartPoint]
    volume_in_usd_items: List[ChartPoint]

    @property
    def candles(self) -> List[CandleData]:
        return [point.candle for point in self.price_items]

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "buckets": [
                {"start": b.start.isoformat(), "num_trades": len(b.trades)}
                for b in self.buckets
            ],
            "candles": [c.to_dict() for c in self.candles],
        }

    def to_json(self) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict())
