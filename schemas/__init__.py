"""
Trade Charts - Typed Data Catalog

Core data types for trades, buckets and candle series.
"""

from schemas.market_data import Granularity, TradeRecord
from schemas.chart_data import Bucket, CandleData, ChartPoint, UpdateChartResult

__all__ = [
    "Granularity",
    "TradeRecord",
    "Bucket",
    "CandleData",
    "ChartPoint",
    "UpdateChartResult",
]
