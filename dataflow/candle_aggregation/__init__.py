"""
Candle Aggregation

Buckets trades into a trailing window of fixed-width intervals and
aggregates each bucket into candle data with a USD volume estimate.
Supports granularities from 10 minutes to 1 year.
"""

from dataflow.candle_aggregation.aggregator import CandleBuilder, aggregate_buckets
from dataflow.candle_aggregation.intervals import (
    UnsortedTradesError,
    assign_trades,
    assign_trades_checked,
    generate_intervals,
)
from dataflow.candle_aggregation.pipeline import build_update_chart_result, filter_trades_for_currency
from dataflow.candle_aggregation.ticks import previous_bucket_start, round_to_bucket_start
from dataflow.candle_aggregation.usd_prices import UsdPriceTable, build_usd_average_price_table

__all__ = [
    "CandleBuilder",
    "aggregate_buckets",
    "UnsortedTradesError",
    "assign_trades",
    "assign_trades_checked",
    "generate_intervals",
    "build_update_chart_result",
    "filter_trades_for_currency",
    "previous_bucket_start",
    "round_to_bucket_start",
    "UsdPriceTable",
    "build_usd_average_price_table",
]
