from datetime import datetime, timezone

import pytest

from dataflow.adapters.labels import DefaultDateRangeFormatter
from dataflow.candle_aggregation.aggregator import CandleBuilder, aggregate_buckets, format_date_label
from dataflow.candle_aggregation.intervals import assign_trades, generate_intervals
from engine.scheduler.executor import CancellationToken, ChartUpdateSuperseded
from schemas.market_data import Granularity
from tests.helpers import make_trade

UTC = timezone.utc
NOW = datetime(2024, 3, 15, 12, 0, tzinfo=UTC)
FORMATTER = DefaultDateRangeFormatter(UTC)


def build(trades, is_crypto=False, usd_price=0):
    builder = CandleBuilder(tick=1, is_crypto=is_crypto)
    for trade in trades:
        builder.add_trade(trade)
    return builder.build(usd_price, "label")


def at(minute):
    return datetime(2024, 3, 14, 10, minute, tzinfo=UTC)


def test_ohlc_and_median():
    t1 = make_trade(at(1), price=100)
    t2 = make_trade(at(2), price=98)
    t3 = make_trade(at(3), price=105)

    candle = build([t3, t1, t2])

    assert candle.open == 100
    assert candle.close == 105
    assert candle.high == 105
    assert candle.low == 98
    assert candle.median_price == 100
    assert candle.num_trades == 3
    assert candle.tick == 1
    assert candle.date_label == "label"


def test_accumulates_amount_and_volume():
    candle = build([
        make_trade(at(1), price=10, amount=3),
        make_trade(at(2), price=20, amount=5),
    ])

    assert candle.accumulated_amount == 8
    assert candle.accumulated_volume == 130


def test_even_median_rounds_half_up():
    candle = build([make_trade(at(1), price=100), make_trade(at(2), price=101)])
    assert candle.median_price == 101


@pytest.mark.parametrize(
    "is_crypto, expected",
    [(False, True), (True, False)],
)
def test_bullish_flag_depends_on_currency_class(is_crypto, expected):
    trades = [make_trade(at(1), price=100), make_trade(at(2), price=110)]
    assert build(trades, is_crypto=is_crypto).is_bullish is expected


def test_falling_crypto_pair_is_bullish():
    trades = [make_trade(at(1), price=110), make_trade(at(2), price=100)]
    assert build(trades, is_crypto=True).is_bullish is True
    assert build(trades, is_crypto=False).is_bullish is False


def test_fiat_average_price_is_volume_weighted():
    # 50000 EUR for 0.5 BTC and 60000 EUR for 1.5 BTC
    trades = [
        make_trade(at(1), price=500000000, amount=50000000, volume=250000000),
        make_trade(at(2), price=600000000, amount=150000000, volume=900000000),
    ]

    assert build(trades).average_price == 575000000


def test_crypto_average_price_inverts_sides():
    trades = [make_trade(at(1), price=25000000, amount=100000000, volume=400000000)]

    assert build(trades, is_crypto=True).average_price == 25000000


def test_zero_amount_and_volume_do_not_divide_by_zero():
    trades = [make_trade(at(1), price=100, amount=0, volume=0)]

    fiat = build(trades, usd_price=500000000)
    crypto = build(trades, is_crypto=True)

    assert fiat.average_price == 0
    assert fiat.volume_in_usd == 0
    assert crypto.average_price == 0


def test_volume_in_usd_in_whole_dollars():
    # 2 BTC at 50000 USD
    trades = [make_trade(at(1), price=500000000, amount=200000000, volume=1000000000)]

    assert build(trades, usd_price=500000000).volume_in_usd == 100000


def test_volume_in_usd_scales_down_before_and_after_multiplying():
    trades = [make_trade(at(1), amount=98765)]

    # 12345 * 9 = 111105 -> 11
    assert build(trades, usd_price=123456789).volume_in_usd == 11


def test_build_empty_candle_raises():
    with pytest.raises(ValueError, match="empty candle"):
        CandleBuilder(tick=0, is_crypto=False).build()


def test_date_labels_by_granularity():
    start = datetime(2024, 3, 15, 10, tzinfo=UTC)
    hour_end = datetime(2024, 3, 15, 11, tzinfo=UTC)
    day_end = datetime(2024, 3, 16, tzinfo=UTC)

    assert format_date_label(Granularity.HOUR, start, hour_end, FORMATTER) == "2024-03-15 10:00 - 11:00"
    assert format_date_label(Granularity.DAY, start, day_end, FORMATTER) == "2024-03-15 - 2024-03-16"
    assert format_date_label(Granularity.WEEK, start, None, FORMATTER) == "2024-03-15"


def filled_day_buckets(trades):
    buckets = generate_intervals(NOW, Granularity.DAY, UTC, 3)
    assign_trades(trades, buckets)
    return buckets


def test_aggregate_skips_empty_buckets_and_sorts_by_tick():
    buckets = filled_day_buckets([
        make_trade(datetime(2024, 3, 12, 9, tzinfo=UTC), price=90),
        make_trade(datetime(2024, 3, 14, 9, tzinfo=UTC), price=110),
    ])

    candles = aggregate_buckets(buckets, Granularity.DAY, {}, False, FORMATTER)

    assert [c.tick for c in candles] == [1, 3]
    assert candles[0].date_label == "2024-03-12 - 2024-03-13"


def test_usd_price_carries_forward_to_buckets_without_usd_trades():
    buckets = filled_day_buckets([
        make_trade(datetime(2024, 3, 12, 9, tzinfo=UTC), amount=100000000),
        make_trade(datetime(2024, 3, 13, 9, tzinfo=UTC), amount=100000000),
        make_trade(datetime(2024, 3, 14, 9, tzinfo=UTC), amount=100000000),
    ])
    usd_prices = {
        buckets[2].start: 400000000,
        buckets[3].start: 500000000,
    }

    candles = aggregate_buckets(buckets, Granularity.DAY, usd_prices, False, FORMATTER)

    # no price known yet for the first bucket
    assert [c.volume_in_usd for c in candles] == [0, 40000, 50000]


def test_usd_price_reuses_previous_bucket_price():
    buckets = filled_day_buckets([
        make_trade(datetime(2024, 3, 13, 9, tzinfo=UTC), amount=100000000),
        make_trade(datetime(2024, 3, 14, 9, tzinfo=UTC), amount=200000000),
    ])
    usd_prices = {buckets[2].start: 400000000}

    candles = aggregate_buckets(buckets, Granularity.DAY, usd_prices, False, FORMATTER)

    assert [c.volume_in_usd for c in candles] == [40000, 80000]


def test_aggregate_stops_when_cancelled():
    buckets = filled_day_buckets([make_trade(datetime(2024, 3, 13, 9, tzinfo=UTC))])
    token = CancellationToken(7)
    token.cancel()

    with pytest.raises(ChartUpdateSuperseded, match="7"):
        aggregate_buckets(buckets, Granularity.DAY, {}, False, FORMATTER, token=token)
