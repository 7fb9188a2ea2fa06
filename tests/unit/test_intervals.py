from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from dataflow.candle_aggregation.intervals import (
    UnsortedTradesError,
    assign_trades,
    assign_trades_checked,
    generate_intervals,
)
from schemas.market_data import Granularity
from tests.helpers import make_trade

UTC = timezone.utc
NOW = datetime(2024, 3, 15, 12, 0, tzinfo=UTC)


@pytest.mark.parametrize("granularity", list(Granularity))
@pytest.mark.parametrize("max_ticks", [1, 3, 90])
def test_generate_intervals_length_and_order(granularity, max_ticks):
    buckets = generate_intervals(NOW, granularity, UTC, max_ticks)

    assert len(buckets) == max_ticks + 2
    starts = [b.start for b in buckets]
    assert all(a < b for a, b in zip(starts, starts[1:]))
    assert all(b.is_empty() for b in buckets)


def test_generate_intervals_day_starts():
    buckets = generate_intervals(NOW, Granularity.DAY, UTC, 3)

    assert [b.start.day for b in buckets] == [11, 12, 13, 14, 15]
    assert buckets[-1].start == datetime(2024, 3, 15, tzinfo=UTC)


def test_generate_intervals_month_crosses_year():
    buckets = generate_intervals(datetime(2024, 2, 10, tzinfo=UTC), Granularity.MONTH, UTC, 2)

    assert [(b.start.year, b.start.month) for b in buckets] == [
        (2023, 11), (2023, 12), (2024, 1), (2024, 2),
    ]


def test_generate_intervals_rejects_empty_window():
    with pytest.raises(ValueError):
        generate_intervals(NOW, Granularity.DAY, UTC, 0)


def test_assign_trades_places_each_trade_once():
    buckets = generate_intervals(NOW, Granularity.DAY, UTC, 3)
    trades = [
        make_trade(datetime(2024, 3, 12, 8, tzinfo=UTC), price=90),
        make_trade(datetime(2024, 3, 13, 10, tzinfo=UTC), price=100),
        make_trade(datetime(2024, 3, 13, 18, tzinfo=UTC), price=101),
        make_trade(datetime(2024, 3, 14, 10, tzinfo=UTC), price=110),
    ]

    dropped = assign_trades(trades, buckets)

    assert dropped == 0
    assert [t.price for t in buckets[1].trades] == [90]
    assert [t.price for t in buckets[2].trades] == [100, 101]
    assert [t.price for t in buckets[3].trades] == [110]
    assigned = [t for b in buckets for t in b.trades]
    assert len(assigned) == len(trades)


def test_trade_on_bucket_start_joins_previous_bucket():
    buckets = generate_intervals(NOW, Granularity.DAY, UTC, 3)
    on_boundary = make_trade(datetime(2024, 3, 14, tzinfo=UTC))

    assign_trades([on_boundary], buckets)

    assert buckets[2].trades == [on_boundary]
    assert buckets[3].trades == []


def test_old_trades_are_dropped():
    buckets = generate_intervals(NOW, Granularity.DAY, UTC, 3)
    trades = [
        make_trade(datetime(2024, 3, 1, tzinfo=UTC)),
        # inside the oldest bucket, which never receives trades
        make_trade(datetime(2024, 3, 11, 6, tzinfo=UTC)),
        make_trade(datetime(2024, 3, 13, 6, tzinfo=UTC)),
    ]

    dropped = assign_trades(trades, buckets)

    assert dropped == 2
    assert buckets[0].trades == []
    assert buckets[2].trades == [trades[2]]


def test_newest_trades_fold_into_last_window_bucket():
    buckets = generate_intervals(NOW, Granularity.DAY, UTC, 3)
    recent = make_trade(NOW - timedelta(minutes=5))

    assign_trades([recent], buckets)

    assert buckets[3].trades == [recent]
    assert buckets[4].trades == []


def test_cursor_moves_forward_across_buckets():
    buckets = generate_intervals(NOW, Granularity.HOUR, UTC, 10)
    trades = [make_trade(datetime(2024, 3, 15, hour, 30, tzinfo=UTC)) for hour in range(3, 12)]

    assign_trades(trades, buckets)

    for trade in trades:
        holders = [i for i, b in enumerate(buckets) if trade in b.trades]
        assert len(holders) == 1
        assert buckets[holders[0]].start == trade.timestamp.replace(minute=0)


def test_empty_input_leaves_buckets_empty():
    buckets = generate_intervals(NOW, Granularity.DAY, UTC, 3)

    assert assign_trades([], buckets) == 0
    assert all(b.is_empty() for b in buckets)


def test_checked_assignment_rejects_unsorted_input():
    buckets = generate_intervals(NOW, Granularity.DAY, UTC, 3)
    trades = [
        make_trade(datetime(2024, 3, 14, tzinfo=UTC)),
        make_trade(datetime(2024, 3, 13, tzinfo=UTC)),
    ]

    with pytest.raises(UnsortedTradesError, match="index 1"):
        assign_trades_checked(trades, buckets)
    assert all(b.is_empty() for b in buckets)


def test_checked_assignment_accepts_sorted_input():
    buckets = generate_intervals(NOW, Granularity.DAY, UTC, 3)
    trades = [
        make_trade(datetime(2024, 3, 13, 1, tzinfo=UTC)),
        make_trade(datetime(2024, 3, 13, 1, tzinfo=UTC), price=120),
    ]

    assert assign_trades_checked(trades, buckets) == 0
    assert buckets[2].trades == trades


def test_generate_intervals_across_dst_fall_back():
    new_york = ZoneInfo("America/New_York")
    # 02:30 EST, half an hour after the repeated 01:00 hour ended
    buckets = generate_intervals(datetime(2024, 11, 3, 7, 30, tzinfo=UTC), Granularity.HOUR, new_york, 5)

    starts = [b.start for b in buckets]
    assert all(a < b for a, b in zip(starts, starts[1:]))
    assert starts[-3:] == [
        datetime(2024, 11, 3, 5, tzinfo=UTC),
        datetime(2024, 11, 3, 6, tzinfo=UTC),
        datetime(2024, 11, 3, 7, tzinfo=UTC),
    ]
