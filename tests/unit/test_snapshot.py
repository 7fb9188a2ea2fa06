import json
from datetime import datetime, timezone

import pytest

from dataflow.ingestion.snapshot import load_trade_snapshot
from schemas.market_data import TradeRecord


def test_load_list_snapshot(tmp_path):
    path = tmp_path / "trades.json"
    path.write_text(json.dumps([
        {"price": 100, "amount": 2, "volume": 200, "timestamp": "2024-03-14T10:00:00Z", "currency": "EUR"},
        {"price": 110, "amount": 1, "volume": 110, "timestamp": 1710410400000, "currency": "USD"},
    ]))

    trades = load_trade_snapshot(path)

    assert trades[0] == TradeRecord(100, 2, 200, datetime(2024, 3, 14, 10, tzinfo=timezone.utc), "EUR")
    assert trades[1].timestamp == datetime(2024, 3, 14, 10, tzinfo=timezone.utc)


def test_load_wrapped_snapshot(tmp_path):
    trade = TradeRecord(100, 2, 200, datetime(2024, 3, 14, 10, tzinfo=timezone.utc), "EUR")
    path = tmp_path / "trades.json"
    path.write_text(json.dumps({"trades": [trade.to_dict()]}))

    assert load_trade_snapshot(path) == [trade]


def test_malformed_trade_raises(tmp_path):
    path = tmp_path / "trades.json"
    path.write_text(json.dumps([{"price": 100}]))

    with pytest.raises(ValueError, match="Malformed trade #0"):
        load_trade_snapshot(path)


def test_invalid_json_raises(tmp_path):
    path = tmp_path / "trades.json"
    path.write_text("{not json")

    with pytest.raises(ValueError, match="Failed to read"):
        load_trade_snapshot(path)
