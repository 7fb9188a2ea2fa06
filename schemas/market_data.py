"""
Market Data Types

Core trade data types consumed by the chart calculations.
Prices, amounts and volumes are fixed-point integers in their smallest unit.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from functools import total_ordering
from typing import Union
import json


@total_ordering
class Granularity(Enum):
    """
    Bucket width of a chart (tick unit).

    Members are totally ordered from finest to coarsest by declaration rank,
    never by their string values.
    """
    TEN_MINUTES = "10m"
    HOUR = "1h"
    DAY = "1d"
    WEEK = "1w"
    MONTH = "1M"
    YEAR = "1y"

    @property
    def rank(self) -> int:
        """Position in the finest-to-coarsest ordering"""
        return list(type(self)).index(self)

    def __lt__(self, other):
        if not isinstance(other, Granularity):
            return NotImplemented
        return self.rank < other.rank

    @classmethod
    def parse(cls, value: Union["Granularity", str]) -> "Granularity":
        """
        Resolve a Granularity from a member or its timeframe string.

        Raises:
            ValueError: If value names no granularity
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            available = ", ".join(g.value for g in cls)
            raise ValueError(
                f"Unknown granularity: {value!r}. Available: {available}"
            )


def _ensure_aware(timestamp: datetime) -> datetime:
    if timestamp.tzinfo is None:
        return timestamp.replace(tzinfo=timezone.utc)
    return timestamp


@dataclass(frozen=True)
class TradeRecord:
    """A single executed trade"""
    price: int
    amount: int
    volume: int
    timestamp: datetime
    currency: str

    def __post_init__(self):
        object.__setattr__(self, "timestamp", _ensure_aware(self.timestamp))

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization"""
        return {
            "price": self.price,
            "amount": self.amount,
            "volume": self.volume,
            "timestamp": self.timestamp.isoformat(),
            "currency": self.currency,
        }

    def to_json(self) -> str:
        """Serialize to JSON string"""
        return json.dumps(self.to_dict())

    @classmethod
    def from_dict(cls, data: dict) -> "TradeRecord":
        """Create TradeRecord from dictionary"""
        timestamp = data["timestamp"]
        if isinstance(timestamp, str):
            timestamp = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
        elif isinstance(timestamp, (int, float)):
            # epoch milliseconds
            timestamp = datetime.fromtimestamp(timestamp / 1000, tz=timezone.utc)
        return cls(
            price=int(data["price"]),
            amount=int(data["amount"]),
            volume=int(data["volume"]),
            timestamp=timestamp,
            currency=data["currency"],
        )

    @classmethod
    def from_json(cls, json_str: str) -> "TradeRecord":
        """Deserialize from JSON string"""
        return cls.from_dict(json.loads(json_str))
