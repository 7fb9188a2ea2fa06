from datetime import datetime

from schemas.market_data import TradeRecord


def make_trade(
    timestamp: datetime,
    price: int = 100,
    amount: int = 1,
    currency: str = "EUR",
    volume: int = None,
) -> TradeRecord:
    if volume is None:
        volume = price * amount
    return TradeRecord(
        price=price,
        amount=amount,
        volume=volume,
        timestamp=timestamp,
        currency=currency,
    )
