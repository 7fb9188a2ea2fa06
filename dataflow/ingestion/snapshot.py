"""
Trade Snapshot Loader

Reads a local JSON snapshot of trades: either a list of trade objects or an
object with a "trades" list. Timestamps may be ISO 8601 strings or epoch
milliseconds.
"""

import json
import logging
from pathlib import Path
from typing import List

from schemas.market_data import TradeRecord

logger = logging.getLogger(__name__)


def load_trade_snapshot(path: Path) -> List[TradeRecord]:
    """
    Load trades from a JSON snapshot file.

    Args:
        path: Snapshot file

    Returns:
        Trades in file order

    Raises:
        ValueError: If the file is missing, not JSON, or holds malformed trades
    """
    path = Path(path)
    try:
        with open(path) as f:
            raw = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Failed to read trade snapshot {path}: {e}")
        raise ValueError(f"Failed to read trade snapshot {path}: {e}")

    items = raw.get("trades", []) if isinstance(raw, dict) else raw
    if not isinstance(items, list):
        raise ValueError(f"Trade snapshot {path.name} must hold a list of trades")

    trades = []
    for index, item in enumerate(items):
        try:
            trades.append(TradeRecord.from_dict(item))
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"Malformed trade #{index} in {path.name}: {e}")
            raise ValueError(f"Malformed trade #{index} in {path.name}: {e}")

    logger.info(f"Loaded {len(trades)} trades from {path.name}")
    return trades
