"""
Chart Runner - Main Entry Point

Computes the chart for a local trade snapshot and logs the candles.
Loads the YAML config, runs the coordinator once and prints a summary.
"""

import asyncio
import logging
import os
from pathlib import Path

from dataflow.ingestion.snapshot import load_trade_snapshot
from engine.config.loader import ConfigLoader
from engine.runtime.coordinator import ChartCoordinator

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


async def main():
    """
    Main entry point for the chart runner.

    Environment Variables:
        TRADES_FILE: JSON trade snapshot (default: "trades.json")
        CHART_CONFIG: YAML config file (default: none, defaults apply)
        GRANULARITY: Bucket width, e.g. "10m", "1h", "1d" (default: "1d")
        CURRENCY: Target currency code (default: "USD")
        SHOW_ALL_CURRENCIES: "1" to skip the currency filter
    """
    trades_file = Path(os.getenv("TRADES_FILE", "trades.json"))
    config_path = os.getenv("CHART_CONFIG")
    granularity = os.getenv("GRANULARITY", "1d")
    currency = os.getenv("CURRENCY", "USD")
    show_all = os.getenv("SHOW_ALL_CURRENCIES", "0") == "1"

    logger.info("=" * 60)
    logger.info("Chart Runner Starting")
    logger.info("=" * 60)
    logger.info(f"Trades: {trades_file}")
    logger.info(f"Granularity: {granularity}, currency: {currency}")

    config = ConfigLoader(Path(config_path) if config_path else None).load()
    trades = load_trade_snapshot(trades_file)

    coordinator = ChartCoordinator(config)
    try:
        result = await coordinator.update_chart(trades, granularity, currency, show_all)

        for candle in result.candles:
            logger.info(
                f"[{candle.tick:>3}] {candle.date_label}: "
                f"O={candle.open} H={candle.high} L={candle.low} C={candle.close} "
                f"avg={candle.average_price} amount={candle.accumulated_amount} "
                f"usd={candle.volume_in_usd} trades={candle.num_trades}"
            )

        metrics = coordinator.get_metrics()
        logger.info(
            f"Metrics: {metrics['runs_completed']} runs, "
            f"stages: {metrics['stage_timings']}"
        )
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        raise
    finally:
        coordinator.stop()
        logger.info("Chart runner stopped")


if __name__ == "__main__":
    asyncio.run(main())
