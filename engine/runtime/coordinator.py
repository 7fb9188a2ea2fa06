"""
Chart Coordinator

Coordinates a chart calculation run for one trade snapshot.
Runs the pipeline stages in the background and supersedes stale runs.
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Dict, Iterable, Optional, Union

from schemas.chart_data import UpdateChartResult
from schemas.market_data import Granularity, TradeRecord
from dataflow.adapters.currency import CurrencyClassifier, StaticCurrencyClassifier
from dataflow.adapters.labels import DateRangeFormatter, DefaultDateRangeFormatter
from dataflow.candle_aggregation.pipeline import build_update_chart_result, filter_trades_for_currency
from dataflow.candle_aggregation.usd_prices import UsdPriceTable, build_usd_average_price_table
from ..config.loader import ChartConfig
from ..scheduler.executor import CancellationToken, ChartUpdateSuperseded, StageExecutor, new_token

logger = logging.getLogger(__name__)


class ChartCoordinator:
    """
    Coordinates chart calculation runs.

    A run:
    1. Snapshots the trade collection
    2. Builds the USD average price table and filters the target currency's
       trades concurrently on worker threads
    3. Joins both, then buckets, aggregates and assembles the chart series
       on a worker thread

    Starting a run cancels the run in flight; the superseded caller gets
    ChartUpdateSuperseded instead of a result.

    Example usage:
        config = ConfigLoader(Path("config/chart.yaml")).load()
        coordinator = ChartCoordinator(config)

        result = await coordinator.update_chart(trades, Granularity.DAY, "EUR")
        for point in result.price_items:
            print(point.tick, point.value)

        coordinator.stop()
    """

    def __init__(
        self,
        config: Optional[ChartConfig] = None,
        classifier: Optional[CurrencyClassifier] = None,
        formatter: Optional[DateRangeFormatter] = None,
        executor: Optional[StageExecutor] = None,
    ):
        """
        Initialize coordinator.

        Args:
            config: Chart settings (defaults apply when omitted)
            classifier: Currency metadata lookup
            formatter: Date label formatter
            executor: Stage executor; one is created from config when omitted
        """
        self.config = config or ChartConfig()
        self.zone = self.config.zone
        self.classifier = classifier or StaticCurrencyClassifier(self.config.crypto_currencies)
        self.formatter = formatter or DefaultDateRangeFormatter(self.zone)
        self._owns_executor = executor is None
        self.executor = executor or StageExecutor(self.config.stage_workers)

        self._token: Optional[CancellationToken] = None
        self._runs_started = 0
        self._runs_completed = 0
        self._runs_superseded = 0
        self._last_result: Optional[UpdateChartResult] = None

        logger.info(
            f"Coordinator initialized: max_ticks={self.config.max_ticks}, "
            f"timezone={self.config.timezone}"
        )

    async def update_chart(
        self,
        trades: Iterable[TradeRecord],
        granularity: Union[Granularity, str],
        currency_code: str,
        show_all_currencies: bool = False,
        usd_price_table: Optional[UsdPriceTable] = None,
        now: Optional[datetime] = None,
    ) -> UpdateChartResult:
        """
        Recompute the chart from a trade snapshot.

        Args:
            trades: Full trade collection, any currency and order
            granularity: Bucket width
            currency_code: Target currency
            show_all_currencies: Skip the currency filter
            usd_price_table: Precomputed USD price table; built when omitted
            now: Window end, defaults to the current time

        Returns:
            UpdateChartResult for the snapshot

        Raises:
            ChartUpdateSuperseded: If a newer run started before this one finished
            ValueError: If granularity is unknown
        """
        granularity = Granularity.parse(granularity)
        snapshot = tuple(trades)

        token = new_token(self._token)
        self._token = token
        self._runs_started += 1
        logger.info(
            f"Starting chart run {token.run_id}: {len(snapshot)} trades, "
            f"{granularity.value}, {'all currencies' if show_all_currencies else currency_code}"
        )

        try:
            filter_stage = self.executor.run(
                "filter_trades",
                filter_trades_for_currency,
                snapshot,
                currency_code,
                show_all_currencies,
            )
            if usd_price_table is None:
                usd_price_table, filtered = await asyncio.gather(
                    self.executor.run(
                        "usd_price_table",
                        build_usd_average_price_table,
                        snapshot,
                        self.zone,
                        self.config.usd_currency_code,
                        self.config.fiat_exponent,
                    ),
                    filter_stage,
                )
            else:
                filtered = await filter_stage
            token.raise_if_cancelled()

            result = await self.executor.run(
                "update_chart_result",
                build_update_chart_result,
                filtered,
                granularity,
                usd_price_table,
                self.classifier.is_crypto_currency(currency_code),
                self.zone,
                self.config.max_ticks,
                formatter=self.formatter,
                now=now,
                crypto_exponent=self.config.crypto_exponent,
                fiat_exponent=self.config.fiat_exponent,
                usd_volume_scale_exponent=self.config.usd_volume_scale_exponent,
                validate_sort_order=self.config.validate_sort_order,
                token=token,
            )
            token.raise_if_cancelled()

        except ChartUpdateSuperseded:
            self._runs_superseded += 1
            logger.warning(f"Chart run {token.run_id} superseded, result discarded")
            raise
        except asyncio.CancelledError:
            token.cancel()
            self._runs_superseded += 1
            logger.warning(f"Chart run {token.run_id} cancelled")
            raise

        self._runs_completed += 1
        self._last_result = result
        logger.info(
            f"Completed chart run {token.run_id}: {len(result.price_items)} candles"
        )
        return result

    @property
    def last_result(self) -> Optional[UpdateChartResult]:
        """Result of the most recent completed run"""
        return self._last_result

    def cancel(self) -> None:
        """Cancel the run in flight, if any"""
        if self._token is not None:
            self._token.cancel()

    def stop(self) -> None:
        """Stop the coordinator"""
        logger.info("Stopping chart coordinator")
        self.cancel()
        if self._owns_executor:
            self.executor.shutdown(wait=False)

    def get_metrics(self) -> Dict[str, Any]:
        """
        Get coordinator metrics.

        Returns:
            Dictionary with run counters and stage timings
        """
        return {
            "runs_started": self._runs_started,
            "runs_completed": self._runs_completed,
            "runs_superseded": self._runs_superseded,
            "stage_timings": self.executor.get_stage_timings(),
        }
