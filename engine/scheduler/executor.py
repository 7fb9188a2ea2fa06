"""
Stage Executor

Runs blocking chart stages on worker threads so the event loop never
executes stage work, and provides the cancellation token used to abandon
superseded runs.
"""

import asyncio
import functools
import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)


class ChartUpdateSuperseded(Exception):
    """Raised when a newer chart run replaced this one"""


class CancellationToken:
    """
    Thread-safe cancellation flag shared by a run and its stages.

    Stages call raise_if_cancelled() at safe points; cancel() may be called
    from any thread.
    """

    def __init__(self, run_id: int = 0):
        self.run_id = run_id
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise ChartUpdateSuperseded(f"Chart run {self.run_id} was superseded")


class StageExecutor:
    """
    Executes blocking stage functions on a thread pool.

    Example usage:
        executor = StageExecutor(max_workers=2)
        table, trades = await asyncio.gather(
            executor.run("usd_prices", build_usd_average_price_table, snapshot, zone),
            executor.run("filter", filter_trades_for_currency, snapshot, "EUR"),
        )
        executor.shutdown()
    """

    def __init__(self, max_workers: int = 2):
        """
        Initialize executor.

        Args:
            max_workers: Worker threads; two lets independent stages overlap
        """
        self.max_workers = max_workers
        self._pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="chart-stage")
        self._stage_timings: Dict[str, float] = {}
        logger.info(f"Initialized StageExecutor with {max_workers} workers")

    async def run(self, stage: str, fn: Callable[..., Any], *args, **kwargs) -> Any:
        """
        Run fn(*args, **kwargs) on a worker thread and await its result.

        Args:
            stage: Stage name used for logging and timings
            fn: Blocking callable

        Returns:
            Whatever fn returns; its exceptions propagate unchanged
        """
        loop = asyncio.get_running_loop()
        started = time.perf_counter()
        logger.debug(f"Starting stage '{stage}'")

        result = await loop.run_in_executor(self._pool, functools.partial(fn, *args, **kwargs))

        elapsed = time.perf_counter() - started
        self._stage_timings[stage] = elapsed
        logger.debug(f"Completed stage '{stage}' in {elapsed * 1000:.1f} ms")
        return result

    def get_stage_timings(self) -> Dict[str, float]:
        """Duration in seconds of the last run of each stage"""
        return dict(self._stage_timings)

    def shutdown(self, wait: bool = True) -> None:
        """Stop the worker threads"""
        self._pool.shutdown(wait=wait)
        logger.info("StageExecutor stopped")


def new_token(previous: Optional[CancellationToken]) -> CancellationToken:
    """Cancel the previous token, if any, and return its successor"""
    if previous is not None:
        previous.cancel()
        return CancellationToken(previous.run_id + 1)
    return CancellationToken(1)
