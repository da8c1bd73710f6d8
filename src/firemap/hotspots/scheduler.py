"""RefreshScheduler: runs the overlay reconciler on mount and every period."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable

from loguru import logger


class RefreshScheduler:
    """Fires `run` immediately on start, then once per elapsed period.

    Ticks fire unconditionally: every run is its own task, so a slow run
    can overlap the next one. stop() cancels the timer only; runs already
    in flight finish on their own and are expected to check for teardown
    before mutating anything.

    Args:
        run: Coroutine function performing one refresh.
        period: Seconds between runs.
        sleep: Awaitable sleep, replaceable for simulated time.
    """

    def __init__(
        self,
        run: Callable[[], Awaitable[object]],
        period: float,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if period <= 0:
            raise ValueError(f"Refresh period must be positive, got {period}")
        self._run = run
        self._period = period
        self._sleep = sleep
        self._running = False
        self._timer: asyncio.Task | None = None
        self._in_flight: set[asyncio.Task] = set()
        # Stats
        self._runs_started: int = 0
        self._runs_completed: int = 0
        self._last_error: str = ""

    @property
    def running(self) -> bool:
        return self._running

    @property
    def period(self) -> float:
        return self._period

    @property
    def stats(self) -> dict:
        return {
            "running": self._running,
            "period": self._period,
            "runs_started": self._runs_started,
            "runs_completed": self._runs_completed,
            "in_flight": len(self._in_flight),
            "last_error": self._last_error,
        }

    def start(self) -> None:
        """Start the timer. Must be called from a running event loop."""
        if self._running:
            return
        self._running = True
        self._timer = asyncio.get_running_loop().create_task(self._tick_loop())
        logger.info(f"Hotspot refresh scheduled every {self._period:.0f}s")

    def stop(self) -> None:
        """Cancel the timer. In-flight runs are left to complete."""
        if not self._running:
            return
        self._running = False
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        logger.info("Hotspot refresh stopped")

    async def wait_idle(self) -> None:
        """Wait for every in-flight run to settle."""
        while self._in_flight:
            await asyncio.gather(*list(self._in_flight), return_exceptions=True)

    async def _tick_loop(self) -> None:
        self._launch()
        while True:
            await self._sleep(self._period)
            if not self._running:
                return
            self._launch()

    def _launch(self) -> None:
        self._runs_started += 1
        task = asyncio.get_running_loop().create_task(self._guarded_run())
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)

    async def _guarded_run(self) -> None:
        try:
            await self._run()
        except Exception as e:
            self._last_error = str(e) or type(e).__name__
            logger.exception(f"Hotspot refresh failed: {e}")
        else:
            self._runs_completed += 1
