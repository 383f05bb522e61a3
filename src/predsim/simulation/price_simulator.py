"""Background price drift: randomly perturb market prices on a fixed interval."""

from __future__ import annotations

import asyncio
import contextlib
import random
from collections.abc import Callable
from typing import ContextManager

import structlog

from predsim.store.markets import MarketStore

log = structlog.get_logger(__name__)


class PriceSimulator:
    """Models organic drift independent of user trades.

    Each tick, every market is perturbed with probability `tick_probability`:
    a uniform step in [-max_price_step, +max_price_step] on the first outcome,
    plus a random volume increment in [0, max_volume_step). Never touches the
    user ledger and applies no price impact.
    """

    def __init__(
        self,
        markets: MarketStore,
        interval_sec: float = 3.0,
        tick_probability: float = 0.3,
        max_price_step: float = 0.02,
        max_volume_step: int = 10000,
        rng: random.Random | None = None,
        on_tick: Callable[[list[str]], None] | None = None,
        lock: ContextManager | None = None,
    ) -> None:
        self.markets = markets
        self.interval_sec = interval_sec
        self.tick_probability = tick_probability
        self.max_price_step = max_price_step
        self.max_volume_step = max_volume_step
        self._rng = rng or random.Random()
        self._on_tick = on_tick
        self._lock = lock
        self._task: asyncio.Task[None] | None = None
        self._stop_event: asyncio.Event | None = None
        self.tick_count = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def tick(self) -> list[str]:
        """Run one simulation step. Returns ids of the markets that moved."""
        changed: list[str] = []
        # Runs on the event loop thread. A trade holding the shared lock in a worker
        # thread (sync API endpoints) stalls the loop until its snapshot write ends;
        # acceptable with a single local actor.
        with self._lock or contextlib.nullcontext():
            for market in self.markets.list_markets():
                if self._rng.random() >= self.tick_probability:
                    continue
                step = (self._rng.random() - 0.5) * 2 * self.max_price_step
                volume_step = self._rng.randrange(self.max_volume_step) if self.max_volume_step > 0 else 0
                updated = self.markets.apply_price_delta(
                    market.market_id, 0, market.outcomes[0].price + step, volume_delta=float(volume_step)
                )
                if updated is not None:
                    changed.append(market.market_id)
        self.tick_count += 1
        log.debug("simulator_tick", tick=self.tick_count, changed=len(changed))
        if self._on_tick is not None:
            self._on_tick(changed)
        return changed

    async def _run(self, stop_event: asyncio.Event) -> None:
        while not stop_event.is_set():
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=self.interval_sec)
            except TimeoutError:
                try:
                    self.tick()
                except Exception:
                    log.exception("simulator_tick_failed")

    def start(self) -> bool:
        """Start the background task on the running loop. Returns False if already running."""
        if self.running:
            return False
        loop = asyncio.get_running_loop()
        self._stop_event = asyncio.Event()
        self._task = loop.create_task(self._run(self._stop_event))
        log.info("simulator_started", interval_sec=self.interval_sec)
        return True

    def stop(self) -> None:
        """Stop the task. Safe to call repeatedly or when never started."""
        if self._stop_event is not None:
            self._stop_event.set()
        if self._task is not None and not self._task.done():
            self._task.cancel()
            log.info("simulator_stopped", ticks=self.tick_count)
        self._task = None
        self._stop_event = None

    async def aclose(self) -> None:
        """Stop and wait for the task to finish."""
        task = self._task
        self.stop()
        if task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await task
