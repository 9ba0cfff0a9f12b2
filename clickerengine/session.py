from __future__ import annotations

import asyncio
import random

import structlog

from clickerengine._types import Clock, now_ms
from clickerengine.achievement import AchievementEvaluator
from clickerengine.definition import EngineConfig
from clickerengine.drivers import TickDriver, build_drivers
from clickerengine.log import bind_context, clear_context
from clickerengine.runtime import GameRuntime
from clickerengine.store import StateStore

log = structlog.get_logger()


class GameSession:
    """
    Lifecycle owner for one running game.

    start():  make sure the row exists, reconcile offline income, hand out a
              quest if none is active, then launch the tick drivers and the
              achievement watcher.
    stop():   cancel the background tasks and stamp the last-seen time.
    """

    def __init__(
        self,
        store: StateStore,
        config: EngineConfig | None = None,
        clock: Clock | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._clock = clock or now_ms
        self.store = store
        self.runtime = GameRuntime(store, config=config, clock=self._clock, rng=rng)
        self.evaluator = AchievementEvaluator(store, clock=self._clock)
        self.drivers: list[TickDriver] = build_drivers(self.runtime)
        self._watcher: asyncio.Task[None] | None = None
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        if self._running:
            raise RuntimeError("session already running")

        bind_context(component="session")
        await self.runtime.get_or_create()
        await self.on_foreground()
        await self.runtime.generate_quest()

        self._running = True
        for driver in self.drivers:
            driver.start()
        self.start_watcher()
        log.info("session.started")

    async def stop(self) -> None:
        if not self._running:
            raise RuntimeError("session not running")

        for driver in self.drivers:
            await driver.stop()
        await self._stop_watcher()
        self._running = False
        await self.on_background()
        log.info("session.stopped")
        clear_context()

    def start_watcher(self) -> bool:
        """Start the achievement watcher if it is not running."""
        if self._watcher is not None and not self._watcher.done():
            return False
        self._watcher = asyncio.get_running_loop().create_task(
            self.evaluator.watch(), name="achievement-watcher"
        )
        return True

    async def _stop_watcher(self) -> None:
        task = self._watcher
        if task is None:
            return
        self._watcher = None
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    # ── Lifecycle signals ────────────────────────────────────────────

    async def on_foreground(self, now_ms: int | None = None) -> int:
        """App resumed: grant offline income for the time away."""
        return await self.runtime.apply_offline_income(now_ms)

    async def on_background(self, now_ms: int | None = None) -> None:
        """App hidden: stamp last-seen. Income is granted on the next resume."""
        await self.runtime.mark_seen(now_ms)

    async def __aenter__(self) -> GameSession:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        if self._running:
            await self.stop()
