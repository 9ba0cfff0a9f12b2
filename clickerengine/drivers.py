from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Awaitable, Callable

import structlog

from clickerengine._types import ManualClock
from clickerengine.pipeline import IncomeSource
from clickerengine.state import EventType, GameState

if TYPE_CHECKING:
    from clickerengine.runtime import GameRuntime

log = structlog.get_logger()

# Order in which sources due at the same instant are applied
_SOURCE_ORDER = (IncomeSource.AUTO_CLICKER, IncomeSource.EQUIPMENT, IncomeSource.MINING)


class TickDriver:
    """
    Repeating task that calls one engine operation on a schedule.

    The period is recomputed from the state returned by each tick, so an
    upgrade that changes it takes effect on the next sleep without a restart.
    A failed tick is logged; the loop carries on with the next one.
    """

    def __init__(
        self,
        name: str,
        step: Callable[[], Awaitable[GameState]],
        period_ms: Callable[[GameState | None], int],
        *,
        tick_first: bool = False,
    ) -> None:
        self.name = name
        self._step = step
        self._period_ms = period_ms
        self._tick_first = tick_first
        self._task: asyncio.Task[None] | None = None
        self.ticks = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> bool:
        """Start the loop if it is not already running. Returns True if started."""
        if self.running:
            return False
        self._task = asyncio.get_running_loop().create_task(
            self._run(), name=f"tick-driver:{self.name}"
        )
        log.debug("driver.started", driver=self.name)
        return True

    async def stop(self) -> None:
        task = self._task
        if task is None:
            return
        self._task = None
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        log.debug("driver.stopped", driver=self.name, ticks=self.ticks)

    async def _run(self) -> None:
        state: GameState | None = None
        if not self._tick_first:
            await asyncio.sleep(self._period_ms(state) / 1000)
        while True:
            try:
                state = await self._step()
                self.ticks += 1
            except Exception:
                log.exception("driver.tick_failed", driver=self.name)
            await asyncio.sleep(self._period_ms(state) / 1000)


def build_drivers(runtime: GameRuntime) -> list[TickDriver]:
    """The three income loops: auto clickers, equipment room, mining."""
    config = runtime.config
    pipeline = runtime.pipeline

    def _driver(source: IncomeSource, tick_first: bool) -> TickDriver:
        return TickDriver(
            source.value,
            lambda: runtime.tick(source),
            lambda state: pipeline.tick_period_ms(state, source, config),
            tick_first=tick_first,
        )

    return [
        _driver(IncomeSource.AUTO_CLICKER, tick_first=True),
        _driver(IncomeSource.EQUIPMENT, tick_first=False),
        _driver(IncomeSource.MINING, tick_first=False),
    ]


def _window_ends(state: GameState, after: int) -> list[int]:
    """Instants after *after* where a boost or event stops changing income."""
    ends = []
    if state.boost_multiplier != 1 and state.boost_end_time > after:
        ends.append(state.boost_end_time)
    if state.active_event_type is not EventType.NONE and state.active_event_end_time > after:
        ends.append(state.active_event_end_time)
    return ends


async def simulate_ticks(
    runtime: GameRuntime, clock: ManualClock, duration_ms: int
) -> dict[IncomeSource, int]:
    """Run the driver schedule over *duration_ms* of manual-clock time.

    Ticks hit the same ``runtime.tick`` entry point the live drivers use,
    without sleeping. Every source first fires one period after the current
    clock time and the window is (start, end], so consecutive calls chain
    without firing any instant twice. Returns the tick count per source.

    Consecutive ticks of one source that fall before the next tick of any
    other source, and before any boost or event ends, earn the same income
    each, so they are committed as one batch. A fast auto clicker therefore
    costs one commit per gap between the other sources instead of one per
    tick.
    """
    if duration_ms < 0:
        raise ValueError(f"duration_ms must be >= 0, got {duration_ms}")

    config = runtime.config
    pipeline = runtime.pipeline
    start = clock()
    end = start + duration_ms
    state = await runtime.get_state()
    due = {
        source: start + pipeline.tick_period_ms(state, source, config)
        for source in _SOURCE_ORDER
    }
    counts = {source: 0 for source in _SOURCE_ORDER}

    while True:
        source = min(_SOURCE_ORDER, key=lambda s: due[s])
        at = due[source]
        if at > end:
            break

        period = pipeline.tick_period_ms(state, source, config)
        horizon = min(
            [due[s] for s in _SOURCE_ORDER if s is not source] + _window_ends(state, at)
        )
        extra = max(min((horizon - at - 1) // period, (end - at) // period), 0)
        last = at + extra * period

        clock.set(last)
        state = await runtime.tick(source, now_ms=last, count=extra + 1)
        counts[source] += extra + 1
        due[source] = last + pipeline.tick_period_ms(state, source, config)

    clock.set(end)
    return counts
