from __future__ import annotations

import random
from dataclasses import replace
from typing import Callable

import structlog

from clickerengine._types import Clock, now_ms
from clickerengine.definition import EngineConfig
from clickerengine.offline import reconcile, stamp_seen
from clickerengine.pipeline import IncomeSource, TapYield, YieldPipeline
from clickerengine.prestige import (
    PRESTIGE_THRESHOLD,
    PrestigeResult,
    can_prestige,
    prestige_reset,
    prestige_reward,
)
from clickerengine.quest import QUESTS, advance_quest, assign_quest
from clickerengine.state import EventType, GameState, QuestType
from clickerengine.store import StateStore
from clickerengine.upgrade import UPGRADES, UpgradeStatus, get_upgrade

log = structlog.get_logger()

CRYPTO_SALE_RATE = 100

Transform = Callable[[GameState], GameState]


class GameRuntime:
    """Authoritative transaction engine over the single game-state row.

    Every operation hands one synchronous transform to
    ``StateStore.run_exclusive``: the read, the computation and the write
    happen inside the store's critical section and commit exactly once or
    not at all. Transforms that decide nothing should change return the
    state they were given, which the store treats as a no-op.
    """

    def __init__(
        self,
        store: StateStore,
        config: EngineConfig | None = None,
        clock: Clock | None = None,
        rng: random.Random | None = None,
        pipeline: YieldPipeline | None = None,
    ) -> None:
        config = config or EngineConfig()
        errors = config.validate()
        if errors:
            raise ValueError(
                "Invalid EngineConfig:\n" + "\n".join(f"  - {e}" for e in errors)
            )

        self.store = store
        self.config = config
        self.pipeline = pipeline or YieldPipeline()
        self._clock = clock or now_ms
        self._rng = rng or random.Random(config.seed)

    def _now(self, now_ms: int | None) -> int:
        return self._clock() if now_ms is None else now_ms

    # ── Taps and ticks ───────────────────────────────────────────────

    async def tap(self, now_ms: int | None = None) -> TapYield:
        """Apply one tap. Always commits."""
        now = self._now(now_ms)
        result = TapYield(points=0, quest_delta=0)

        def _apply(current: GameState) -> GameState:
            nonlocal result
            state = current.clear_expired(now)
            result = self.pipeline.compute_tap(state, now)
            state = replace(state, points=state.points + result.points)
            state = advance_quest(state, state.active_quest_type, result.quest_delta)
            return replace(
                state,
                total_taps=state.total_taps + 1,
                last_tap_time=max(state.last_tap_time, now),
            )

        await self.store.run_exclusive(_apply)
        return result

    async def tick(
        self, source: IncomeSource, now_ms: int | None = None, count: int = 1
    ) -> GameState:
        """Apply *count* periodic ticks of *source* that all earn the same income.

        The income is computed once at *now_ms*, the instant of the last tick,
        so callers batch only ticks with no boost or event boundary between
        them. Returns the committed state.
        """
        if count < 1:
            raise ValueError(f"count must be >= 1, got {count}")
        now = self._now(now_ms)

        def _apply(current: GameState) -> GameState:
            state = current.clear_expired(now)
            gain = self.pipeline.compute_tick(state, now, source) * count
            if gain <= 0:
                return state
            if source is IncomeSource.MINING:
                return replace(
                    state,
                    crypto_amount=state.crypto_amount + gain,
                    last_mining_time=max(state.last_mining_time, now),
                )
            return replace(state, points=state.points + gain)

        return await self.store.run_exclusive(_apply)

    # ── Purchases ────────────────────────────────────────────────────

    async def purchase_with_fixed_cost(self, cost: int, apply: Transform) -> bool:
        """Buy something with a price fixed by the caller.

        Fails without change if points < cost. *apply* is trusted to deduct
        the cost; a result with more points than before is rejected.
        """

        def _verify(before: GameState, after: GameState, _cost: int) -> bool:
            return after.points <= before.points

        return await self._purchase(lambda _s: cost, lambda s, _c: apply(s), _verify)

    async def purchase_with_computed_cost(
        self,
        cost_fn: Callable[[GameState], int],
        apply_fn: Callable[[GameState, int], GameState],
    ) -> bool:
        """Buy something priced from the state current inside the transaction.

        Two rapid purchases of the same upgrade are therefore priced one
        after the other instead of both paying the stale price.
        """

        def _verify(before: GameState, after: GameState, cost: int) -> bool:
            return after.points == before.points - cost

        return await self._purchase(cost_fn, apply_fn, _verify)

    async def purchase(self, upgrade_id: str) -> bool:
        """Buy one level of the upgrade *upgrade_id*. Returns True on success."""
        udef = get_upgrade(upgrade_id)
        if udef is None:
            log.warning("purchase.unknown_upgrade", upgrade_id=upgrade_id)
            return False

        success = await self._purchase(
            udef.cost_for,
            udef.apply,
            lambda before, after, cost: after.points == before.points - cost,
            finalize=lambda s: advance_quest(s, QuestType.UPGRADES, 1),
        )
        log.debug("purchase.finished", upgrade_id=upgrade_id, success=success)
        return success

    async def _purchase(
        self,
        cost_fn: Callable[[GameState], int],
        apply_fn: Callable[[GameState, int], GameState],
        verify: Callable[[GameState, GameState, int], bool],
        finalize: Transform | None = None,
    ) -> bool:
        success = False

        def _apply(current: GameState) -> GameState:
            nonlocal success
            cost = cost_fn(current)
            if cost <= 0:
                log.error("purchase.invalid_cost", cost=cost)
                return current
            if current.points < cost:
                log.info("purchase.insufficient_funds", points=current.points, cost=cost)
                return current
            updated = apply_fn(current, cost)
            if not verify(current, updated, cost):
                log.error(
                    "purchase.rejected",
                    cost=cost,
                    points_before=current.points,
                    points_after=updated.points,
                )
                return current
            if finalize is not None:
                updated = finalize(updated)
            success = True
            return updated

        await self.store.run_exclusive(_apply)
        return success

    # ── Unconditional mutations ──────────────────────────────────────

    async def mutate(self, update_fn: Transform) -> GameState:
        """Apply *update_fn* atomically. The caller owns any invariant checks."""
        return await self.store.run_exclusive(update_fn)

    async def sell_crypto(self, now_ms: int | None = None) -> int:
        """Convert all crypto to points. Returns the points gained."""
        now = self._now(now_ms)
        gained = 0

        def _apply(current: GameState) -> GameState:
            nonlocal gained
            if current.crypto_amount <= 0:
                return current
            gained = current.crypto_amount * CRYPTO_SALE_RATE * current.event_multiplier(now)
            return replace(
                current,
                points=current.points + gained,
                crypto_amount=0,
                has_sold_crypto=True,
            )

        await self.mutate(_apply)
        if gained:
            log.info("crypto.sold", points_gained=gained)
        return gained

    async def prestige(self, now_ms: int | None = None) -> PrestigeResult:
        """Trade points for prestige points and reset progression."""
        result = PrestigeResult(success=False)

        def _apply(current: GameState) -> GameState:
            nonlocal result
            if not can_prestige(current):
                result = PrestigeResult(
                    success=False,
                    prestige_level=current.prestige_level,
                    reason=(
                        f"Need {PRESTIGE_THRESHOLD} points, have {current.points}"
                    ),
                )
                return current
            reward = prestige_reward(current)
            updated = prestige_reset(current)
            result = PrestigeResult(
                success=True,
                reward_amount=reward,
                prestige_level=updated.prestige_level,
            )
            return updated

        await self.mutate(_apply)
        if result.success:
            log.info(
                "prestige.performed",
                reward=result.reward_amount,
                prestige_level=result.prestige_level,
            )
        return result

    async def generate_quest(self, now_ms: int | None = None) -> bool:
        """Start a random quest unless one is already active."""
        now = self._now(now_ms)
        quest_type = self._rng.choice(list(QUESTS))
        generated = False

        def _apply(current: GameState) -> GameState:
            nonlocal generated
            if current.has_active_quest():
                return current
            generated = True
            return assign_quest(current, quest_type, now)

        await self.mutate(_apply)
        if generated:
            log.info("quest.generated", quest_type=quest_type.value)
        return generated

    async def activate_boost(
        self, multiplier: int, duration_minutes: int, now_ms: int | None = None
    ) -> GameState:
        if multiplier < 1:
            raise ValueError(f"Boost multiplier must be >= 1, got {multiplier}")
        if duration_minutes < 0:
            raise ValueError(f"Duration must be >= 0, got {duration_minutes}")
        now = self._now(now_ms)
        end = now + duration_minutes * 60 * 1000
        log.info("boost.activated", multiplier=multiplier, end_time=end)
        return await self.mutate(
            lambda s: replace(s, boost_multiplier=multiplier, boost_end_time=end)
        )

    async def start_event(
        self, event_type: EventType, duration_minutes: int, now_ms: int | None = None
    ) -> GameState:
        if event_type is EventType.NONE:
            raise ValueError("Cannot start EventType.NONE")
        if duration_minutes < 0:
            raise ValueError(f"Duration must be >= 0, got {duration_minutes}")
        now = self._now(now_ms)
        end = now + duration_minutes * 60 * 1000
        log.info("event.started", event_type=event_type.value, end_time=end)
        return await self.mutate(
            lambda s: replace(s, active_event_type=event_type, active_event_end_time=end)
        )

    # ── Offline reconciliation ───────────────────────────────────────

    async def apply_offline_income(
        self, now_ms: int | None = None, cap_seconds: int | None = None
    ) -> int:
        """Grant capped income for the time since the last stamp."""
        now = self._now(now_ms)
        cap = self.config.offline_cap_seconds if cap_seconds is None else cap_seconds
        gained = 0

        def _apply(current: GameState) -> GameState:
            nonlocal gained
            updated = reconcile(current, now, cap)
            gained = updated.points - current.points
            return updated

        await self.mutate(_apply)
        log.info("offline.reconciled", points_gained=gained, cap_seconds=cap)
        return gained

    async def mark_seen(self, now_ms: int | None = None) -> GameState:
        now = self._now(now_ms)
        return await self.mutate(lambda s: stamp_seen(s, now))

    # ── Queries ──────────────────────────────────────────────────────

    async def get_state(self) -> GameState:
        """Current committed state, or the default state before the first commit."""
        state = await self.store.get()
        return state if state is not None else GameState()

    async def get_or_create(self) -> GameState:
        """Current state, committing the default row first if there is none."""
        return await self.store.run_exclusive(lambda s: s)

    async def compute_current_cost(self, upgrade_id: str) -> int | None:
        udef = get_upgrade(upgrade_id)
        if udef is None:
            return None
        return udef.cost_for(await self.get_state())

    async def get_upgrade_statuses(self) -> list[UpgradeStatus]:
        state = await self.get_state()
        result: list[UpgradeStatus] = []
        for udef in UPGRADES:
            cost = udef.cost_for(state)
            result.append(
                UpgradeStatus(
                    id=udef.id,
                    display_name=udef.display_name,
                    category=udef.category,
                    level=udef.level(state),
                    current_cost=cost,
                    affordable=state.points >= cost,
                )
            )
        return result
