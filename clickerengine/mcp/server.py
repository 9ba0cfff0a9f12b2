"""MCP server wrapping GameRuntime for interactive AI playtesting."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from mcp.server.fastmcp import FastMCP

from clickerengine._types import ManualClock, now_ms
from clickerengine.achievement import ACHIEVEMENTS, AchievementEvaluator
from clickerengine.definition import EngineConfig
from clickerengine.drivers import simulate_ticks
from clickerengine.prestige import PRESTIGE_THRESHOLD
from clickerengine.quest import QUESTS
from clickerengine.runtime import CRYPTO_SALE_RATE, GameRuntime
from clickerengine.state import EventType
from clickerengine.store import MemoryStateStore, StateStore, StoreError
from clickerengine.upgrade import UPGRADES

# Maximum seconds per wait() call (24 hours)
_MAX_WAIT = 86400
# Maximum taps per tap() call
_MAX_TAPS = 1000
# Game time between consecutive taps of one tap() call
_TAP_INTERVAL_MS = 100


@dataclass
class _GameHolder:
    """Holds the store and a runtime driven by a manual clock."""

    store: StateStore
    clock: ManualClock
    runtime: GameRuntime
    evaluator: AchievementEvaluator


def _make_holder(
    store: StateStore, config: EngineConfig | None = None, start_ms: int | None = None
) -> _GameHolder:
    clock = ManualClock(now_ms() if start_ms is None else start_ms)
    return _GameHolder(
        store=store,
        clock=clock,
        runtime=GameRuntime(store, config=config, clock=clock),
        evaluator=AchievementEvaluator(store, clock=clock),
    )


async def _unlock(holder: _GameHolder) -> list[str]:
    return await holder.evaluator.evaluate(await holder.runtime.get_state())


# ── Tool logic functions (testable without MCP protocol) ────────────


def _tool_get_game_info(holder: _GameHolder) -> dict[str, Any]:
    return {
        "upgrades": [
            {
                "id": u.id,
                "display_name": u.display_name,
                "category": u.category,
                "description": u.description,
            }
            for u in UPGRADES
        ],
        "quests": [
            {"type": q.type.value, "target": q.target, "reward": q.reward}
            for q in QUESTS.values()
        ],
        "events": [e.value for e in EventType if e is not EventType.NONE],
        "achievements": len(ACHIEVEMENTS),
        "prestige_threshold": PRESTIGE_THRESHOLD,
        "crypto_sale_rate": CRYPTO_SALE_RATE,
        "offline_cap_seconds": holder.runtime.config.offline_cap_seconds,
    }


async def _tool_get_game_state(holder: _GameHolder) -> dict[str, Any]:
    state = await holder.runtime.get_state()
    now = holder.clock()
    result = state.to_dict()
    result["now_ms"] = now
    result["active_boost"] = state.active_boost(now)
    result["event_multiplier"] = state.event_multiplier(now)
    result["achievements_unlocked"] = len(await holder.store.achievement_ids())
    return result


async def _tool_get_available_purchases(holder: _GameHolder) -> dict[str, Any]:
    statuses = await holder.runtime.get_upgrade_statuses()
    return {
        "purchases": [
            {
                "id": s.id,
                "display_name": s.display_name,
                "category": s.category,
                "level": s.level,
                "current_cost": s.current_cost,
                "affordable": s.affordable,
            }
            for s in statuses
        ]
    }


async def _tool_tap(holder: _GameHolder, count: int = 1) -> dict[str, Any]:
    if count < 1:
        return {"error": "Count must be at least 1"}
    if count > _MAX_TAPS:
        return {"error": f"Count cannot exceed {_MAX_TAPS}"}

    total = 0
    best_combo = 1
    for i in range(count):
        if i:
            holder.clock.advance(_TAP_INTERVAL_MS)
        result = await holder.runtime.tap()
        total += result.points
        best_combo = max(best_combo, result.combo_multiplier)
    new_achievements = await _unlock(holder)

    state = await holder.runtime.get_state()
    response: dict[str, Any] = {
        "taps": count,
        "total_earned": total,
        "best_combo": best_combo,
        "new_balance": state.points,
    }
    if new_achievements:
        response["new_achievements"] = new_achievements
    return response


async def _tool_purchase(holder: _GameHolder, upgrade_id: str) -> dict[str, Any]:
    cost = await holder.runtime.compute_current_cost(upgrade_id)
    if cost is None:
        return {"error": f"Unknown upgrade: {upgrade_id!r}"}

    if not await holder.runtime.purchase(upgrade_id):
        return {"success": False, "reason": "Cannot afford", "current_cost": cost}

    new_achievements = await _unlock(holder)
    state = await holder.runtime.get_state()
    response: dict[str, Any] = {
        "success": True,
        "upgrade_id": upgrade_id,
        "new_balance": state.points,
        "next_cost": await holder.runtime.compute_current_cost(upgrade_id),
    }
    if new_achievements:
        response["new_achievements"] = new_achievements
    return response


async def _tool_sell_crypto(holder: _GameHolder) -> dict[str, Any]:
    gained = await holder.runtime.sell_crypto()
    if gained == 0:
        return {"success": False, "reason": "No crypto to sell"}
    await _unlock(holder)
    return {"success": True, "points_gained": gained}


async def _tool_prestige(holder: _GameHolder) -> dict[str, Any]:
    result = await holder.runtime.prestige()
    if result.success:
        await _unlock(holder)
        return {
            "success": True,
            "reward_amount": result.reward_amount,
            "prestige_level": result.prestige_level,
        }
    return {"success": False, "reason": result.reason}


async def _tool_activate_boost(
    holder: _GameHolder, multiplier: int, duration_minutes: int
) -> dict[str, Any]:
    try:
        state = await holder.runtime.activate_boost(multiplier, duration_minutes)
    except ValueError as exc:
        return {"error": str(exc)}
    return {
        "success": True,
        "boost_multiplier": state.boost_multiplier,
        "boost_end_time": state.boost_end_time,
    }


async def _tool_start_event(
    holder: _GameHolder, event_type: str, duration_minutes: int
) -> dict[str, Any]:
    try:
        etype = EventType(event_type)
        state = await holder.runtime.start_event(etype, duration_minutes)
    except ValueError as exc:
        return {"error": str(exc)}
    return {
        "success": True,
        "event_type": state.active_event_type.value,
        "event_end_time": state.active_event_end_time,
    }


async def _tool_generate_quest(holder: _GameHolder) -> dict[str, Any]:
    generated = await holder.runtime.generate_quest()
    state = await holder.runtime.get_state()
    return {
        "generated": generated,
        "quest_type": state.active_quest_type.value,
        "progress": state.active_quest_progress,
        "target": state.active_quest_target,
        "reward": state.active_quest_reward,
    }


async def _tool_wait(holder: _GameHolder, seconds: float) -> dict[str, Any]:
    if seconds <= 0:
        return {"error": "Seconds must be positive"}
    if seconds > _MAX_WAIT:
        return {"error": f"Cannot wait more than {_MAX_WAIT} seconds (24h) per call"}

    before = await holder.runtime.get_state()
    counts = await simulate_ticks(holder.runtime, holder.clock, int(seconds * 1000))
    new_achievements = await _unlock(holder)
    after = await holder.runtime.get_state()

    result: dict[str, Any] = {
        "waited": seconds,
        "ticks": {source.value: n for source, n in counts.items()},
        "points_gained": after.points - before.points,
        "crypto_gained": after.crypto_amount - before.crypto_amount,
        "points": after.points,
        "crypto_amount": after.crypto_amount,
    }
    if new_achievements:
        result["new_achievements"] = new_achievements
    return result


async def _tool_get_achievements(holder: _GameHolder) -> dict[str, Any]:
    records = await holder.store.achievements()
    return {
        "unlocked": [
            {"id": r.id, "unlocked_at_ms": r.unlocked_at_ms}
            for r in sorted(records.values(), key=lambda r: r.unlocked_at_ms)
        ],
        "locked": [a.id for a in ACHIEVEMENTS if a.id not in records],
        "total": len(ACHIEVEMENTS),
    }


async def _tool_new_game(holder: _GameHolder) -> dict[str, Any]:
    await holder.store.reset()
    await holder.runtime.get_or_create()
    return {"success": True, "message": "Game reset to initial state"}


async def _guard(coro: Any) -> dict[str, Any]:
    try:
        return await coro
    except StoreError as exc:
        return {"error": str(exc)}


# ── Server factory ──────────────────────────────────────────────────


def create_server(
    store: StateStore | None = None, config: EngineConfig | None = None
) -> FastMCP:
    """Create an MCP server over *store* (in-memory when not given)."""
    holder = _make_holder(store if store is not None else MemoryStateStore(), config)

    mcp = FastMCP(name="ClickerEngine")

    @mcp.tool()
    def get_game_info() -> dict[str, Any]:
        """Get static game overview: upgrades, quests, events, prestige threshold."""
        return _tool_get_game_info(holder)

    @mcp.tool()
    async def get_game_state() -> dict[str, Any]:
        """Get the full current game state plus active boost/event multipliers."""
        return await _guard(_tool_get_game_state(holder))

    @mcp.tool()
    async def get_available_purchases() -> dict[str, Any]:
        """Get every upgrade with its level, next cost and affordability."""
        return await _guard(_tool_get_available_purchases(holder))

    @mcp.tool()
    async def tap(count: int = 1) -> dict[str, Any]:
        """Tap N times (max 1000), 100ms of game time apart. Returns total earned."""
        return await _guard(_tool_tap(holder, count))

    @mcp.tool()
    async def purchase(upgrade_id: str) -> dict[str, Any]:
        """Buy one level of an upgrade. Returns success/failure with reason."""
        return await _guard(_tool_purchase(holder, upgrade_id))

    @mcp.tool()
    async def sell_crypto() -> dict[str, Any]:
        """Sell all mined crypto for points."""
        return await _guard(_tool_sell_crypto(holder))

    @mcp.tool()
    async def prestige() -> dict[str, Any]:
        """Reset progression for prestige points (needs 1M points)."""
        return await _guard(_tool_prestige(holder))

    @mcp.tool()
    async def activate_boost(multiplier: int, duration_minutes: int) -> dict[str, Any]:
        """Activate a temporary income multiplier."""
        return await _guard(_tool_activate_boost(holder, multiplier, duration_minutes))

    @mcp.tool()
    async def start_event(event_type: str, duration_minutes: int) -> dict[str, Any]:
        """Start a global event: 'double_day' or 'free_upgrades'."""
        return await _guard(_tool_start_event(holder, event_type, duration_minutes))

    @mcp.tool()
    async def generate_quest() -> dict[str, Any]:
        """Start a random quest unless one is active."""
        return await _guard(_tool_generate_quest(holder))

    @mcp.tool()
    async def wait(seconds: float) -> dict[str, Any]:
        """Advance game time by the given seconds (max 86400), firing income ticks on schedule."""
        return await _guard(_tool_wait(holder, seconds))

    @mcp.tool()
    async def get_achievements() -> dict[str, Any]:
        """List unlocked and locked achievements."""
        return await _guard(_tool_get_achievements(holder))

    @mcp.tool()
    async def new_game() -> dict[str, Any]:
        """Reset the game and its achievements to the initial state."""
        return await _guard(_tool_new_game(holder))

    return mcp
