"""Tests for MCP server tool functions."""
import asyncio

import pytest

from clickerengine.state import GameState
from clickerengine.store import MemoryStateStore

from clickerengine.mcp.server import (
    _make_holder,
    _tool_activate_boost,
    _tool_generate_quest,
    _tool_get_achievements,
    _tool_get_available_purchases,
    _tool_get_game_info,
    _tool_get_game_state,
    _tool_new_game,
    _tool_prestige,
    _tool_purchase,
    _tool_sell_crypto,
    _tool_start_event,
    _tool_tap,
    _tool_wait,
    create_server,
)

T = 1_700_000_000_000


def run(coro):
    return asyncio.run(coro)


def _holder(state: GameState | None = None):
    return _make_holder(MemoryStateStore(state), start_ms=T)


# ── Info and state ──────────────────────────────────────────────────


def test_get_game_info():
    info = _tool_get_game_info(_holder())
    assert len(info["upgrades"]) == 16
    assert {q["type"] for q in info["quests"]} == {"taps", "points", "upgrades"}
    assert info["events"] == ["double_day", "free_upgrades"]
    assert info["achievements"] == 66
    assert info["prestige_threshold"] == 1_000_000


def test_get_game_state():
    holder = _holder(GameState(points=42, boost_multiplier=2, boost_end_time=T + 1_000))
    state = run(_tool_get_game_state(holder))
    assert state["points"] == 42
    assert state["now_ms"] == T
    assert state["active_boost"] == 2
    assert state["achievements_unlocked"] == 0


def test_get_available_purchases():
    holder = _holder(GameState(points=20))
    purchases = {p["id"]: p for p in run(_tool_get_available_purchases(holder))["purchases"]}
    assert purchases["tap_power"]["current_cost"] == 15
    assert purchases["tap_power"]["affordable"]
    assert not purchases["fridge"]["affordable"]


# ── Actions ─────────────────────────────────────────────────────────


def test_tap():
    holder = _holder()
    result = run(_tool_tap(holder, 10))
    assert result["taps"] == 10
    assert result["total_earned"] == 10
    assert result["new_balance"] == 10
    assert result["new_achievements"] == ["first_tap"]


def test_tap_spacing_enables_combo():
    holder = _holder(GameState(combo_bonus=1))
    result = run(_tool_tap(holder, 3))
    # First tap has no previous tap; the next two land 100ms apart
    assert result["total_earned"] == 1 + 2 + 2
    assert result["best_combo"] == 2


def test_tap_limits():
    holder = _holder()
    assert "error" in run(_tool_tap(holder, 0))
    assert "error" in run(_tool_tap(holder, 1001))


def test_purchase():
    holder = _holder(GameState(points=100))
    result = run(_tool_purchase(holder, "tap_power"))
    assert result["success"]
    assert result["new_balance"] == 85
    assert result["next_cost"] == 20


def test_purchase_failures():
    holder = _holder()
    assert run(_tool_purchase(holder, "warp_drive")) == {"error": "Unknown upgrade: 'warp_drive'"}
    result = run(_tool_purchase(holder, "tap_power"))
    assert result == {"success": False, "reason": "Cannot afford", "current_cost": 15}


def test_sell_crypto():
    holder = _holder(GameState(crypto_amount=2))
    assert run(_tool_sell_crypto(holder)) == {"success": True, "points_gained": 200}
    assert not run(_tool_sell_crypto(holder))["success"]


def test_prestige():
    holder = _holder(GameState(points=3_500_000))
    result = run(_tool_prestige(holder))
    assert result == {"success": True, "reward_amount": 3, "prestige_level": 1}
    again = run(_tool_prestige(holder))
    assert not again["success"]


def test_activate_boost():
    holder = _holder()
    result = run(_tool_activate_boost(holder, 3, 10))
    assert result["boost_multiplier"] == 3
    assert result["boost_end_time"] == T + 600_000
    assert "error" in run(_tool_activate_boost(holder, 0, 10))


def test_start_event():
    holder = _holder()
    result = run(_tool_start_event(holder, "double_day", 1))
    assert result["event_type"] == "double_day"
    assert "error" in run(_tool_start_event(holder, "triple_day", 1))
    assert "error" in run(_tool_start_event(holder, "", 1))


def test_generate_quest():
    holder = _holder()
    first = run(_tool_generate_quest(holder))
    assert first["generated"]
    assert first["quest_type"] in {"taps", "points", "upgrades"}
    second = run(_tool_generate_quest(holder))
    assert not second["generated"]
    assert second["quest_type"] == first["quest_type"]


# ── Time ────────────────────────────────────────────────────────────


def test_wait():
    holder = _holder(GameState(auto_clickers=2, mining_power=1))
    result = run(_tool_wait(holder, 10))
    assert result["ticks"] == {"auto_clicker": 10, "equipment": 5, "mining": 10}
    assert result["points_gained"] == 20
    assert result["crypto_gained"] == 10
    assert holder.clock() == T + 10_000


def test_wait_expires_boost():
    holder = _holder(GameState(auto_clickers=1))

    async def scenario():
        await _tool_activate_boost(holder, 2, 1)
        return await _tool_wait(holder, 120)

    result = run(scenario())
    # 59 boosted ticks; the window closes at exactly 60s
    assert result["points_gained"] == 59 * 2 + 61


def test_wait_limits():
    holder = _holder()
    assert "error" in run(_tool_wait(holder, 0))
    assert "error" in run(_tool_wait(holder, 86_401))


# ── Achievements and reset ──────────────────────────────────────────


def test_get_achievements():
    holder = _holder()
    run(_tool_tap(holder, 1))
    result = run(_tool_get_achievements(holder))
    assert [a["id"] for a in result["unlocked"]] == ["first_tap"]
    assert len(result["locked"]) == 65
    assert result["total"] == 66


def test_new_game():
    holder = _holder(GameState(points=500))
    run(_tool_tap(holder, 1))
    result = run(_tool_new_game(holder))
    assert result["success"]
    state = run(_tool_get_game_state(holder))
    assert state["points"] == 0
    assert state["achievements_unlocked"] == 0


def test_create_server():
    server = create_server(MemoryStateStore())
    assert server.name == "ClickerEngine"
