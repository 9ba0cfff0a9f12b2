from __future__ import annotations

from clickerengine.state import EventType, GameState, QuestType
from clickerengine.upgrade import UpgradeStatus

_SUFFIXES = (
    (1_000_000_000_000, "T"),
    (1_000_000_000, "B"),
    (1_000_000, "M"),
    (1_000, "K"),
)


def format_number(number: int) -> str:
    """Abbreviate with one decimal: 1500 -> '1.5K', 2_300_000_000 -> '2.3B'."""
    for size, suffix in _SUFFIXES:
        if number >= size:
            return f"{number / size:.1f}{suffix}"
    return str(number)


def format_state_report(
    state: GameState,
    now: int,
    unlocked: int = 0,
    total_achievements: int = 0,
) -> str:
    """Format a game state for console output."""
    lines: list[str] = []

    lines.append("=" * 20 + " Clicker Status " + "=" * 20)
    lines.append(f"Points: {format_number(state.points)} ({state.points})")
    lines.append(f"Total taps: {state.total_taps}")
    lines.append(f"Crypto: {format_number(state.crypto_amount)}")
    lines.append(
        f"Prestige: level {state.prestige_level}, "
        f"{state.prestige_points} point(s)"
    )
    lines.append("")

    lines.append("PRODUCTION:")
    lines.append(f"  Tap power: {state.tap_power} (x{state.points_multiplier})")
    lines.append(
        f"  Auto clickers: {state.auto_clickers} x {state.auto_power} "
        f"at speed {state.auto_clicker_speed}"
    )
    lines.append(
        f"  Room: fridge {state.fridge_level}, printer {state.printer_level}, "
        f"scanner {state.scanner_level}, 3D printer {state.printer_3d_level}"
    )
    lines.append(f"  Mining power: {state.mining_power}")
    lines.append("")

    boost = state.active_boost(now)
    if boost > 1:
        remaining = (state.boost_end_time - now) // 1000
        lines.append(f"BOOST: x{boost} ({remaining}s left)")
    if state.active_event_type is not EventType.NONE and now < state.active_event_end_time:
        remaining = (state.active_event_end_time - now) // 1000
        lines.append(f"EVENT: {state.active_event_type.value} ({remaining}s left)")
    if state.active_quest_type is not QuestType.NONE:
        lines.append(
            f"QUEST: {state.active_quest_type.value} "
            f"{state.active_quest_progress}/{state.active_quest_target} "
            f"(reward {format_number(state.active_quest_reward)})"
        )

    if total_achievements:
        lines.append(f"ACHIEVEMENTS: {unlocked}/{total_achievements}")

    return "\n".join(lines)


def format_upgrade_table(statuses: list[UpgradeStatus]) -> str:
    lines = [f"{'UPGRADE':<20} {'LEVEL':>6} {'COST':>10}"]
    for s in statuses:
        marker = " " if s.affordable else "*"
        lines.append(
            f"{s.id:<20} {s.level:>6} {format_number(s.current_cost):>10}{marker}"
        )
    lines.append("* = cannot afford")
    return "\n".join(lines)
