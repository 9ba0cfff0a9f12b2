from __future__ import annotations

from dataclasses import dataclass

from clickerengine.state import GameState

PRESTIGE_THRESHOLD = 1_000_000


@dataclass(frozen=True)
class PrestigeResult:
    """Outcome of a prestige attempt."""

    success: bool
    reward_amount: int = 0
    prestige_level: int = 0
    reason: str = ""


def prestige_reward(state: GameState) -> int:
    return state.points // PRESTIGE_THRESHOLD


def can_prestige(state: GameState) -> bool:
    return state.points >= PRESTIGE_THRESHOLD


def prestige_reset(state: GameState) -> GameState:
    """Fresh progression that keeps what survives a prestige.

    Survivors: last-seen stamp, prestige level/points (advanced here),
    the active quest and the active event.
    """
    return GameState(
        last_seen_epoch_ms=state.last_seen_epoch_ms,
        prestige_level=state.prestige_level + 1,
        prestige_points=state.prestige_points + prestige_reward(state),
        active_quest_type=state.active_quest_type,
        active_quest_progress=state.active_quest_progress,
        active_quest_target=state.active_quest_target,
        active_quest_reward=state.active_quest_reward,
        last_quest_reset_time=state.last_quest_reset_time,
        active_event_type=state.active_event_type,
        active_event_end_time=state.active_event_end_time,
    )
