from __future__ import annotations

from dataclasses import replace

from clickerengine.state import GameState

DEFAULT_OFFLINE_CAP_SECONDS = 8 * 60 * 60


def offline_seconds(state: GameState, now: int, cap_seconds: int) -> int:
    """Whole seconds away since the last stamp, clamped to [0, cap]."""
    if state.last_seen_epoch_ms <= 0:
        return 0
    elapsed = max((now - state.last_seen_epoch_ms) // 1000, 0)
    return min(elapsed, cap_seconds)


def offline_gain(state: GameState, now: int, cap_seconds: int = DEFAULT_OFFLINE_CAP_SECONDS) -> int:
    per_second = state.auto_clickers * state.auto_power * state.offline_multiplier
    return offline_seconds(state, now, cap_seconds) * per_second


def reconcile(
    state: GameState, now: int, cap_seconds: int = DEFAULT_OFFLINE_CAP_SECONDS
) -> GameState:
    """Grant capped income for the time away and stamp *now* as last seen.

    A state that was never stamped (first run) only gets the stamp.
    """
    gain = offline_gain(state, now, cap_seconds)
    return replace(
        state,
        points=state.points + gain,
        last_seen_epoch_ms=max(state.last_seen_epoch_ms, now),
    )


def stamp_seen(state: GameState, now: int) -> GameState:
    return replace(state, last_seen_epoch_ms=max(state.last_seen_epoch_ms, now))
