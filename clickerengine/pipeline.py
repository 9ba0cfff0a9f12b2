from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from clickerengine.state import GameState, QuestType

if TYPE_CHECKING:
    from clickerengine.definition import EngineConfig

COMBO_WINDOW_MS = 2000
MAX_COMBO = 10

# Points per level, paid every equipment tick
EQUIPMENT_RATES: dict[str, int] = {
    "fridge_level": 10,
    "printer_level": 15,
    "scanner_level": 20,
    "printer_3d_level": 50,
}


class IncomeSource(Enum):
    AUTO_CLICKER = "auto_clicker"
    EQUIPMENT = "equipment"
    MINING = "mining"


@dataclass(frozen=True)
class TapYield:
    """Outcome of a single tap, before it is committed."""

    points: int
    quest_delta: int
    combo_multiplier: int = 1


class YieldPipeline:
    """Computes tap and tick income from a state snapshot.

    Tap income is built in a fixed order because every later stage
    multiplies the previous one:

      1. base      = tap_power * (1 + 0.2 * goat_pen_level), floored
      2. multiplier
      3. food      = * (1 + 0.15 * goat_food_level), floored
      4. combo     (only within COMBO_WINDOW_MS of a previous tap)
      5. boost
      6. double-day event

    The percentage stages are done in integer arithmetic so flooring is exact.
    """

    def combo_multiplier(self, state: GameState, now: int) -> int:
        if state.last_tap_time > 0 and now - state.last_tap_time < COMBO_WINDOW_MS:
            return min(state.combo_bonus + 1, MAX_COMBO)
        return 1

    def compute_tap(self, state: GameState, now: int) -> TapYield:
        base = state.tap_power * (5 + state.goat_pen_level) // 5
        after_multiplier = base * state.points_multiplier
        after_food = after_multiplier * (100 + 15 * state.goat_food_level) // 100
        combo = self.combo_multiplier(state, now)
        after_combo = after_food * combo
        after_boost = after_combo * state.active_boost(now)
        final = after_boost * state.event_multiplier(now)

        if state.active_quest_type is QuestType.TAPS:
            quest_delta = 1
        elif state.active_quest_type is QuestType.POINTS:
            quest_delta = final
        else:
            quest_delta = 0
        return TapYield(points=final, quest_delta=quest_delta, combo_multiplier=combo)

    def compute_tick(self, state: GameState, now: int, source: IncomeSource) -> int:
        """Income for one tick of *source*. Mining returns crypto, not points."""
        if source is IncomeSource.MINING:
            return state.mining_power

        multipliers = state.active_boost(now) * state.event_multiplier(now)
        if source is IncomeSource.AUTO_CLICKER:
            return (
                state.auto_clickers
                * state.auto_power
                * state.points_multiplier
                * multipliers
            )
        room = sum(getattr(state, name) * rate for name, rate in EQUIPMENT_RATES.items())
        return room * multipliers

    def tick_period_ms(
        self, state: GameState | None, source: IncomeSource, config: EngineConfig
    ) -> int:
        if source is IncomeSource.EQUIPMENT:
            return config.equipment_period_ms
        if source is IncomeSource.MINING:
            return config.mining_period_ms
        speed = state.auto_clicker_speed if state is not None else 1
        return max(config.auto_base_period_ms // max(speed, 1), 1)
