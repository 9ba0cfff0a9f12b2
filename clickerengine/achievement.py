from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Collection, Sequence

import structlog

from clickerengine._types import Clock, now_ms
from clickerengine.requirement import Req, Requirement
from clickerengine.store import StoreError

if TYPE_CHECKING:
    from clickerengine.state import GameState
    from clickerengine.store import StateStore

log = structlog.get_logger()


@dataclass(frozen=True)
class AchievementDef:
    """A one-time unlock that fires the first time its trigger is met."""

    id: str
    description: str
    trigger: Requirement


def _at_least(id: str, field_name: str, threshold: int, description: str) -> AchievementDef:
    return AchievementDef(id, description, Req.at_least(field_name, threshold))


ACHIEVEMENTS: tuple[AchievementDef, ...] = (
    # Taps
    _at_least("first_tap", "total_taps", 1, "Tap for the first time"),
    _at_least("taps_100", "total_taps", 100, "Tap 100 times"),
    _at_least("taps_1k", "total_taps", 1_000, "Tap 1,000 times"),
    _at_least("taps_10k", "total_taps", 10_000, "Tap 10,000 times"),
    _at_least("taps_100k", "total_taps", 100_000, "Tap 100,000 times"),
    _at_least("taps_1m", "total_taps", 1_000_000, "Tap 1,000,000 times"),
    # Points
    _at_least("points_1k", "points", 1_000, "Hold 1K points"),
    _at_least("points_100k", "points", 100_000, "Hold 100K points"),
    _at_least("points_1m", "points", 1_000_000, "Hold 1M points"),
    _at_least("points_10m", "points", 10_000_000, "Hold 10M points"),
    _at_least("points_100m", "points", 100_000_000, "Hold 100M points"),
    _at_least("points_1b", "points", 1_000_000_000, "Hold 1B points"),
    # Tap power
    _at_least("tap_power_10", "tap_power", 10, "Reach tap power 10"),
    _at_least("tap_power_50", "tap_power", 50, "Reach tap power 50"),
    _at_least("tap_power_100", "tap_power", 100, "Reach tap power 100"),
    _at_least("tap_power_500", "tap_power", 500, "Reach tap power 500"),
    # Auto clickers
    _at_least("auto_clickers_10", "auto_clickers", 10, "Own 10 auto clickers"),
    _at_least("auto_clickers_50", "auto_clickers", 50, "Own 50 auto clickers"),
    _at_least("auto_clickers_100", "auto_clickers", 100, "Own 100 auto clickers"),
    _at_least("auto_clickers_500", "auto_clickers", 500, "Own 500 auto clickers"),
    # Auto power
    _at_least("auto_power_5", "auto_power", 5, "Reach auto power 5"),
    _at_least("auto_power_25", "auto_power", 25, "Reach auto power 25"),
    _at_least("auto_power_100", "auto_power", 100, "Reach auto power 100"),
    # Multipliers
    _at_least("multiplier_5x", "points_multiplier", 5, "Reach a x5 points multiplier"),
    _at_least("multiplier_10x", "points_multiplier", 10, "Reach a x10 points multiplier"),
    _at_least("multiplier_50x", "points_multiplier", 50, "Reach a x50 points multiplier"),
    # Auto clicker speed
    _at_least("auto_speed_5", "auto_clicker_speed", 5, "Reach auto speed 5"),
    _at_least("auto_speed_10", "auto_clicker_speed", 10, "Reach auto speed 10"),
    _at_least("auto_speed_20", "auto_clicker_speed", 20, "Reach auto speed 20"),
    # Combo
    _at_least("combo_5", "combo_bonus", 5, "Reach combo bonus 5"),
    _at_least("combo_10", "combo_bonus", 10, "Reach combo bonus 10"),
    _at_least("combo_master", "combo_bonus", 20, "Reach combo bonus 20"),
    # Offline
    _at_least("offline_multiplier_5", "offline_multiplier", 5, "Reach offline multiplier 5"),
    _at_least("offline_multiplier_10", "offline_multiplier", 10, "Reach offline multiplier 10"),
    # Goat
    _at_least("goat_pen_5", "goat_pen_level", 5, "Goat pen level 5"),
    _at_least("goat_pen_10", "goat_pen_level", 10, "Goat pen level 10"),
    _at_least("goat_pen_20", "goat_pen_level", 20, "Goat pen level 20"),
    _at_least("goat_food_5", "goat_food_level", 5, "Goat food level 5"),
    _at_least("goat_food_10", "goat_food_level", 10, "Goat food level 10"),
    _at_least("goat_food_20", "goat_food_level", 20, "Goat food level 20"),
    AchievementDef(
        "goat_master",
        "Goat pen and goat food both at level 10",
        Req.at_least("goat_pen_level", 10) & Req.at_least("goat_food_level", 10),
    ),
    # Equipment room
    _at_least("fridge_5", "fridge_level", 5, "Fridge level 5"),
    _at_least("fridge_10", "fridge_level", 10, "Fridge level 10"),
    _at_least("printer_5", "printer_level", 5, "Printer level 5"),
    _at_least("printer_10", "printer_level", 10, "Printer level 10"),
    _at_least("scanner_5", "scanner_level", 5, "Scanner level 5"),
    _at_least("scanner_10", "scanner_level", 10, "Scanner level 10"),
    _at_least("printer_3d_5", "printer_3d_level", 5, "3D printer level 5"),
    _at_least("printer_3d_10", "printer_3d_level", 10, "3D printer level 10"),
    AchievementDef(
        "room_master",
        "Every piece of equipment at level 5",
        Req.all(
            Req.at_least("fridge_level", 5),
            Req.at_least("printer_level", 5),
            Req.at_least("scanner_level", 5),
            Req.at_least("printer_3d_level", 5),
        ),
    ),
    # Mining
    _at_least("mining_power_5", "mining_power", 5, "Mining power 5"),
    _at_least("mining_power_10", "mining_power", 10, "Mining power 10"),
    _at_least("mining_power_50", "mining_power", 50, "Mining power 50"),
    _at_least("crypto_1k", "crypto_amount", 1_000, "Hold 1K crypto"),
    _at_least("crypto_10k", "crypto_amount", 10_000, "Hold 10K crypto"),
    _at_least("crypto_100k", "crypto_amount", 100_000, "Hold 100K crypto"),
    _at_least("crypto_millionaire", "crypto_amount", 1_000_000, "Hold 1M crypto"),
    AchievementDef("crypto_sold", "Sell crypto once", Req.flag("has_sold_crypto")),
    # Premium
    _at_least("premium_1", "premium_upgrade_1", 1, "Buy Premium Upgrade I"),
    _at_least("premium_2", "premium_upgrade_2", 1, "Buy Premium Upgrade II"),
    AchievementDef(
        "premium_both",
        "Own both premium upgrades",
        Req.at_least("premium_upgrade_1", 1) & Req.at_least("premium_upgrade_2", 1),
    ),
    # Special
    AchievementDef(
        "speed_demon",
        "Auto speed 10 with 50 auto clickers",
        Req.at_least("auto_clicker_speed", 10) & Req.at_least("auto_clickers", 50),
    ),
    AchievementDef(
        "millionaire",
        "Hold 1M points after 10K taps",
        Req.at_least("points", 1_000_000) & Req.at_least("total_taps", 10_000),
    ),
    _at_least("billionaire", "points", 1_000_000_000, "Hold 1B points"),
    AchievementDef(
        "perfectionist",
        "Tap power, auto clickers, auto power and multiplier all at 10",
        Req.all(
            Req.at_least("tap_power", 10),
            Req.at_least("auto_clickers", 10),
            Req.at_least("auto_power", 10),
            Req.at_least("points_multiplier", 10),
        ),
    ),
    AchievementDef(
        "collector",
        "Own at least one level of every goat, room and mining upgrade",
        Req.all(
            *(
                Req.at_least(name, 1)
                for name in (
                    "goat_pen_level",
                    "goat_food_level",
                    "fridge_level",
                    "printer_level",
                    "scanner_level",
                    "printer_3d_level",
                    "mining_power",
                )
            )
        ),
    ),
)


class AchievementEvaluator:
    """Turns state snapshots into idempotent achievement inserts.

    Reads game state and writes only to the achievement set, so its own
    writes never trigger another evaluation.
    """

    def __init__(
        self,
        store: StateStore,
        achievements: Sequence[AchievementDef] = ACHIEVEMENTS,
        clock: Clock | None = None,
    ) -> None:
        self.store = store
        self.achievements = achievements
        self._clock = clock or now_ms

    def pending(self, state: GameState, unlocked: Collection[str]) -> list[str]:
        """Ids whose trigger holds for *state* and that are not yet unlocked."""
        return [
            a.id
            for a in self.achievements
            if a.id not in unlocked and a.trigger.evaluate(state)
        ]

    async def evaluate(self, state: GameState, now_ms: int | None = None) -> list[str]:
        """Unlock every pending achievement. Returns the ids newly inserted."""
        now = self._clock() if now_ms is None else now_ms
        unlocked = await self.store.achievement_ids()
        inserted: list[str] = []
        for achievement_id in self.pending(state, unlocked):
            if await self.store.insert_achievement_if_absent(achievement_id, now):
                inserted.append(achievement_id)
        return inserted

    async def watch(self) -> None:
        """Evaluate every committed state until cancelled."""
        async for state in self.store.observe():
            try:
                await self.evaluate(state)
            except StoreError:
                # The next committed state re-evaluates everything still pending
                log.exception("achievement.evaluate_failed")
