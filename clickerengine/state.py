from __future__ import annotations

from dataclasses import asdict, dataclass, fields, replace
from enum import Enum
from typing import Any


class QuestType(Enum):
    NONE = ""
    TAPS = "taps"
    POINTS = "points"
    UPGRADES = "upgrades"


class EventType(Enum):
    NONE = ""
    DOUBLE_DAY = "double_day"
    FREE_UPGRADES = "free_upgrades"


_NON_NEGATIVE = ("points", "crypto_amount", "prestige_points", "total_taps")


@dataclass(frozen=True)
class GameState:
    """Immutable snapshot of the single live game-state row."""

    points: int = 0
    tap_power: int = 1
    auto_clickers: int = 0
    auto_power: int = 1
    total_taps: int = 0
    last_seen_epoch_ms: int = 0

    # Upgrades
    points_multiplier: int = 1
    auto_clicker_speed: int = 1
    combo_bonus: int = 0
    offline_multiplier: int = 1
    premium_upgrade_1: int = 0
    premium_upgrade_2: int = 0
    last_tap_time: int = 0

    # Goat
    goat_pen_level: int = 0
    goat_food_level: int = 0

    # Equipment room
    fridge_level: int = 0
    printer_level: int = 0
    scanner_level: int = 0
    printer_3d_level: int = 0

    # Mining
    crypto_amount: int = 0
    mining_power: int = 0
    last_mining_time: int = 0
    has_sold_crypto: bool = False

    # Prestige
    prestige_level: int = 0
    prestige_points: int = 0

    # Boost
    boost_multiplier: int = 1
    boost_end_time: int = 0

    # Quest
    active_quest_type: QuestType = QuestType.NONE
    active_quest_progress: int = 0
    active_quest_target: int = 0
    active_quest_reward: int = 0
    last_quest_reset_time: int = 0

    # Event
    active_event_type: EventType = EventType.NONE
    active_event_end_time: int = 0

    def __post_init__(self) -> None:
        for name in _NON_NEGATIVE:
            value = getattr(self, name)
            if value < 0:
                raise ValueError(f"{name} must be >= 0, got {value}")

    # ── Time-window queries ──────────────────────────────────────────

    def active_boost(self, now: int) -> int:
        return self.boost_multiplier if now < self.boost_end_time else 1

    def event_active(self, event_type: EventType, now: int) -> bool:
        return self.active_event_type is event_type and now < self.active_event_end_time

    def event_multiplier(self, now: int) -> int:
        return 2 if self.event_active(EventType.DOUBLE_DAY, now) else 1

    def has_active_quest(self) -> bool:
        return self.active_quest_type is not QuestType.NONE

    def clear_expired(self, now: int) -> GameState:
        """Drop a boost or event whose window has closed.

        Returns ``self`` when nothing expired, so callers can detect a no-op.
        """
        changes: dict[str, Any] = {}
        if now >= self.boost_end_time and self.boost_multiplier != 1:
            changes["boost_multiplier"] = 1
            changes["boost_end_time"] = 0
        if (
            self.active_event_type is not EventType.NONE
            and now >= self.active_event_end_time
        ):
            changes["active_event_type"] = EventType.NONE
            changes["active_event_end_time"] = 0
        if not changes:
            return self
        return replace(self, **changes)

    # ── Serialisation ────────────────────────────────────────────────

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["active_quest_type"] = self.active_quest_type.value
        data["active_event_type"] = self.active_event_type.value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> GameState:
        """Build a state from a stored mapping.

        Unknown keys are ignored and missing keys take their defaults, so
        saves written by older versions still load.
        """
        known = {f.name for f in fields(cls)}
        kwargs = {k: v for k, v in data.items() if k in known}
        if "active_quest_type" in kwargs:
            kwargs["active_quest_type"] = QuestType(kwargs["active_quest_type"])
        if "active_event_type" in kwargs:
            kwargs["active_event_type"] = EventType(kwargs["active_event_type"])
        return cls(**kwargs)
