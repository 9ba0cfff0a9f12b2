from __future__ import annotations

from dataclasses import dataclass, field, replace

from clickerengine.cost_scaling import CostScaling
from clickerengine.state import GameState


@dataclass(frozen=True)
class UpgradeDef:
    """Static definition of a purchasable upgrade or piece of equipment."""

    id: str
    state_field: str
    cost_scaling: CostScaling = field(compare=False)
    display_name: str = ""
    description: str = ""
    category: str = ""

    def __post_init__(self) -> None:
        if not self.display_name:
            object.__setattr__(self, "display_name", self.id)

    def level(self, state: GameState) -> int:
        return getattr(state, self.state_field)

    def cost_for(self, state: GameState) -> int:
        """Price of the next level, evaluated from *state* every time."""
        return self.cost_scaling.compute(self.level(state))

    def apply(self, state: GameState, cost: int) -> GameState:
        """Deduct *cost* and raise the level by one."""
        return replace(
            state,
            points=state.points - cost,
            **{self.state_field: self.level(state) + 1},
        )


@dataclass(frozen=True)
class UpgradeStatus:
    """Read-only snapshot of an upgrade for query results."""

    id: str
    display_name: str
    category: str
    level: int
    current_cost: int
    affordable: bool


def _segmented(
    id: str,
    state_field: str,
    base: int,
    growth: int,
    threshold: int,
    display_name: str,
    category: str,
    description: str = "",
) -> UpgradeDef:
    return UpgradeDef(
        id=id,
        state_field=state_field,
        cost_scaling=CostScaling.segmented(base, growth, threshold),
        display_name=display_name,
        description=description,
        category=category,
    )


UPGRADES: tuple[UpgradeDef, ...] = (
    _segmented("tap_power", "tap_power", 10, 5, 25, "Tap Power", "tap",
               "Base points per tap"),
    _segmented("auto_clicker", "auto_clickers", 50, 25, 25, "Auto Clicker", "auto",
               "Taps automatically once per auto tick"),
    _segmented("auto_power", "auto_power", 20, 10, 25, "Auto Power", "auto",
               "Points per auto clicker per tick"),
    _segmented("points_multiplier", "points_multiplier", 200, 150, 20,
               "Points Multiplier", "boost", "Multiplies tap and auto income"),
    _segmented("auto_clicker_speed", "auto_clicker_speed", 300, 200, 20,
               "Auto Clicker Speed", "auto", "Shortens the auto tick period"),
    _segmented("combo_bonus", "combo_bonus", 250, 150, 20, "Combo Bonus", "tap",
               "Raises the combo multiplier for rapid taps"),
    _segmented("offline_multiplier", "offline_multiplier", 400, 250, 20,
               "Offline Multiplier", "offline", "Multiplies income earned while away"),
    _segmented("premium_upgrade_1", "premium_upgrade_1", 1000, 500, 15,
               "Premium Upgrade I", "premium"),
    _segmented("premium_upgrade_2", "premium_upgrade_2", 1000, 500, 15,
               "Premium Upgrade II", "premium"),
    _segmented("goat_pen", "goat_pen_level", 100, 50, 30, "Goat Pen", "goat",
               "+20% base tap income per level"),
    _segmented("goat_food", "goat_food_level", 150, 75, 30, "Goat Food", "goat",
               "+15% tap income per level"),
    _segmented("fridge", "fridge_level", 300, 150, 25, "Fridge", "room",
               "10 points per equipment tick"),
    _segmented("printer", "printer_level", 400, 200, 25, "Printer", "room",
               "15 points per equipment tick"),
    _segmented("scanner", "scanner_level", 500, 250, 25, "Scanner", "room",
               "20 points per equipment tick"),
    _segmented("printer_3d", "printer_3d_level", 800, 400, 20, "3D Printer", "room",
               "50 points per equipment tick"),
    _segmented("mining_power", "mining_power", 600, 300, 25, "Mining Power", "mining",
               "Crypto mined per second"),
)

_UPGRADES_BY_ID: dict[str, UpgradeDef] = {u.id: u for u in UPGRADES}


def get_upgrade(id: str) -> UpgradeDef | None:
    return _UPGRADES_BY_ID.get(id)


def upgrade_ids() -> list[str]:
    return [u.id for u in UPGRADES]
