# clickerengine: clicker game state accrual and transaction engine

from clickerengine._types import Clock, ManualClock, compare, now_ms
from clickerengine.requirement import Requirement, Req
from clickerengine.cost_scaling import CostScaling
from clickerengine.state import GameState, QuestType, EventType
from clickerengine.upgrade import UpgradeDef, UpgradeStatus, UPGRADES, get_upgrade, upgrade_ids
from clickerengine.pipeline import YieldPipeline, TapYield, IncomeSource
from clickerengine.quest import QuestDef, QUESTS
from clickerengine.prestige import PrestigeResult, PRESTIGE_THRESHOLD
from clickerengine.offline import offline_gain, reconcile
from clickerengine.definition import EngineConfig
from clickerengine.store import (
    StateStore,
    MemoryStateStore,
    JsonFileStateStore,
    StoreError,
    AchievementRecord,
)
from clickerengine.runtime import GameRuntime
from clickerengine.achievement import AchievementDef, AchievementEvaluator, ACHIEVEMENTS
from clickerengine.drivers import TickDriver, build_drivers, simulate_ticks
from clickerengine.session import GameSession
from clickerengine.log import configure_logging
from clickerengine.formatting import format_number, format_state_report

__all__ = [
    # Types
    "Clock",
    "ManualClock",
    "compare",
    "now_ms",
    # Requirements
    "Requirement",
    "Req",
    # Cost
    "CostScaling",
    # Data model
    "GameState",
    "QuestType",
    "EventType",
    "UpgradeDef",
    "UpgradeStatus",
    "UPGRADES",
    "get_upgrade",
    "upgrade_ids",
    "QuestDef",
    "QUESTS",
    "PrestigeResult",
    "PRESTIGE_THRESHOLD",
    # Pipeline
    "YieldPipeline",
    "TapYield",
    "IncomeSource",
    # Offline
    "offline_gain",
    "reconcile",
    # Configuration
    "EngineConfig",
    # Store
    "StateStore",
    "MemoryStateStore",
    "JsonFileStateStore",
    "StoreError",
    "AchievementRecord",
    # Runtime
    "GameRuntime",
    # Achievements
    "AchievementDef",
    "AchievementEvaluator",
    "ACHIEVEMENTS",
    # Drivers and lifecycle
    "TickDriver",
    "build_drivers",
    "simulate_ticks",
    "GameSession",
    # Logging
    "configure_logging",
    # Formatting
    "format_number",
    "format_state_report",
]
