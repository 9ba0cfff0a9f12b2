from __future__ import annotations

from dataclasses import dataclass, replace

from clickerengine.state import GameState, QuestType


@dataclass(frozen=True)
class QuestDef:
    type: QuestType
    target: int
    reward: int


QUESTS: dict[QuestType, QuestDef] = {
    QuestType.TAPS: QuestDef(QuestType.TAPS, target=100, reward=1000),
    QuestType.POINTS: QuestDef(QuestType.POINTS, target=10_000, reward=5000),
    QuestType.UPGRADES: QuestDef(QuestType.UPGRADES, target=5, reward=2000),
}


def assign_quest(state: GameState, quest_type: QuestType, now: int) -> GameState:
    qdef = QUESTS[quest_type]
    return replace(
        state,
        active_quest_type=quest_type,
        active_quest_progress=0,
        active_quest_target=qdef.target,
        active_quest_reward=qdef.reward,
        last_quest_reset_time=max(state.last_quest_reset_time, now),
    )


def advance_quest(state: GameState, quest_type: QuestType, delta: int) -> GameState:
    """Add *delta* progress to the active quest if it is of *quest_type*.

    Reaching the target clears the quest and pays its reward.
    """
    if (
        state.active_quest_type is not quest_type
        or quest_type is QuestType.NONE
        or state.active_quest_target <= 0
        or delta <= 0
    ):
        return state

    progress = state.active_quest_progress + delta
    if progress < state.active_quest_target:
        return replace(state, active_quest_progress=progress)

    return replace(
        state,
        points=state.points + state.active_quest_reward,
        active_quest_type=QuestType.NONE,
        active_quest_progress=0,
        active_quest_target=0,
        active_quest_reward=0,
    )
