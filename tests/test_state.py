"""Tests for state module."""
import pytest

from clickerengine.state import EventType, GameState, QuestType


def test_defaults():
    state = GameState()
    assert state.points == 0
    assert state.tap_power == 1
    assert state.auto_power == 1
    assert state.points_multiplier == 1
    assert state.boost_multiplier == 1
    assert state.active_quest_type is QuestType.NONE
    assert state.active_event_type is EventType.NONE


@pytest.mark.parametrize(
    "field_name", ["points", "crypto_amount", "prestige_points", "total_taps"]
)
def test_negative_counters_rejected(field_name):
    with pytest.raises(ValueError, match=field_name):
        GameState(**{field_name: -1})


def test_active_boost_window():
    state = GameState(boost_multiplier=3, boost_end_time=10_000)
    assert state.active_boost(9_999) == 3
    assert state.active_boost(10_000) == 1


def test_event_multiplier_only_for_double_day():
    double = GameState(active_event_type=EventType.DOUBLE_DAY, active_event_end_time=5_000)
    free = GameState(active_event_type=EventType.FREE_UPGRADES, active_event_end_time=5_000)
    assert double.event_multiplier(1_000) == 2
    assert double.event_multiplier(5_000) == 1
    assert free.event_multiplier(1_000) == 1
    assert free.event_active(EventType.FREE_UPGRADES, 1_000)


def test_clear_expired_returns_self_when_nothing_expired():
    state = GameState(boost_multiplier=2, boost_end_time=10_000)
    assert state.clear_expired(5_000) is state


def test_clear_expired_resets_boost_and_event():
    state = GameState(
        boost_multiplier=2,
        boost_end_time=1_000,
        active_event_type=EventType.DOUBLE_DAY,
        active_event_end_time=2_000,
    )
    cleared = state.clear_expired(2_000)
    assert cleared.boost_multiplier == 1
    assert cleared.boost_end_time == 0
    assert cleared.active_event_type is EventType.NONE
    assert cleared.active_event_end_time == 0


def test_default_state_clear_expired_is_noop():
    state = GameState()
    assert state.clear_expired(123_456) is state


def test_dict_round_trip_keeps_enums():
    state = GameState(
        points=42,
        active_quest_type=QuestType.POINTS,
        active_event_type=EventType.DOUBLE_DAY,
    )
    data = state.to_dict()
    assert data["active_quest_type"] == "points"
    assert data["active_event_type"] == "double_day"
    assert GameState.from_dict(data) == state


def test_from_dict_ignores_unknown_and_fills_missing():
    state = GameState.from_dict({"points": 5, "legacy_field": 1})
    assert state.points == 5
    assert state.tap_power == 1
