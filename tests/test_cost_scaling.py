"""Tests for cost_scaling module."""
import pytest

from clickerengine.cost_scaling import CostScaling
from clickerengine.state import GameState
from clickerengine.upgrade import UPGRADES, get_upgrade, upgrade_ids


def test_fixed():
    cs = CostScaling.fixed(100)
    assert cs.compute(0) == 100
    assert cs.compute(10) == 100


def test_linear():
    cs = CostScaling.linear(10, 5)
    assert cs.compute(0) == 10
    assert cs.compute(1) == 15
    assert cs.compute(4) == 30


def test_segmented_linear_below_threshold():
    cs = CostScaling.segmented(10, 5, threshold=25)
    assert cs.compute(1) == 15
    assert cs.compute(24) == 130


def test_segmented_compounds_from_threshold():
    cs = CostScaling.segmented(10, 5, threshold=25)
    # 10 + 5 * 25 = 135 at the threshold, then +15% per level, floored
    assert cs.compute(25) == 135
    assert cs.compute(26) == 155
    assert cs.compute(27) == 178


def test_segmented_non_decreasing():
    cs = CostScaling.segmented(50, 25, threshold=25)
    costs = [cs.compute(level) for level in range(60)]
    assert costs == sorted(costs)


def test_polynomial():
    cs = CostScaling.polynomial(10, 2)
    assert cs.compute(0) == 10
    assert cs.compute(1) == 40
    assert cs.compute(2) == 90


def test_custom():
    cs = CostScaling.custom(lambda level: 7 * (level + 1))
    assert cs.compute(0) == 7
    assert cs.compute(2) == 21


def test_negative_level_rejected():
    with pytest.raises(ValueError):
        CostScaling.fixed(10).compute(-1)


def test_non_positive_cost_rejected():
    with pytest.raises(ValueError):
        CostScaling.fixed(0).compute(0)
    with pytest.raises(ValueError):
        CostScaling.linear(10, -10).compute(1)


def test_catalog_ids_unique():
    ids = upgrade_ids()
    assert len(ids) == len(UPGRADES) == 16
    assert len(set(ids)) == len(ids)


def test_catalog_costs_positive_at_default_state():
    state = GameState()
    for udef in UPGRADES:
        assert udef.cost_for(state) > 0


def test_tap_power_cost_uses_current_level():
    udef = get_upgrade("tap_power")
    assert udef.cost_for(GameState(tap_power=1)) == 15
    assert udef.cost_for(GameState(tap_power=2)) == 20


def test_apply_deducts_and_levels_up():
    udef = get_upgrade("fridge")
    state = GameState(points=1000)
    cost = udef.cost_for(state)
    after = udef.apply(state, cost)
    assert after.points == 1000 - cost
    assert after.fridge_level == 1


def test_unknown_upgrade():
    assert get_upgrade("warp_drive") is None
