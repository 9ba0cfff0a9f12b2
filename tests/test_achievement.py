"""Tests for achievement module."""
import asyncio
from dataclasses import replace

from clickerengine.achievement import ACHIEVEMENTS, AchievementDef, AchievementEvaluator
from clickerengine.requirement import Req
from clickerengine.state import GameState
from clickerengine.store import MemoryStateStore, StoreError


def run(coro):
    return asyncio.run(coro)


def test_catalog():
    ids = [a.id for a in ACHIEVEMENTS]
    assert len(ids) == 66
    assert len(set(ids)) == len(ids)
    assert "first_tap" in ids
    assert "collector" in ids


def test_nothing_pending_at_start():
    evaluator = AchievementEvaluator(MemoryStateStore())
    assert evaluator.pending(GameState(), frozenset()) == []


def test_pending_skips_unlocked():
    evaluator = AchievementEvaluator(MemoryStateStore())
    state = GameState(total_taps=150)
    assert evaluator.pending(state, frozenset()) == ["first_tap", "taps_100"]
    assert evaluator.pending(state, {"first_tap"}) == ["taps_100"]


def test_composite_triggers():
    evaluator = AchievementEvaluator(MemoryStateStore())
    state = GameState(goat_pen_level=10, goat_food_level=10)
    assert "goat_master" in evaluator.pending(state, frozenset())
    assert "goat_master" not in evaluator.pending(
        replace(state, goat_food_level=9), frozenset()
    )


def test_evaluate_inserts_once():
    store = MemoryStateStore()
    evaluator = AchievementEvaluator(store, clock=lambda: 777)
    state = GameState(total_taps=1, has_sold_crypto=True)

    async def scenario():
        first = await evaluator.evaluate(state)
        second = await evaluator.evaluate(state)
        return first, second

    first, second = run(scenario())
    assert first == ["first_tap", "crypto_sold"]
    assert second == []
    records = run(store.achievements())
    assert records["first_tap"].unlocked_at_ms == 777


def test_unlocks_are_never_revoked():
    store = MemoryStateStore()
    evaluator = AchievementEvaluator(store)

    async def scenario():
        await evaluator.evaluate(GameState(points=2_000))
        await evaluator.evaluate(GameState(points=0))

    run(scenario())
    assert "points_1k" in run(store.achievement_ids())


def test_custom_catalog():
    store = MemoryStateStore()
    catalog = [AchievementDef("rich", "Hold 10 points", Req.at_least("points", 10))]
    evaluator = AchievementEvaluator(store, achievements=catalog)
    assert run(evaluator.evaluate(GameState(points=10), now_ms=5)) == ["rich"]


def test_concurrent_evaluations_insert_once():
    store = MemoryStateStore()
    evaluator = AchievementEvaluator(store)
    state = GameState(total_taps=1)

    async def scenario():
        return await asyncio.gather(*(evaluator.evaluate(state) for _ in range(10)))

    results = run(scenario())
    assert sum(len(r) for r in results) == 1


def test_watch_follows_commits():
    store = MemoryStateStore(GameState())
    evaluator = AchievementEvaluator(store)

    async def scenario():
        task = asyncio.create_task(evaluator.watch())
        await asyncio.sleep(0)
        await store.run_exclusive(lambda s: replace(s, total_taps=100))
        for _ in range(20):
            await asyncio.sleep(0)
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        return await store.achievement_ids()

    assert run(scenario()) == frozenset({"first_tap", "taps_100"})


class _FlakyStore(MemoryStateStore):
    def __init__(self, state=None):
        super().__init__(state)
        self.failures = 1

    async def _persist_achievements(self, achievements):
        if self.failures:
            self.failures -= 1
            raise StoreError("disk full")


def test_watch_retries_on_next_commit():
    store = _FlakyStore(GameState())
    evaluator = AchievementEvaluator(store)

    async def scenario():
        task = asyncio.create_task(evaluator.watch())
        await asyncio.sleep(0)
        await store.run_exclusive(lambda s: replace(s, total_taps=1))
        for _ in range(20):
            await asyncio.sleep(0)
        assert await store.achievement_ids() == frozenset()
        await store.run_exclusive(lambda s: replace(s, total_taps=2))
        for _ in range(20):
            await asyncio.sleep(0)
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        return await store.achievement_ids()

    assert run(scenario()) == frozenset({"first_tap"})
