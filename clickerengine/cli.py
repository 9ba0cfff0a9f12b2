from __future__ import annotations

import argparse
import asyncio
import random
import sys
from pathlib import Path

from clickerengine._types import ManualClock, now_ms
from clickerengine.achievement import ACHIEVEMENTS, AchievementEvaluator
from clickerengine.definition import EngineConfig
from clickerengine.drivers import simulate_ticks
from clickerengine.formatting import format_number, format_state_report, format_upgrade_table
from clickerengine.log import configure_logging
from clickerengine.runtime import GameRuntime
from clickerengine.session import GameSession
from clickerengine.state import EventType
from clickerengine.store import JsonFileStateStore, StoreError
from clickerengine.upgrade import upgrade_ids


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="clickerengine",
        description="Clicker engine CLI: play a saved game from the terminal",
    )
    parser.add_argument(
        "--save",
        type=Path,
        default=None,
        help="Save file path (default: clicker_save.json)",
    )
    parser.add_argument("--log-level", default="WARNING", help="Log level (default: WARNING)")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for quests")
    sub = parser.add_subparsers(dest="command")

    sub.add_parser("status", help="Show the current game state")
    sub.add_parser("upgrades", help="List upgrades with their next cost")
    sub.add_parser("achievements", help="List unlocked achievements")

    tap = sub.add_parser("tap", help="Tap one or more times")
    tap.add_argument("--count", type=int, default=1, help="Number of taps")

    buy = sub.add_parser("buy", help="Buy one level of an upgrade")
    buy.add_argument("upgrade", choices=upgrade_ids())

    sub.add_parser("sell-crypto", help="Sell all mined crypto for points")
    sub.add_parser("prestige", help="Reset progression for prestige points")
    sub.add_parser("quest", help="Start a new quest if none is active")
    sub.add_parser("resume", help="Collect offline income (app foregrounded)")
    sub.add_parser("pause", help="Stamp last-seen time (app backgrounded)")

    boost = sub.add_parser("boost", help="Activate a temporary income boost")
    boost.add_argument("multiplier", type=int)
    boost.add_argument("minutes", type=int)

    event = sub.add_parser("event", help="Start a global event")
    event.add_argument(
        "event_type",
        choices=[e.value for e in EventType if e is not EventType.NONE],
    )
    event.add_argument("minutes", type=int)

    run = sub.add_parser("run", help="Let the income loops run for a while")
    run.add_argument("--seconds", type=float, default=60.0, help="Duration (default: 60)")
    run.add_argument(
        "--realtime",
        action="store_true",
        help="Run the live tick drivers instead of simulating the schedule",
    )

    return parser


def build_config(args: argparse.Namespace) -> EngineConfig:
    config = EngineConfig(log_level=args.log_level, seed=args.seed)
    if args.save is not None:
        config.save_path = args.save
    return config


async def _status(runtime: GameRuntime) -> None:
    state = await runtime.get_state()
    unlocked = await runtime.store.achievement_ids()
    print(format_state_report(state, now_ms(), len(unlocked), len(ACHIEVEMENTS)))


async def _run(args: argparse.Namespace, config: EngineConfig, store: JsonFileStateStore) -> None:
    duration_ms = int(args.seconds * 1000)
    rng = random.Random(config.seed)

    if args.realtime:
        async with GameSession(store, config=config, rng=rng):
            await asyncio.sleep(duration_ms / 1000)
    else:
        clock = ManualClock(now_ms())
        runtime = GameRuntime(store, config=config, clock=clock, rng=rng)
        evaluator = AchievementEvaluator(store, clock=clock)
        counts = await simulate_ticks(runtime, clock, duration_ms)
        await evaluator.evaluate(await runtime.get_state())
        for source, count in counts.items():
            print(f"{source.value}: {count} tick(s)")

    runtime = GameRuntime(store, config=config)
    await _status(runtime)


async def _dispatch(args: argparse.Namespace, config: EngineConfig) -> int:
    store = JsonFileStateStore.open(config.save_path)

    if args.command == "run":
        await _run(args, config, store)
        return 0

    runtime = GameRuntime(store, config=config)
    evaluator = AchievementEvaluator(store)
    code = 0

    if args.command == "status":
        await _status(runtime)
    elif args.command == "upgrades":
        print(format_upgrade_table(await runtime.get_upgrade_statuses()))
    elif args.command == "achievements":
        records = await store.achievements()
        for a in ACHIEVEMENTS:
            marker = "[x]" if a.id in records else "[ ]"
            print(f"{marker} {a.id:<24} {a.description}")
        print(f"\n{len(records)}/{len(ACHIEVEMENTS)} unlocked")
    elif args.command == "tap":
        if args.count < 1:
            print("error: --count must be at least 1", file=sys.stderr)
            return 1
        total = 0
        for _ in range(args.count):
            total += (await runtime.tap()).points
        print(f"Tapped {args.count} time(s) for {format_number(total)} point(s)")
    elif args.command == "buy":
        if await runtime.purchase(args.upgrade):
            state = await runtime.get_state()
            print(f"Bought {args.upgrade}; {format_number(state.points)} point(s) left")
        else:
            cost = await runtime.compute_current_cost(args.upgrade)
            print(f"Cannot afford {args.upgrade} (cost {cost})")
            code = 1
    elif args.command == "sell-crypto":
        gained = await runtime.sell_crypto()
        print(f"Sold crypto for {format_number(gained)} point(s)" if gained else "No crypto to sell")
    elif args.command == "prestige":
        result = await runtime.prestige()
        if result.success:
            print(
                f"Prestige {result.prestige_level}: earned "
                f"{result.reward_amount} prestige point(s)"
            )
        else:
            print(f"Cannot prestige: {result.reason}")
            code = 1
    elif args.command == "quest":
        if await runtime.generate_quest():
            state = await runtime.get_state()
            print(
                f"New quest: {state.active_quest_type.value} "
                f"target {state.active_quest_target} reward {state.active_quest_reward}"
            )
        else:
            print("A quest is already active")
    elif args.command == "resume":
        gained = await runtime.apply_offline_income()
        print(f"Offline income: {format_number(gained)} point(s)")
    elif args.command == "pause":
        await runtime.mark_seen()
        print("Last-seen time recorded")
    elif args.command == "boost":
        await runtime.activate_boost(args.multiplier, args.minutes)
        print(f"Boost x{args.multiplier} active for {args.minutes} minute(s)")
    elif args.command == "event":
        await runtime.start_event(EventType(args.event_type), args.minutes)
        print(f"Event {args.event_type} active for {args.minutes} minute(s)")

    await evaluator.evaluate(await runtime.get_state())
    return code


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    config = build_config(args)
    errors = config.validate()
    if errors:
        for e in errors:
            print(f"error: {e}", file=sys.stderr)
        sys.exit(1)

    configure_logging(level=config.log_level)

    try:
        code = asyncio.run(_dispatch(args, config))
    except (StoreError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        sys.exit(1)
    if code:
        sys.exit(code)
