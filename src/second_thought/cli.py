"""Terminal front end sharing the bot's decision store."""
from __future__ import annotations

import argparse
import asyncio
import sys
from typing import Sequence

from second_thought.config import get_settings
from second_thought.countdown import format_countdown, format_duration, progress_bar
from second_thought.engine import LifecyclePhase, TickResult
from second_thought.errors import InvalidStateError, PersistenceError, ValidationError
from second_thought.logging_utils import setup_logging
from second_thought.models import DecisionStatus, DecisionType
from second_thought.runtime import WaitRuntime, build_runtime
from second_thought.services.notifier import LoggingNotifier


def _print_state(runtime: WaitRuntime) -> None:
    engine = runtime.engine
    decision = engine.active
    if decision is None:
        print("No active decision")
        return
    countdown = engine.countdown()
    print(f"[{engine.phase.value}] {decision.type.value}: {decision.text}")
    print(
        f"{format_countdown(countdown)} left of {format_duration(decision.duration_minutes)} "
        f"{progress_bar(countdown.fraction_elapsed)}"
    )


async def _print_tick(result: TickResult) -> None:
    if result.countdown is None:
        return
    sys.stdout.write(
        f"\r{format_countdown(result.countdown)} {progress_bar(result.countdown.fraction_elapsed)}"
    )
    sys.stdout.flush()
    if result.phase is not LifecyclePhase.WAITING:
        sys.stdout.write("\n")


async def run_cli(args: argparse.Namespace, runtime: WaitRuntime | None = None) -> int:
    runtime = runtime or build_runtime(get_settings(), LoggingNotifier(), on_tick=_print_tick)
    engine = runtime.engine

    if args.command == "reset":
        try:
            await engine.restore()
        except PersistenceError as exc:
            print(f"Dropping unreadable record: {exc}")
        await engine.discard()
        print("Store cleared")
        return 0

    await engine.restore()
    try:
        if args.command == "start":
            draft = engine.new_draft()
            await engine.commit(
                draft,
                decision_type=DecisionType(args.type),
                text=args.text,
                duration_minutes=args.minutes,
                reflection=args.reflection,
            )
            _print_state(runtime)
        elif args.command == "status":
            _print_state(runtime)
        elif args.command == "emergency":
            if await engine.emergency_override() is None:
                print(f"Nothing to override in phase {engine.phase.value}")
            else:
                _print_state(runtime)
        elif args.command == "resolve":
            decision = await engine.resolve(DecisionStatus(args.status.upper()), args.note)
            print(f"Decision {decision.id} closed as {decision.status.value}")
        elif args.command == "watch":
            if engine.phase is LifecyclePhase.WAITING:
                await runtime.ticker.start()
                await runtime.ticker.wait()
            _print_state(runtime)
    except (ValidationError, InvalidStateError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    finally:
        await runtime.stop()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Take a pause before an impulsive decision")
    sub = parser.add_subparsers(dest="command", required=True)

    start = sub.add_parser("start", help="Begin waiting on a new decision")
    start.add_argument("text", help="What you feel like doing right now")
    start.add_argument("--minutes", type=int, required=True, help="How long to wait")
    start.add_argument(
        "--type",
        choices=[item.value for item in DecisionType],
        default=DecisionType.OTHER.value,
    )
    start.add_argument("--reflection", help="What scares you about waiting")

    sub.add_parser("status", help="Show the active decision")
    sub.add_parser("emergency", help="End the wait immediately")
    sub.add_parser("watch", help="Show a live countdown until the wait ends")
    sub.add_parser("reset", help="Forget the active decision without an outcome")

    resolve = sub.add_parser("resolve", help="Record the outcome of an expired wait")
    resolve.add_argument("status", choices=["completed", "cancelled", "snoozed"])
    resolve.add_argument("--note", help="Why you decided this way")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(get_settings().log_level)
    try:
        return asyncio.run(run_cli(args))
    except PersistenceError as exc:
        print(f"Storage error: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
