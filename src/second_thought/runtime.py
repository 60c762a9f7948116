"""Wiring of store, clock, engine and ticker for the bot and the CLI."""
from __future__ import annotations

import logging
from dataclasses import dataclass

from second_thought.config import Settings
from second_thought.engine import DecisionEngine, LifecyclePhase
from second_thought.errors import PersistenceError
from second_thought.services.clock import Clock
from second_thought.services.decision_store import DecisionStore
from second_thought.services.notifier import Notifier
from second_thought.services.ticker import CountdownTicker, TickListener
from second_thought.time_utils import get_timezone

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class WaitRuntime:
    engine: DecisionEngine
    ticker: CountdownTicker
    notifier: Notifier

    async def start(self) -> None:
        """Recover a persisted decision and resume ticking if it still waits."""

        try:
            await self.engine.restore()
        except PersistenceError:
            logger.error("Stored decision could not be restored; starting empty")
            return
        if self.engine.phase is LifecyclePhase.WAITING:
            await self.ticker.start()

    async def stop(self) -> None:
        await self.ticker.stop()
        await self.engine.drain_notifications()


def build_runtime(
    settings: Settings,
    notifier: Notifier,
    *,
    clock: Clock | None = None,
    on_tick: TickListener | None = None,
) -> WaitRuntime:
    store = DecisionStore(settings.data_dir.expanduser(), settings.store_key)
    clock = clock or Clock(get_timezone(settings.timezone))
    engine = DecisionEngine(store, clock, notifier)
    ticker = CountdownTicker(engine, settings.tick_interval_seconds, on_tick)
    return WaitRuntime(engine=engine, ticker=ticker, notifier=notifier)


__all__ = ["WaitRuntime", "build_runtime"]
