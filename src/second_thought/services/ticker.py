from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

from ..engine import DecisionEngine, LifecyclePhase, TickResult

logger = logging.getLogger(__name__)

TickListener = Callable[[TickResult], Awaitable[None]]


class CountdownTicker:
    """Drives ``engine.tick`` once per interval while a decision is waiting."""

    def __init__(
        self,
        engine: DecisionEngine,
        interval: float = 1.0,
        on_tick: TickListener | None = None,
    ):
        self.engine = engine
        self.interval = interval
        self.on_tick = on_tick
        self._task: asyncio.Task | None = None
        self._running = False

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        if self.running:
            return
        self._running = True
        self._task = asyncio.create_task(self._loop())

    async def stop(self) -> None:
        self._running = False
        task, self._task = self._task, None
        if task is None or task is asyncio.current_task():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:  # pragma: no cover - shutdown path
            pass

    async def wait(self) -> None:
        """Block until the ticker stops on its own."""

        if self._task is not None:
            await asyncio.shield(self._task)

    async def _loop(self) -> None:
        while self._running:
            result = await self.engine.tick()
            if self.on_tick is not None:
                try:
                    await self.on_tick(result)
                except Exception:
                    logger.exception("Tick listener failed")
            if result.phase is not LifecyclePhase.WAITING:
                break
            await asyncio.sleep(self.interval)
        self._running = False
