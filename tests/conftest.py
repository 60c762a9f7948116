from __future__ import annotations

from datetime import datetime, timezone

import pytest

from second_thought.engine import DecisionEngine
from second_thought.errors import NotificationDeliveryError, PersistenceError
from second_thought.models import Decision
from second_thought.services.clock import FrozenClock, utc_ms
from second_thought.services.decision_store import MemoryDecisionStore

T0 = utc_ms(datetime(2025, 3, 14, 21, 30, tzinfo=timezone.utc))


class RecordingNotifier:
    def __init__(self, *, capable: bool = True, fail: bool = False):
        self.capable = capable
        self.fail = fail
        self.delivered: list[Decision] = []

    def can_notify(self) -> bool:
        return self.capable

    async def notify_expired(self, decision: Decision) -> None:
        if self.fail:
            raise NotificationDeliveryError("speaker unplugged")
        self.delivered.append(decision)


class BrokenStore(MemoryDecisionStore):
    def __init__(self) -> None:
        super().__init__()
        self.broken = False

    async def save(self, decision: Decision) -> None:
        if self.broken:
            raise PersistenceError("disk full")
        await super().save(decision)

    async def clear(self) -> None:
        if self.broken:
            raise PersistenceError("disk full")
        await super().clear()


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(T0)


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def store() -> BrokenStore:
    return BrokenStore()


@pytest.fixture
def engine(store, clock, notifier) -> DecisionEngine:
    return DecisionEngine(store, clock, notifier)


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"
