"""Decision lifecycle engine.

DRAFT -> WAITING -> EXPIRED -> COMPLETED | CANCELLED | SNOOZED

EXPIRED is never persisted: a stored record stays WAITING until the user
picks an outcome, at which point the store is cleared. The only persisted
trace of expiry is ``notified_at``, which keeps the expiry signal one-shot
across restarts.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from second_thought.countdown import Countdown, remaining
from second_thought.errors import (
    InvalidStateError,
    NotificationDeliveryError,
    PersistenceError,
    ValidationError,
)
from second_thought.logging_utils import log_event
from second_thought.models import (
    MS_PER_MINUTE,
    TERMINAL_STATUSES,
    Decision,
    DecisionStatus,
    DecisionType,
    check_duration,
    check_text,
)
from second_thought.services.clock import Clock
from second_thought.services.decision_store import DecisionStore, MemoryDecisionStore
from second_thought.services.notifier import Notifier

logger = logging.getLogger(__name__)


class LifecyclePhase(str, Enum):
    IDLE = "IDLE"
    WAITING = "WAITING"
    EXPIRED = "EXPIRED"
    RESOLVED = "RESOLVED"


@dataclass(frozen=True, slots=True)
class TickResult:
    phase: LifecyclePhase
    countdown: Optional[Countdown] = None
    expired_now: bool = False


class DecisionEngine:
    def __init__(
        self,
        store: DecisionStore | MemoryDecisionStore,
        clock: Clock,
        notifier: Notifier,
    ):
        self.store = store
        self.clock = clock
        self.notifier = notifier
        self._lock = asyncio.Lock()
        self._active: Decision | None = None
        self._expired = False
        self._resolved: Decision | None = None
        self._deliveries: set[asyncio.Task] = set()

    @property
    def active(self) -> Decision | None:
        return self._active

    @property
    def last_resolved(self) -> Decision | None:
        return self._resolved

    @property
    def phase(self) -> LifecyclePhase:
        if self._active is not None:
            return LifecyclePhase.EXPIRED if self._expired else LifecyclePhase.WAITING
        if self._resolved is not None:
            return LifecyclePhase.RESOLVED
        return LifecyclePhase.IDLE

    def countdown(self, now: int | None = None) -> Countdown | None:
        if self._active is None:
            return None
        return remaining(self._now(now), self._active)

    def new_draft(self) -> Decision:
        return Decision(id=self.clock.new_id(), created_at=self.clock.now_ms())

    async def commit(
        self,
        draft: Decision,
        *,
        decision_type: DecisionType | None = None,
        text: str | None = None,
        duration_minutes: int | None = None,
        reflection: str | None = None,
    ) -> Decision:
        """Promote ``draft`` to WAITING and persist it.

        Explicit keyword arguments override the corresponding draft fields.
        The draft itself is left untouched. If saving fails the decision is
        still active for this session and :class:`PersistenceError` is raised.
        """

        async with self._lock:
            return await self._commit(
                draft,
                decision_type=decision_type,
                text=text,
                duration_minutes=duration_minutes,
                reflection=reflection,
            )

    async def tick(self, now: int | None = None) -> TickResult:
        async with self._lock:
            if self._active is None:
                return TickResult(phase=self.phase)
            current = self._now(now)
            countdown = remaining(current, self._active)
            expired_now = await self._check_expiry(current)
            if expired_now:
                await self._persist_quietly()
            return TickResult(phase=self.phase, countdown=countdown, expired_now=expired_now)

    async def resolve(self, status: DecisionStatus, note: str | None = None) -> Decision:
        async with self._lock:
            return await self._resolve(status, note)

    async def snooze_and_rewait(
        self, note: str | None = None, duration_minutes: int | None = None
    ) -> Decision:
        """Close the expired decision as SNOOZED and start a fresh wait for it."""

        async with self._lock:
            if duration_minutes is not None:
                duration_minutes = check_duration(duration_minutes)
            snoozed = await self._resolve(DecisionStatus.SNOOZED, note)
            draft = self.new_draft()
            return await self._commit(
                draft,
                decision_type=snoozed.type,
                text=snoozed.text,
                duration_minutes=(
                    duration_minutes if duration_minutes is not None else snoozed.duration_minutes
                ),
                reflection=snoozed.reflection_text,
            )

    async def emergency_override(self, now: int | None = None) -> Decision | None:
        """End the wait right now. Does nothing unless a decision is WAITING."""

        async with self._lock:
            if self._active is None or self._expired:
                logger.info("Emergency override ignored in phase %s", self.phase.value)
                return None
            current = self._now(now)
            decision = self._active
            end_time = min(decision.end_time, max(current, decision.start_time))
            self._active = decision.model_copy(update={"end_time": end_time})
            log_event("override", self._active, previous_end=decision.end_time)
            await self._check_expiry(current)
            await self._persist(self._active)
            return self._active

    async def restore(self, now: int | None = None) -> Decision | None:
        """Pick up a decision persisted by a previous run."""

        async with self._lock:
            if self._active is not None:
                return self._active
            try:
                record = await self.store.load()
            except PersistenceError:
                logger.exception("Failed to restore decision")
                raise
            if record is None:
                return None
            if record.status is not DecisionStatus.WAITING:
                logger.warning(
                    "Discarding stale %s record %s", record.status.value, record.id
                )
                await self.store.clear()
                return None

            self._active = record
            self._expired = False
            self._resolved = None
            log_event("restored", record)
            if await self._check_expiry(self._now(now)):
                await self._persist_quietly()
            return self._active

    async def discard(self) -> Decision | None:
        async with self._lock:
            decision = self._active
            self._active = None
            self._expired = False
            if decision is not None:
                log_event("discarded", decision)
            await self.store.clear()
            return decision

    async def drain_notifications(self) -> None:
        if self._deliveries:
            await asyncio.gather(*list(self._deliveries))

    async def _commit(
        self,
        draft: Decision,
        *,
        decision_type: DecisionType | None,
        text: str | None,
        duration_minutes: int | None,
        reflection: str | None,
    ) -> Decision:
        if draft.status is not DecisionStatus.DRAFT:
            raise InvalidStateError(f"Only drafts can be committed, got {draft.status.value}")
        if self._active is not None:
            raise InvalidStateError(f"Decision {self._active.id} is already active")

        text_value = check_text(text if text is not None else draft.text)
        duration = check_duration(
            duration_minutes if duration_minutes is not None else draft.duration_minutes
        )
        reflection_value = reflection if reflection is not None else draft.reflection_text

        start_time = self.clock.now_ms()
        decision = draft.model_copy(
            update={
                "type": decision_type or draft.type,
                "text": text_value,
                "duration_minutes": duration,
                "reflection_text": _clean(reflection_value),
                "start_time": start_time,
                "end_time": start_time + duration * MS_PER_MINUTE,
                "status": DecisionStatus.WAITING,
                "final_note": None,
                "notified_at": None,
            }
        )
        self._active = decision
        self._expired = False
        self._resolved = None
        log_event("committed", decision, minutes=duration)
        await self._persist(decision)
        return decision

    async def _resolve(self, status: DecisionStatus, note: str | None) -> Decision:
        if self._active is None:
            raise InvalidStateError("There is no active decision to resolve")
        # The clock may have passed end_time between ticks.
        if await self._check_expiry(self.clock.now_ms()):
            await self._persist_quietly()
        if not self._expired:
            raise InvalidStateError(f"Decision {self._active.id} is still waiting")
        try:
            status = DecisionStatus(status)
        except ValueError as exc:
            raise ValidationError(f"Unknown status {status!r}") from exc
        if status not in TERMINAL_STATUSES:
            raise ValidationError(f"Cannot resolve a decision as {status.value}")

        final = self._active.model_copy(update={"status": status, "final_note": _clean(note)})
        self._active = None
        self._expired = False
        self._resolved = final
        log_event("resolved", final, note=final.final_note or "-")
        try:
            await self.store.clear()
        except PersistenceError:
            logger.exception("Failed to clear resolved decision %s", final.id)
            raise
        return final

    async def _check_expiry(self, now: int) -> bool:
        """Enter EXPIRED if the deadline has passed. True only on entry."""

        if self._active is None or self._expired:
            return False
        if not remaining(now, self._active).expired:
            return False
        self._expired = True
        log_event("expired", self._active)
        if self._active.notified_at is not None:
            logger.info("Expiry of %s was already signalled", self._active.id)
            return True
        self._active = self._active.model_copy(update={"notified_at": now})
        self._dispatch(self._active)
        return True

    def _dispatch(self, decision: Decision) -> None:
        if not self.notifier.can_notify():
            logger.info("Notifier unavailable, decision %s expired silently", decision.id)
            return
        task = asyncio.create_task(self._deliver(decision))
        self._deliveries.add(task)
        task.add_done_callback(self._deliveries.discard)

    async def _deliver(self, decision: Decision) -> None:
        try:
            await self.notifier.notify_expired(decision)
        except NotificationDeliveryError as exc:
            logger.warning("Expiry notification for %s was not delivered: %s", decision.id, exc)
        except Exception:
            logger.exception("Notifier crashed for decision %s", decision.id)

    async def _persist(self, decision: Decision) -> None:
        try:
            await self.store.save(decision)
        except PersistenceError:
            logger.exception("Failed to persist decision %s", decision.id)
            raise

    async def _persist_quietly(self) -> None:
        if self._active is None:
            return
        try:
            await self.store.save(self._active)
        except PersistenceError:
            logger.exception("Failed to record expiry of %s", self._active.id)

    def _now(self, now: int | None) -> int:
        return self.clock.now_ms() if now is None else now


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


__all__ = ["DecisionEngine", "LifecyclePhase", "TickResult"]
