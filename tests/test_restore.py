import pytest

from conftest import T0, RecordingNotifier
from second_thought.engine import DecisionEngine, LifecyclePhase
from second_thought.errors import PersistenceError
from second_thought.models import Decision, DecisionStatus
from second_thought.services.clock import FrozenClock
from second_thought.services.decision_store import DecisionStore


async def _seed(store, clock, minutes=30) -> Decision:
    engine = DecisionEngine(store, clock, RecordingNotifier())
    draft = engine.new_draft()
    return await engine.commit(draft, text="quit my job", duration_minutes=minutes)


@pytest.mark.anyio
async def test_restore_resumes_waiting_decision(tmp_path):
    clock = FrozenClock(T0)
    store = DecisionStore(tmp_path)
    seeded = await _seed(store, clock)

    clock.advance(minutes=10)
    notifier = RecordingNotifier()
    engine = DecisionEngine(store, clock, notifier)
    restored = await engine.restore()

    assert restored == seeded
    assert engine.phase is LifecyclePhase.WAITING
    assert engine.countdown().minutes == 20
    assert notifier.delivered == []


@pytest.mark.anyio
async def test_restore_after_deadline_expires_and_notifies_once(tmp_path):
    clock = FrozenClock(T0)
    store = DecisionStore(tmp_path)
    await _seed(store, clock)
    clock.advance(minutes=45)

    notifier = RecordingNotifier()
    engine = DecisionEngine(store, clock, notifier)
    await engine.restore()
    await engine.tick()
    await engine.drain_notifications()

    assert engine.phase is LifecyclePhase.EXPIRED
    assert len(notifier.delivered) == 1
    assert (await store.load()).notified_at == T0 + 45 * 60_000

    # a second restart must not alert again
    again = RecordingNotifier()
    second_engine = DecisionEngine(store, clock, again)
    await second_engine.restore()
    await second_engine.tick()
    await second_engine.drain_notifications()

    assert second_engine.phase is LifecyclePhase.EXPIRED
    assert again.delivered == []
    final = await second_engine.resolve(DecisionStatus.COMPLETED, "slept on it")
    assert final.final_note == "slept on it"
    assert await store.load() is None


@pytest.mark.anyio
async def test_restore_with_empty_store(engine):
    assert await engine.restore() is None
    assert engine.phase is LifecyclePhase.IDLE


@pytest.mark.anyio
async def test_restore_drops_stale_terminal_record(engine, store):
    await store.save(
        Decision(id="old", text="x", status=DecisionStatus.COMPLETED, created_at=T0)
    )

    assert await engine.restore() is None
    assert await store.load() is None


@pytest.mark.anyio
async def test_restore_is_idempotent_while_active(engine, store, clock, notifier):
    draft = engine.new_draft()
    decision = await engine.commit(draft, text="x", duration_minutes=1)
    await store.clear()

    assert await engine.restore() == decision


@pytest.mark.anyio
async def test_restore_surfaces_corrupt_store(tmp_path, clock, notifier):
    store = DecisionStore(tmp_path)
    store.path.write_text("garbage", encoding="utf-8")
    engine = DecisionEngine(store, clock, notifier)

    with pytest.raises(PersistenceError):
        await engine.restore()
    assert engine.phase is LifecyclePhase.IDLE
