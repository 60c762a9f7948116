import anyio
import pytest
from aiogram.exceptions import TelegramNetworkError
from aiogram.fsm.context import FSMContext
from aiogram.fsm.storage.base import StorageKey
from aiogram.fsm.storage.memory import MemoryStorage
from aiogram.methods import SendMessage

from conftest import T0
from second_thought.bot.fsm.states import DraftStates, ResolveStates
from second_thought.bot.handlers import draft, outcome, start
from second_thought.bot.main import build_dispatcher
from second_thought.bot.notifier import TelegramNotifier
from second_thought.bot.ui.callbacks import DurationAction, OutcomeAction, TypeAction
from second_thought.bot.utils import render_appreciation, render_expired, render_status
from second_thought.engine import LifecyclePhase
from second_thought.errors import NotificationDeliveryError
from second_thought.models import Decision, DecisionStatus, DecisionType
from second_thought.runtime import WaitRuntime
from second_thought.services.ticker import CountdownTicker


class FakeMessage:
    def __init__(self, text: str | None = None):
        self.text = text
        self.replies: list[str] = []

    async def answer(self, text: str, reply_markup=None, **kwargs) -> None:
        self.replies.append(text)


class FakeCallback:
    def __init__(self, message: FakeMessage):
        self.message = message
        self.alerts: list[str] = []

    async def answer(self, text: str | None = None, show_alert: bool = False) -> None:
        if text:
            self.alerts.append(text)


class FakeBot:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.messages: list[tuple[int, str]] = []
        self.audio: list[int] = []

    async def send_message(self, chat_id, text, reply_markup=None):
        if self.fail:
            raise TelegramNetworkError(SendMessage(chat_id=chat_id, text=text), "timeout")
        self.messages.append((chat_id, text))

    async def send_audio(self, chat_id, audio, caption=None):
        self.audio.append(chat_id)


@pytest.fixture
def runtime(engine, notifier):
    return WaitRuntime(
        engine=engine,
        ticker=CountdownTicker(engine, interval=0.001),
        notifier=notifier,
    )


@pytest.fixture
def state():
    return FSMContext(
        storage=MemoryStorage(),
        key=StorageKey(bot_id=1, chat_id=7, user_id=7),
    )


def _waiting_decision(**overrides) -> Decision:
    fields = dict(
        id="d1",
        type=DecisionType.SHOPPING,
        text="<b>sneakers</b>",
        duration_minutes=5,
        start_time=T0,
        end_time=T0 + 300_000,
        status=DecisionStatus.WAITING,
        created_at=T0,
    )
    fields.update(overrides)
    return Decision(**fields)


@pytest.mark.anyio
async def test_draft_to_resolution_flow(runtime, state, clock, notifier, store):
    message = FakeMessage()
    await draft.cmd_new(message, state, runtime)
    assert await state.get_state() == DraftStates.choosing_type.state

    callback = FakeCallback(FakeMessage())
    await draft.cb_choose_type(callback, TypeAction(type="SHOPPING"), state)
    await draft.msg_enter_text(FakeMessage("sneakers"), state)
    await draft.cb_choose_duration(callback, DurationAction(minutes=0), state)
    assert await state.get_state() == DraftStates.entering_custom_duration.state

    bad = FakeMessage("two weeks")
    await draft.msg_custom_duration(bad, state)
    assert await state.get_state() == DraftStates.entering_custom_duration.state
    assert "Не получилось" in bad.replies[-1]

    good = FakeMessage("5м")
    await draft.msg_custom_duration(good, state)
    assert await state.get_state() == DraftStates.entering_reflection.state
    assert "5 мин" in good.replies[-1]

    reflection = FakeMessage("they'll sell out")
    await draft.msg_reflection(reflection, state, runtime)
    assert await state.get_state() is None
    assert "sneakers" in reflection.replies[-1]
    assert runtime.ticker.running

    active = runtime.engine.active
    assert active.type is DecisionType.SHOPPING
    assert active.end_time - active.start_time == 300_000
    assert active.reflection_text == "they'll sell out"

    clock.advance(minutes=5)
    with anyio.fail_after(2):
        await runtime.ticker.wait()
    await runtime.engine.drain_notifications()
    assert runtime.engine.phase is LifecyclePhase.EXPIRED
    assert len(notifier.delivered) == 1

    await outcome.cb_outcome(callback, OutcomeAction(outcome="cancelled"), state, runtime)
    assert await state.get_state() == ResolveStates.final_note.state

    note = FakeMessage("didn't need them")
    await outcome.msg_final_note(note, state, runtime)

    assert "didn't need them" in note.replies[-1]
    assert runtime.engine.last_resolved.status is DecisionStatus.CANCELLED
    assert await store.load() is None
    await runtime.stop()


@pytest.mark.anyio
async def test_outcome_rejected_while_waiting(runtime, state):
    await runtime.engine.commit(runtime.engine.new_draft(), text="x", duration_minutes=5)
    callback = FakeCallback(FakeMessage())

    await outcome.cb_outcome(callback, OutcomeAction(outcome="completed"), state, runtime)

    assert callback.alerts
    assert await state.get_state() is None


@pytest.mark.anyio
async def test_rewait_outcome_restarts_ticker(runtime, state, clock):
    await runtime.engine.commit(runtime.engine.new_draft(), text="x", duration_minutes=5)
    clock.advance(minutes=5)
    callback = FakeCallback(FakeMessage())
    await outcome.cb_outcome(callback, OutcomeAction(outcome="rewait"), state, runtime)

    await outcome.cb_skip_note(callback, state, runtime)

    assert runtime.engine.phase is LifecyclePhase.WAITING
    assert runtime.engine.last_resolved.status is DecisionStatus.SNOOZED
    assert runtime.ticker.running
    await runtime.stop()


@pytest.mark.anyio
async def test_start_command_reflects_phase(runtime, clock):
    idle = FakeMessage()
    await start.cmd_start(idle, runtime)
    assert "SecondThought" in idle.replies[-1]

    await runtime.engine.commit(runtime.engine.new_draft(), text="x", duration_minutes=5)
    clock.advance(minutes=5)
    await runtime.engine.tick()
    expired = FakeMessage()
    await start.cmd_start(expired, runtime)
    assert "Время вышло" in expired.replies[-1]


@pytest.mark.anyio
async def test_new_draft_refused_while_waiting(runtime, state):
    await runtime.engine.commit(runtime.engine.new_draft(), text="x", duration_minutes=5)
    message = FakeMessage()

    await draft.cmd_new(message, state, runtime)

    assert await state.get_state() is None
    assert "текущее решение" in message.replies[-1]


@pytest.mark.anyio
async def test_telegram_notifier_sends_alert_and_alarm(tmp_path):
    alarm = tmp_path / "alarm.mp3"
    alarm.write_bytes(b"ID3")
    bot = FakeBot()
    notifier = TelegramNotifier(bot, chat_id=7, alarm_path=alarm)

    await notifier.notify_expired(_waiting_decision())

    assert notifier.can_notify()
    assert bot.messages[0][0] == 7
    assert "&lt;b&gt;sneakers&lt;/b&gt;" in bot.messages[0][1]
    assert bot.audio == [7]


@pytest.mark.anyio
async def test_telegram_notifier_wraps_api_errors():
    notifier = TelegramNotifier(FakeBot(fail=True), chat_id=7)

    with pytest.raises(NotificationDeliveryError):
        await notifier.notify_expired(_waiting_decision())


def test_telegram_notifier_without_chat_cannot_notify():
    assert not TelegramNotifier(FakeBot(), chat_id=None).can_notify()


def test_render_status_escapes_user_text(clock):
    decision = _waiting_decision(reflection_text="миss it")
    countdown_text = render_status(decision, _countdown(decision), clock)

    assert "00:05:00" in countdown_text
    assert "&lt;b&gt;sneakers&lt;/b&gt;" in countdown_text
    assert "миss it" in countdown_text
    assert "<b>sneakers</b>" not in countdown_text


def test_render_expired_quotes_intent():
    assert "sneakers" in render_expired(_waiting_decision(text="sneakers"))


@pytest.mark.parametrize(
    "status",
    [DecisionStatus.COMPLETED, DecisionStatus.CANCELLED, DecisionStatus.SNOOZED],
)
def test_render_appreciation_mentions_note(status):
    decision = _waiting_decision(status=status, final_note="budget")
    assert "budget" in render_appreciation(decision)
    assert "причина" not in render_appreciation(decision.model_copy(update={"final_note": None}))


def test_build_dispatcher_registers_routers(runtime):
    dp = build_dispatcher(runtime, owner_chat_id=7)

    assert dp.workflow_data["runtime"] is runtime
    assert len(dp.sub_routers) == 5


def _countdown(decision):
    from second_thought.countdown import remaining

    return remaining(decision.start_time, decision)
