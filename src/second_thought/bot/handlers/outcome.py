from __future__ import annotations

import logging

from aiogram import F, Router
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery, Message

from ...engine import LifecyclePhase
from ...errors import InvalidStateError, PersistenceError
from ...models import DecisionStatus
from ...runtime import WaitRuntime
from ..fsm.states import ResolveStates
from ..ui.callbacks import NoteSkipAction, OutcomeAction
from ..ui.keyboards import home_keyboard, note_keyboard, waiting_keyboard
from ..utils import render_appreciation, render_note_prompt, render_status

logger = logging.getLogger(__name__)

router = Router()

STATUS_BY_OUTCOME = {
    "completed": DecisionStatus.COMPLETED,
    "cancelled": DecisionStatus.CANCELLED,
    "snoozed": DecisionStatus.SNOOZED,
}


@router.callback_query(OutcomeAction.filter())
async def cb_outcome(
    callback: CallbackQuery,
    callback_data: OutcomeAction,
    state: FSMContext,
    runtime: WaitRuntime,
) -> None:
    result = await runtime.engine.tick()
    if result.phase is not LifecyclePhase.EXPIRED:
        await callback.answer("Сейчас нечего решать.", show_alert=True)
        return
    await state.clear()
    await state.set_state(ResolveStates.final_note)
    await state.update_data(outcome=callback_data.outcome)
    await callback.answer()
    await callback.message.answer(
        render_note_prompt(callback_data.outcome), reply_markup=note_keyboard()
    )


@router.message(ResolveStates.final_note, F.text)
async def msg_final_note(message: Message, state: FSMContext, runtime: WaitRuntime) -> None:
    await _finish(message, state, runtime, note=message.text)


@router.callback_query(ResolveStates.final_note, NoteSkipAction.filter())
async def cb_skip_note(callback: CallbackQuery, state: FSMContext, runtime: WaitRuntime) -> None:
    await callback.answer()
    await _finish(callback.message, state, runtime, note=None)


async def _finish(
    message: Message, state: FSMContext, runtime: WaitRuntime, *, note: str | None
) -> None:
    data = await state.get_data()
    outcome = data.get("outcome")
    await state.clear()
    engine = runtime.engine
    try:
        if outcome == "rewait":
            decision = await engine.snooze_and_rewait(note)
        else:
            decision = await engine.resolve(STATUS_BY_OUTCOME[outcome], note)
    except InvalidStateError as exc:
        logger.warning("Outcome %s rejected: %s", outcome, exc)
        await message.answer("Нет решения, которое ждёт итога.", reply_markup=home_keyboard())
        return
    except PersistenceError:
        await message.answer("Не удалось обновить сохранённое решение.")
        decision = engine.active if outcome == "rewait" else engine.last_resolved
        if decision is None:
            return

    if decision.status is DecisionStatus.WAITING:
        await runtime.ticker.start()
        await message.answer(
            "Запускаю ещё один круг ожидания.\n\n"
            + render_status(decision, engine.countdown(), engine.clock),
            reply_markup=waiting_keyboard(),
        )
        return
    await message.answer(render_appreciation(decision), reply_markup=home_keyboard())
