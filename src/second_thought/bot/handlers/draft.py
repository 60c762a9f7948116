from __future__ import annotations

import logging

from aiogram import F, Router
from aiogram.filters import Command
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery, Message

from ...countdown import duration_feedback, format_duration, parse_duration
from ...errors import InvalidStateError, PersistenceError, ValidationError
from ...models import Decision, DecisionType, check_duration
from ...runtime import WaitRuntime
from ..fsm.states import DraftStates
from ..ui.callbacks import DurationAction, MenuAction, ReflectionSkipAction, TypeAction
from ..ui.keyboards import (
    CUSTOM_DURATION,
    duration_keyboard,
    reflection_keyboard,
    type_keyboard,
    waiting_keyboard,
)
from ..utils import render_status

logger = logging.getLogger(__name__)

router = Router()


@router.message(Command("new"))
async def cmd_new(message: Message, state: FSMContext, runtime: WaitRuntime) -> None:
    await _start_draft(message, state, runtime)


@router.callback_query(MenuAction.filter(F.action == "start"))
async def cb_start(callback: CallbackQuery, state: FSMContext, runtime: WaitRuntime) -> None:
    await callback.answer()
    await _start_draft(callback.message, state, runtime)


async def _start_draft(message: Message, state: FSMContext, runtime: WaitRuntime) -> None:
    engine = runtime.engine
    if engine.active is not None:
        await message.answer(
            "Сначала доведи до конца текущее решение.",
            reply_markup=waiting_keyboard(),
        )
        return
    await state.clear()
    await _save_draft(state, engine.new_draft())
    await state.set_state(DraftStates.choosing_type)
    await message.answer("О чём это?", reply_markup=type_keyboard())


@router.callback_query(DraftStates.choosing_type, TypeAction.filter())
async def cb_choose_type(
    callback: CallbackQuery, callback_data: TypeAction, state: FSMContext
) -> None:
    draft = await _get_draft(state)
    draft.type = DecisionType(callback_data.type)
    await _save_draft(state, draft)
    await state.set_state(DraftStates.entering_text)
    await callback.answer()
    await callback.message.answer(
        "Расскажи коротко, что хочется сделать.\n"
        "Например: «Оформить заказ на кроссовки в 23:30».\n"
        "Это останется между нами."
    )


@router.message(DraftStates.entering_text, F.text)
async def msg_enter_text(message: Message, state: FSMContext) -> None:
    text = (message.text or "").strip()
    if not text:
        await message.answer("Напиши хотя бы пару слов.")
        return
    draft = await _get_draft(state)
    draft.text = text
    await _save_draft(state, draft)
    await state.set_state(DraftStates.choosing_duration)
    await message.answer("На сколько отложим?", reply_markup=duration_keyboard())


@router.callback_query(DraftStates.choosing_duration, DurationAction.filter())
async def cb_choose_duration(
    callback: CallbackQuery, callback_data: DurationAction, state: FSMContext
) -> None:
    await callback.answer()
    if callback_data.minutes == CUSTOM_DURATION:
        await state.set_state(DraftStates.entering_custom_duration)
        await callback.message.answer(
            "Введи время: например 45, 2ч, 1д 3ч. Минимум 1 минута, максимум 7 дней."
        )
        return
    await _set_duration(callback.message, state, callback_data.minutes)


@router.message(DraftStates.entering_custom_duration, F.text)
async def msg_custom_duration(message: Message, state: FSMContext) -> None:
    try:
        minutes = check_duration(parse_duration(message.text or ""))
    except ValidationError:
        await message.answer(
            "Не получилось разобрать время. Допустимо от 1 минуты до 7 дней, "
            "например: 30, 90м, 2ч, 1д 6ч."
        )
        return
    await _set_duration(message, state, minutes)


async def _set_duration(message: Message, state: FSMContext, minutes: int) -> None:
    draft = await _get_draft(state)
    draft.duration_minutes = minutes
    await _save_draft(state, draft)
    await state.set_state(DraftStates.entering_reflection)
    await message.answer(
        f"Пауза: <b>{format_duration(minutes)}</b>. {duration_feedback(minutes)}\n\n"
        "Многие импульсивные решения случаются, когда мы устали или на эмоциях.\n"
        "Если отложить, чего ты боишься больше всего?",
        reply_markup=reflection_keyboard(),
    )


@router.message(DraftStates.entering_reflection, F.text)
async def msg_reflection(message: Message, state: FSMContext, runtime: WaitRuntime) -> None:
    await _commit(message, state, runtime, reflection=message.text)


@router.callback_query(DraftStates.entering_reflection, ReflectionSkipAction.filter())
async def cb_skip_reflection(
    callback: CallbackQuery, state: FSMContext, runtime: WaitRuntime
) -> None:
    await callback.answer()
    await _commit(callback.message, state, runtime, reflection=None)


async def _commit(
    message: Message,
    state: FSMContext,
    runtime: WaitRuntime,
    *,
    reflection: str | None,
) -> None:
    engine = runtime.engine
    draft = await _get_draft(state)
    try:
        decision = await engine.commit(draft, reflection=reflection)
    except ValidationError as exc:
        logger.info("Draft %s rejected: %s", draft.id, exc)
        await state.set_state(DraftStates.entering_text)
        await message.answer("Чего-то не хватает. Опиши ещё раз, что хочется сделать.")
        return
    except InvalidStateError as exc:
        logger.warning("Commit refused: %s", exc)
        await state.clear()
        await message.answer("Уже идёт другое ожидание.", reply_markup=waiting_keyboard())
        return
    except PersistenceError:
        decision = engine.active
        await message.answer(
            "Не удалось сохранить решение: таймер работает, но не переживёт перезапуск."
        )

    await state.clear()
    await runtime.ticker.start()
    await message.answer(
        render_status(decision, engine.countdown(), engine.clock),
        reply_markup=waiting_keyboard(),
    )


async def _get_draft(state: FSMContext) -> Decision:
    data = await state.get_data()
    return Decision.model_validate(data["draft"])


async def _save_draft(state: FSMContext, draft: Decision) -> None:
    await state.update_data(draft=draft.model_dump(mode="json"))
