from __future__ import annotations

import logging

from aiogram import F, Router
from aiogram.filters import Command
from aiogram.types import CallbackQuery, Message

from ...engine import LifecyclePhase
from ...errors import PersistenceError
from ...runtime import WaitRuntime
from ..ui.callbacks import MenuAction
from ..ui.keyboards import home_keyboard, outcome_keyboard, waiting_keyboard
from ..utils import render_expired, render_status

logger = logging.getLogger(__name__)

router = Router()


@router.message(Command("status"))
async def cmd_status(message: Message, runtime: WaitRuntime) -> None:
    await _send_status(message, runtime)


@router.callback_query(MenuAction.filter(F.action == "status"))
async def cb_status(callback: CallbackQuery, runtime: WaitRuntime) -> None:
    await callback.answer()
    await _send_status(callback.message, runtime)


async def _send_status(message: Message, runtime: WaitRuntime) -> None:
    engine = runtime.engine
    result = await engine.tick()
    if result.phase is LifecyclePhase.WAITING:
        await message.answer(
            render_status(engine.active, result.countdown, engine.clock),
            reply_markup=waiting_keyboard(),
        )
    elif result.phase is LifecyclePhase.EXPIRED:
        if result.expired_now and runtime.notifier.can_notify():
            return
        await message.answer(render_expired(engine.active), reply_markup=outcome_keyboard())
    else:
        await message.answer("Сейчас ничего не ждёт решения.", reply_markup=home_keyboard())


@router.message(Command("emergency"))
async def cmd_emergency(message: Message, runtime: WaitRuntime) -> None:
    await _emergency(message, runtime)


@router.callback_query(MenuAction.filter(F.action == "emergency"))
async def cb_emergency(callback: CallbackQuery, runtime: WaitRuntime) -> None:
    await callback.answer("Таймер остановлен")
    await _emergency(callback.message, runtime)


async def _emergency(message: Message, runtime: WaitRuntime) -> None:
    engine = runtime.engine
    try:
        decision = await engine.emergency_override()
    except PersistenceError:
        decision = engine.active
        await message.answer("Не удалось сохранить изменение, но таймер остановлен.")
    if decision is None:
        if engine.phase is LifecyclePhase.EXPIRED:
            await message.answer(render_expired(engine.active), reply_markup=outcome_keyboard())
        else:
            await message.answer("Активного таймера нет.", reply_markup=home_keyboard())
        return
    await runtime.ticker.stop()
    if not runtime.notifier.can_notify():
        await message.answer(render_expired(decision), reply_markup=outcome_keyboard())
