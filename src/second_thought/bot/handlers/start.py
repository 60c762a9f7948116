from __future__ import annotations

from aiogram import F, Router
from aiogram.filters import CommandStart
from aiogram.types import CallbackQuery, Message

from ...engine import LifecyclePhase
from ...runtime import WaitRuntime
from ..ui.callbacks import MenuAction
from ..ui.keyboards import home_keyboard, outcome_keyboard, start_keyboard, waiting_keyboard
from ..utils import HOW_IT_WORKS_TEXT, WELCOME_TEXT, render_expired, render_status

router = Router()


@router.message(CommandStart())
async def cmd_start(message: Message, runtime: WaitRuntime) -> None:
    engine = runtime.engine
    if engine.phase is LifecyclePhase.WAITING:
        await message.answer(
            render_status(engine.active, engine.countdown(), engine.clock),
            reply_markup=waiting_keyboard(),
        )
        return
    if engine.phase is LifecyclePhase.EXPIRED:
        await message.answer(render_expired(engine.active), reply_markup=outcome_keyboard())
        return
    await message.answer(WELCOME_TEXT, reply_markup=start_keyboard())


@router.callback_query(MenuAction.filter(F.action == "how"))
async def cb_how_it_works(callback: CallbackQuery) -> None:
    await callback.answer()
    await callback.message.answer(HOW_IT_WORKS_TEXT, reply_markup=home_keyboard())
