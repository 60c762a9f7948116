from __future__ import annotations

from aiogram import Router
from aiogram.filters import Command
from aiogram.fsm.context import FSMContext
from aiogram.types import Message

from ..ui.keyboards import home_keyboard

router = Router()

HELP_TEXT = (
    "/new — новое решение\n"
    "/status — сколько осталось ждать\n"
    "/emergency — закончить ожидание прямо сейчас\n"
    "/cancel — бросить заполнение черновика"
)


@router.message(Command("help"))
async def cmd_help(message: Message) -> None:
    await message.answer(HELP_TEXT)


@router.message(Command("cancel"))
async def cmd_cancel(message: Message, state: FSMContext) -> None:
    current_state = await state.get_state()
    if current_state is None:
        await message.answer("Сейчас ничего не заполняется.")
        return

    await state.clear()
    await message.answer("Черновик отменён.", reply_markup=home_keyboard())
