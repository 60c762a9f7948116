from __future__ import annotations

from typing import Literal

from aiogram.filters.callback_data import CallbackData


class MenuAction(CallbackData, prefix="menu"):
    action: Literal["start", "how", "status", "emergency"]


class TypeAction(CallbackData, prefix="dtype"):
    type: Literal["SHOPPING", "MESSAGE", "WORK", "FEELING", "OTHER"]


class DurationAction(CallbackData, prefix="dur"):
    minutes: int


class ReflectionSkipAction(CallbackData, prefix="reflskip"):
    pass


class OutcomeAction(CallbackData, prefix="outcome"):
    outcome: Literal["completed", "cancelled", "snoozed", "rewait"]


class NoteSkipAction(CallbackData, prefix="noteskip"):
    pass
