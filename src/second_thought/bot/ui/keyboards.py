from __future__ import annotations

from aiogram.types import InlineKeyboardMarkup
from aiogram.utils.keyboard import InlineKeyboardBuilder

from .callbacks import (
    DurationAction,
    MenuAction,
    NoteSkipAction,
    OutcomeAction,
    ReflectionSkipAction,
    TypeAction,
)

CUSTOM_DURATION = 0

TYPE_LABELS = {
    "SHOPPING": "🛒 Купить что-то",
    "MESSAGE": "💬 Отправить сообщение",
    "WORK": "💼 Рабочий вопрос",
    "FEELING": "❤️ Чувства",
    "OTHER": "✨ Другое",
}

DURATION_PRESETS = (
    (5, "5 минут — попробовать"),
    (60, "1 час — выдохнуть"),
    (8 * 60, "До утра — выспаться"),
    (24 * 60, "24 часа — всё обдумать"),
)


def start_keyboard() -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    builder.button(text="Начать", callback_data=MenuAction(action="start"))
    builder.button(text="Как это работает", callback_data=MenuAction(action="how"))
    builder.adjust(1)
    return builder.as_markup()


def type_keyboard() -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    for value, label in TYPE_LABELS.items():
        builder.button(text=label, callback_data=TypeAction(type=value))
    builder.adjust(2, 2, 1)
    return builder.as_markup()


def duration_keyboard() -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    for minutes, label in DURATION_PRESETS:
        builder.button(text=label, callback_data=DurationAction(minutes=minutes))
    builder.button(
        text="Своё время",
        callback_data=DurationAction(minutes=CUSTOM_DURATION),
    )
    builder.adjust(1)
    return builder.as_markup()


def reflection_keyboard() -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    builder.button(text="Пропустить и запустить таймер", callback_data=ReflectionSkipAction())
    return builder.as_markup()


def waiting_keyboard() -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    builder.button(text="Сколько осталось?", callback_data=MenuAction(action="status"))
    builder.button(text="🚨 Экстренно: решить сейчас", callback_data=MenuAction(action="emergency"))
    builder.adjust(1)
    return builder.as_markup()


def outcome_keyboard() -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    builder.button(text="✅ Делаю, я уверен(а)", callback_data=OutcomeAction(outcome="completed"))
    builder.button(text="❌ Передумал(а)", callback_data=OutcomeAction(outcome="cancelled"))
    builder.button(text="🤔 Отложу", callback_data=OutcomeAction(outcome="snoozed"))
    builder.button(text="⏳ Подождать ещё столько же", callback_data=OutcomeAction(outcome="rewait"))
    builder.adjust(1)
    return builder.as_markup()


def note_keyboard() -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    builder.button(text="Без заметки", callback_data=NoteSkipAction())
    return builder.as_markup()


def home_keyboard() -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    builder.button(text="Новое решение", callback_data=MenuAction(action="start"))
    return builder.as_markup()
