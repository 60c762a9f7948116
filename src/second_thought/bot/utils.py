"""Message rendering shared by handlers and the notifier."""
from __future__ import annotations

import html

from second_thought.countdown import Countdown, format_countdown, format_duration, progress_bar
from second_thought.models import Decision, DecisionStatus
from second_thought.services.clock import Clock
from second_thought.time_utils import format_local

from .ui.keyboards import TYPE_LABELS

WELCOME_TEXT = (
    "Привет! Я SecondThought.\n"
    "Когда хочется сделать что-то импульсивно, я помогу взять паузу "
    "и вернуться к решению на свежую голову."
)

HOW_IT_WORKS_TEXT = (
    "<b>1. Поймай импульс.</b> Быстрое мышление часто толкает к тому, о чём потом жалеешь. "
    "Сначала притормозим.\n\n"
    "<b>2. Остынь.</b> Дождись конца таймера: сиюминутные эмоции успевают утихнуть.\n\n"
    "<b>3. Реши осознанно.</b> Когда время выйдет, выбери: сделать, отказаться или отложить ещё.\n\n"
    "<i>Цель не в запрете, а в том, чтобы решение было твоим.</i>"
)

NOTE_PROMPTS = {
    "completed": (
        "Точно?",
        "Ты выдержал(а) паузу. Напиши, почему всё-таки решаешь сделать это, "
        "чтобы потом вспомнить.",
    ),
    "cancelled": (
        "Отличное решение!",
        "Сдержаться непросто. Что заставило передумать?",
    ),
    "snoozed": (
        "Всё ещё сомневаешься?",
        "Ничего страшного. Напиши, что не даёт покоя.",
    ),
    "rewait": (
        "Ещё один круг",
        "Запишу, что пока держит в сомнениях, и запущу таймер заново.",
    ),
}


def escape(text: str) -> str:
    return html.escape(text, quote=False)


def render_status(decision: Decision, countdown: Countdown, clock: Clock) -> str:
    deadline = format_local(clock.to_datetime(decision.end_time))
    lines = [
        f"⏳ <b>{format_countdown(countdown)}</b>",
        f"{progress_bar(countdown.fraction_elapsed)} {round(countdown.fraction_elapsed * 100)}%",
        "",
        f"{TYPE_LABELS[decision.type.value]}: «{escape(decision.text)}»",
        f"Пауза: {format_duration(decision.duration_minutes)}, до {deadline}",
    ]
    if decision.reflection_text:
        lines.append(f"Твой страх: «{escape(decision.reflection_text)}»")
    return "\n".join(lines)


def render_expired(decision: Decision) -> str:
    return (
        "⏰ <b>Время вышло!</b>\n\n"
        f"Твоё изначальное намерение: «{escape(decision.text)}»\n\n"
        "Ну что, какое решение теперь?"
    )


def render_note_prompt(outcome: str) -> str:
    title, description = NOTE_PROMPTS[outcome]
    return f"<b>{title}</b>\n{description}"


def render_appreciation(decision: Decision) -> str:
    reason = f"\nТвоя причина: «{escape(decision.final_note)}»" if decision.final_note else ""
    if decision.status is DecisionStatus.COMPLETED:
        return (
            "<b>Удачи!</b>\n"
            "Ты решил(а) продолжить, и это решение принято на холодную голову."
            f"{reason}"
        )
    if decision.status is DecisionStatus.CANCELLED:
        return (
            "<b>Самоконтроль прокачан!</b>\n"
            "Ты сдержал(а) импульс. Кошелёк и нервы скажут спасибо."
            f"{reason}"
        )
    return (
        "<b>Не спеши.</b>\n"
        "Сомневаться нормально: лучше отложить, чем потом жалеть. "
        "Возвращайся, когда будешь готов(а)."
        f"{reason}"
    )
