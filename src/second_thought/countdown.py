"""Pure countdown derivation and duration helpers."""
from __future__ import annotations

import re
from dataclasses import dataclass

from second_thought.errors import ValidationError
from second_thought.models import Decision

_UNIT_MINUTES = {
    "d": 24 * 60,
    "д": 24 * 60,
    "h": 60,
    "ч": 60,
    "m": 1,
    "м": 1,
}
_TOKEN_RE = re.compile(r"(\d+)\s*([dhmдчм])", re.IGNORECASE)
_DURATION_RE = re.compile(r"(?:\s*\d+\s*[dhmдчм]\s*)+", re.IGNORECASE)


@dataclass(frozen=True, slots=True)
class Countdown:
    hours: int
    minutes: int
    seconds: int
    fraction_elapsed: float
    remaining_ms: int

    @property
    def expired(self) -> bool:
        return self.remaining_ms == 0


def remaining(now: int, decision: Decision) -> Countdown:
    """Derive the countdown for ``decision`` at ``now`` (epoch ms).

    Always computed from ``end_time - now``; nothing is accumulated between
    calls, so suspend/resume and clock jumps are reflected on the next call.
    """

    total = decision.end_time - decision.start_time
    if total <= 0:
        # A collapsed window is over whatever the clock says.
        left = 0
        fraction = 1.0
    else:
        left = max(decision.end_time - now, 0)
        fraction = min(max((now - decision.start_time) / total, 0.0), 1.0)

    hours, rest = divmod(left // 1000, 3600)
    minutes, seconds = divmod(rest, 60)
    return Countdown(
        hours=hours,
        minutes=minutes,
        seconds=seconds,
        fraction_elapsed=fraction,
        remaining_ms=left,
    )


def format_countdown(countdown: Countdown) -> str:
    return f"{countdown.hours:02d}:{countdown.minutes:02d}:{countdown.seconds:02d}"


def progress_bar(fraction: float, width: int = 10) -> str:
    filled = round(min(max(fraction, 0.0), 1.0) * width)
    return "▓" * filled + "░" * (width - filled)


def parse_duration(raw: str) -> int:
    """Parse ``"45"``, ``"2h"``, ``"1h30m"``, ``"3д"`` into minutes."""

    text = (raw or "").strip().lower()
    if text.isdigit():
        return int(text)
    if not text or not _DURATION_RE.fullmatch(text):
        raise ValidationError(f"Cannot parse duration '{raw}'")
    return sum(int(amount) * _UNIT_MINUTES[unit] for amount, unit in _TOKEN_RE.findall(text))


def format_duration(minutes: int) -> str:
    days, rest = divmod(minutes, 24 * 60)
    hours, mins = divmod(rest, 60)
    parts = []
    if days:
        parts.append(f"{days} дн")
    if hours:
        parts.append(f"{hours} ч")
    if mins or not parts:
        parts.append(f"{mins} мин")
    return " ".join(parts)


def duration_feedback(minutes: int) -> str:
    if minutes <= 30:
        return "Достаточно, чтобы выровнять дыхание."
    if minutes <= 120:
        return "Хватит, чтобы остыть от сиюминутных эмоций."
    if minutes <= 24 * 60:
        return "Идеально для покупки или важного сообщения."
    return "Подходит для больших жизненных решений."


__all__ = [
    "Countdown",
    "remaining",
    "format_countdown",
    "progress_bar",
    "parse_duration",
    "format_duration",
    "duration_feedback",
]
