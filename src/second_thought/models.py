"""Data models shared across the project."""
from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from second_thought.errors import ValidationError

MS_PER_MINUTE = 60_000
MIN_DURATION_MINUTES = 1
MAX_DURATION_MINUTES = 7 * 24 * 60


class DecisionType(str, Enum):
    SHOPPING = "SHOPPING"
    MESSAGE = "MESSAGE"
    WORK = "WORK"
    FEELING = "FEELING"
    OTHER = "OTHER"


class DecisionStatus(str, Enum):
    DRAFT = "DRAFT"
    WAITING = "WAITING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    SNOOZED = "SNOOZED"


TERMINAL_STATUSES = frozenset(
    {DecisionStatus.COMPLETED, DecisionStatus.CANCELLED, DecisionStatus.SNOOZED}
)


class Decision(BaseModel):
    """One impulse-to-outcome cycle.

    Timestamps are epoch milliseconds. The JSON form uses camelCase keys so a
    stored record reads ``{"id": ..., "startTime": ..., "endTime": ...}``.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    type: DecisionType = DecisionType.OTHER
    text: str = ""
    reflection_text: Optional[str] = None
    duration_minutes: int = Field(0, ge=0, le=MAX_DURATION_MINUTES)
    start_time: int = Field(0, ge=0)
    end_time: int = Field(0, ge=0)
    status: DecisionStatus = DecisionStatus.DRAFT
    created_at: int
    final_note: Optional[str] = None
    notified_at: Optional[int] = None

    @model_validator(mode="after")
    def _check_window(self) -> "Decision":
        if self.end_time < self.start_time:
            raise ValueError("endTime must not precede startTime")
        return self

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)

    @classmethod
    def from_json(cls, raw: str) -> "Decision":
        return cls.model_validate_json(raw)


def check_text(text: str | None) -> str:
    """Return the stripped impulse text or raise if nothing is left."""

    value = (text or "").strip()
    if not value:
        raise ValidationError("Decision text must not be empty")
    return value


def check_duration(minutes: int) -> int:
    if isinstance(minutes, bool) or not isinstance(minutes, int):
        raise ValidationError(f"Duration must be a whole number of minutes, got {minutes!r}")
    if not MIN_DURATION_MINUTES <= minutes <= MAX_DURATION_MINUTES:
        raise ValidationError(
            f"Duration must be between {MIN_DURATION_MINUTES} and "
            f"{MAX_DURATION_MINUTES} minutes, got {minutes}"
        )
    return minutes


__all__ = [
    "MS_PER_MINUTE",
    "MIN_DURATION_MINUTES",
    "MAX_DURATION_MINUTES",
    "DecisionType",
    "DecisionStatus",
    "TERMINAL_STATUSES",
    "Decision",
    "check_text",
    "check_duration",
]
