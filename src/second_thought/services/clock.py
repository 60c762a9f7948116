from __future__ import annotations

import time
import uuid
from datetime import datetime, timezone
from zoneinfo import ZoneInfo


class Clock:
    def __init__(self, tz: ZoneInfo):
        self.tz = tz

    def now_ms(self) -> int:
        return time.time_ns() // 1_000_000

    def to_datetime(self, timestamp_ms: int) -> datetime:
        return datetime.fromtimestamp(timestamp_ms / 1000, tz=self.tz)

    def new_id(self) -> str:
        return str(uuid.uuid4())


class FrozenClock(Clock):
    """Clock that only moves when told to."""

    def __init__(self, start_ms: int, tz: ZoneInfo | None = None):
        super().__init__(tz or ZoneInfo("UTC"))
        self._now_ms = start_ms

    def now_ms(self) -> int:
        return self._now_ms

    def advance(self, *, ms: int = 0, seconds: int = 0, minutes: int = 0) -> int:
        self._now_ms += ms + seconds * 1000 + minutes * 60_000
        return self._now_ms


def utc_ms(value: datetime) -> int:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return int(value.timestamp() * 1000)
