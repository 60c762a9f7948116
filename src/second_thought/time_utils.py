"""Helpers for dealing with timezone-aware datetimes."""
from __future__ import annotations

from datetime import datetime
from zoneinfo import ZoneInfo


def get_timezone(tz_name: str) -> ZoneInfo:
    """Return ZoneInfo instance with graceful fallback to UTC."""

    try:
        return ZoneInfo(tz_name)
    except Exception:
        return ZoneInfo("UTC")


def format_local(value: datetime) -> str:
    """Render a moment the way the bot shows deadlines: ``31.12 23:30``."""

    return value.strftime("%d.%m %H:%M")


__all__ = ["get_timezone", "format_local"]
