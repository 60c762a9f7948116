from __future__ import annotations

import logging
from typing import Protocol

from ..models import Decision

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    def can_notify(self) -> bool: ...

    async def notify_expired(self, decision: Decision) -> None: ...


class LoggingNotifier:
    """Announces expiry through the log; used by the CLI."""

    def can_notify(self) -> bool:
        return True

    async def notify_expired(self, decision: Decision) -> None:
        logger.warning("Time is up for decision %s: %s", decision.id, decision.text)

