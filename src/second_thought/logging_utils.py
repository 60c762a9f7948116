"""Logging setup and lifecycle event lines."""
from __future__ import annotations

import logging
import sys
from typing import Any, Iterable

from second_thought.models import Decision

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
LOGGER_NAME = "second_thought.lifecycle"

LOGGER = logging.getLogger(LOGGER_NAME)


def setup_logging(level: str = "INFO", extra_loggers: Iterable[str] | None = None) -> None:
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT, stream=sys.stdout)
    for logger_name in extra_loggers or []:
        logging.getLogger(logger_name).setLevel(level.upper())


def log_event(event: str, decision: Decision, **extra: Any) -> None:
    """Emit one line describing a lifecycle transition."""

    details = " ".join(f"{key}={value}" for key, value in extra.items())
    LOGGER.info(
        "Decision %s | id=%s type=%s status=%s end=%s%s | text=%s",
        event,
        decision.id,
        decision.type.value,
        decision.status.value,
        decision.end_time,
        f" {details}" if details else "",
        decision.text,
    )


__all__ = ["setup_logging", "log_event", "LOGGER", "LOGGER_NAME"]
