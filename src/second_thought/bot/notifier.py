from __future__ import annotations

import logging
from pathlib import Path

from aiogram import Bot
from aiogram.exceptions import TelegramAPIError
from aiogram.types import FSInputFile

from ..errors import NotificationDeliveryError
from ..models import Decision
from .ui.keyboards import outcome_keyboard
from .utils import render_expired

logger = logging.getLogger(__name__)


class TelegramNotifier:
    """Sends the "time is up" message and, when configured, the alarm sound."""

    def __init__(self, bot: Bot, chat_id: int | None, alarm_path: Path | None = None):
        self.bot = bot
        self.chat_id = chat_id
        self.alarm_path = alarm_path

    def can_notify(self) -> bool:
        return self.chat_id is not None

    async def notify_expired(self, decision: Decision) -> None:
        if self.chat_id is None:
            raise NotificationDeliveryError("Owner chat is not configured")
        try:
            await self.bot.send_message(
                self.chat_id,
                render_expired(decision),
                reply_markup=outcome_keyboard(),
            )
            if self.alarm_path is not None and self.alarm_path.exists():
                await self.bot.send_audio(
                    self.chat_id,
                    FSInputFile(self.alarm_path),
                    caption="⏰",
                )
        except TelegramAPIError as exc:
            raise NotificationDeliveryError(str(exc)) from exc
        logger.info("Expiry notification sent for %s", decision.id)
