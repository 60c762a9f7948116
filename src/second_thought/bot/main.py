"""Bot bootstrap module."""
from __future__ import annotations

import asyncio
import logging
import socket

from aiogram import Bot, Dispatcher, F
from aiogram.client.bot import DefaultBotProperties
from aiogram.client.session.aiohttp import AiohttpSession
from aiogram.enums import ParseMode
from aiogram.fsm.storage.memory import MemoryStorage

from second_thought.config import Settings, get_settings
from second_thought.logging_utils import setup_logging
from second_thought.runtime import WaitRuntime, build_runtime

from .handlers import common, draft, outcome, start, waiting
from .notifier import TelegramNotifier

logger = logging.getLogger(__name__)


def build_dispatcher(runtime: WaitRuntime, owner_chat_id: int | None = None) -> Dispatcher:
    dp = Dispatcher(storage=MemoryStorage(), runtime=runtime)
    if owner_chat_id is not None:
        dp.message.filter(F.chat.id == owner_chat_id)
        dp.callback_query.filter(F.message.chat.id == owner_chat_id)
    # Command routers go first so state-bound text handlers never swallow commands.
    for router in (
        start.router,
        common.router,
        waiting.router,
        draft.router,
        outcome.router,
    ):
        dp.include_router(router)
    return dp


class IPv4AiohttpSession(AiohttpSession):
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._connector_init["family"] = socket.AF_INET
        self._should_reset_connector = True


def build_bot(settings: Settings) -> Bot:
    if settings.telegram_bot_token is None:
        raise RuntimeError("TELEGRAM_BOT_TOKEN is not set in environment")
    session = IPv4AiohttpSession(timeout=30) if settings.force_ipv4 else None
    return Bot(
        token=settings.telegram_bot_token.get_secret_value(),
        default=DefaultBotProperties(parse_mode=ParseMode.HTML),
        session=session,
    )


async def run_bot() -> None:
    settings = get_settings()
    setup_logging(settings.log_level, extra_loggers=["aiogram"])
    if settings.owner_chat_id is None:
        logger.warning("OWNER_CHAT_ID is not set: expiry alerts are disabled")

    bot = build_bot(settings)
    notifier = TelegramNotifier(bot, settings.owner_chat_id, settings.alarm_sound_path)
    runtime = build_runtime(settings, notifier)
    dp = build_dispatcher(runtime, settings.owner_chat_id)

    @dp.startup.register
    async def _on_startup() -> None:
        await runtime.start()

    @dp.shutdown.register
    async def _on_shutdown() -> None:
        await runtime.stop()

    await dp.start_polling(bot)


def main() -> None:
    asyncio.run(run_bot())


if __name__ == "__main__":
    main()
