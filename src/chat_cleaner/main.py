"""
Точка входа: сборка приложения, регистрация роутеров, запуск long polling.

Также:
 - создаёт таблицы БД при старте;
 - заполняет реестр статусов по справочнику чатов;
 - поднимает HTTP API (uvicorn в том же event loop);
 - запускает фоновые циклы: очередь рассылок и проверку «мёртвых» чатов.
"""

import asyncio
import logging
from dataclasses import dataclass

import uvicorn
from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode
from sqlalchemy.ext.asyncio import AsyncEngine

from chat_cleaner.api import create_app
from chat_cleaner.config import Settings, settings
from chat_cleaner.handlers import chat_events
from chat_cleaner.logging_config import setup_logging
from chat_cleaner.services.cleaner import MembershipCleaner
from chat_cleaner.services.directory import ChatDirectory
from chat_cleaner.services.dispatcher import ScheduledDispatcher
from chat_cleaner.services.jobs import build_scheduler
from chat_cleaner.services.orchestrator import BulkClearOrchestrator
from chat_cleaner.services.reaper import ChatReaper
from chat_cleaner.services.status import StatusRegistry
from chat_cleaner.services.telegram import TelegramPlatform
from chat_cleaner.utils.db import create_engine, create_session_factory, create_tables


@dataclass
class Services:
    """Все долгоживущие объекты процесса."""
    registry: StatusRegistry
    platform: TelegramPlatform
    directory: ChatDirectory
    cleaner: MembershipCleaner
    orchestrator: BulkClearOrchestrator
    dispatcher: ScheduledDispatcher
    reaper: ChatReaper


def build_services(bot: Bot, session_maker, cfg: Settings) -> Services:
    registry = StatusRegistry()
    platform = TelegramPlatform(bot, parse_mode=cfg.MESSAGE_PARSE_MODE or None)
    directory = ChatDirectory(session_maker, registry, platform)
    cleaner = MembershipCleaner(directory, registry, platform)
    return Services(
        registry=registry,
        platform=platform,
        directory=directory,
        cleaner=cleaner,
        orchestrator=BulkClearOrchestrator(registry, cleaner),
        dispatcher=ScheduledDispatcher(
            session_maker,
            platform,
            media_group_limit=cfg.MEDIA_GROUP_LIMIT,
            drop_after_attempt=cfg.QUEUE_DROP_AFTER_ATTEMPT,
        ),
        reaper=ChatReaper(directory, platform),
    )


async def on_startup(dp: Dispatcher, engine: AsyncEngine, services: Services) -> None:
    """Хуки старта: таблицы, реестр статусов, DI сервисов в хендлеры."""
    await create_tables(engine)
    loaded = await services.directory.load_statuses()
    logging.getLogger("chat-cleaner").info("Loaded %s chats into status registry", loaded)

    dp.workflow_data.update({
        "directory": services.directory,
        "delete_service_messages": settings.DELETE_SERVICE_MESSAGES,
    })


async def main():
    """Основной цикл запуска бота."""
    logger = setup_logging(settings.LOG_LEVEL)

    bot = Bot(
        token=settings.TELEGRAM_BOT_TOKEN,
        default=DefaultBotProperties(parse_mode=ParseMode.HTML),
    )
    dp = Dispatcher()
    dp.include_router(chat_events.router)

    engine = create_engine(settings.DATABASE_URL)
    session_maker = create_session_factory(engine)
    services = build_services(bot, session_maker, settings)
    await on_startup(dp, engine, services)

    scheduler = build_scheduler(
        services.dispatcher,
        services.reaper,
        queue_seconds=settings.QUEUE_POLL_SECONDS,
        reaper_seconds=settings.REAPER_POLL_SECONDS,
    )
    scheduler.start()

    api = create_app(
        services.directory,
        services.orchestrator,
        services.dispatcher,
        cors_origins=settings.CORS_ORIGINS,
    )
    server = uvicorn.Server(
        uvicorn.Config(api, host=settings.API_HOST, port=settings.API_PORT, log_config=None)
    )

    logger.info("Bot is up. Starting polling and API on %s:%s...", settings.API_HOST, settings.API_PORT)
    allowed_updates = ["message", "edited_message", "my_chat_member"]

    try:
        await asyncio.gather(
            dp.start_polling(bot, allowed_updates=allowed_updates, handle_signals=False),
            server.serve(),
        )
    finally:
        scheduler.shutdown(wait=False)
        server.should_exit = True
        await services.orchestrator.wait_all()
        await bot.session.close()
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
