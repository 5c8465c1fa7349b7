"""
Фоновые циклы: очередь рассылок и «жнец» чатов на APScheduler.

Каждый проход ловит и логирует свои ошибки, поэтому сбой одного прохода
не останавливает цикл — следующий начнётся по расписанию.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from chat_cleaner.logging_config import LOGGER_NAME
from chat_cleaner.services.dispatcher import ScheduledDispatcher
from chat_cleaner.services.reaper import ChatReaper

log = logging.getLogger(LOGGER_NAME)

QUEUE_JOB_ID = "message_queue"
REAPER_JOB_ID = "cleanup_deprecated_chats"


async def run_message_queue(dispatcher: ScheduledDispatcher) -> None:
    try:
        report = await dispatcher.tick()
    except Exception as e:
        log.error("failed to process a message queue: %s", e)
        return
    if report.attempted:
        log.info("looped through queued messages, attempted %s", report.attempted)


async def run_chat_reaper(reaper: ChatReaper) -> None:
    try:
        await reaper.tick()
    except Exception as e:
        log.error("failed to clean deprecated chats: %s", e)


def build_scheduler(
    dispatcher: ScheduledDispatcher,
    reaper: ChatReaper,
    *,
    queue_seconds: float,
    reaper_seconds: float,
) -> AsyncIOScheduler:
    """Собрать планировщик с двумя интервальными задачами (первый запуск — сразу)."""
    scheduler = AsyncIOScheduler(timezone=timezone.utc)
    now = datetime.now(timezone.utc)

    scheduler.add_job(
        run_message_queue,
        trigger=IntervalTrigger(seconds=queue_seconds),
        args=[dispatcher],
        id=QUEUE_JOB_ID,
        replace_existing=True,
        max_instances=1,
        coalesce=True,
        next_run_time=now,
    )
    scheduler.add_job(
        run_chat_reaper,
        trigger=IntervalTrigger(seconds=reaper_seconds),
        args=[reaper],
        id=REAPER_JOB_ID,
        replace_existing=True,
        max_instances=1,
        coalesce=True,
        next_run_time=now,
    )
    return scheduler
