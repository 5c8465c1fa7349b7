"""Проверка импорта модулей без ошибок"""
import importlib

import pytest


@pytest.mark.parametrize(
    "module",
    [
        "chat_cleaner.main",
        "chat_cleaner.api",
        "chat_cleaner.handlers.chat_events",
        "chat_cleaner.services.jobs",
    ],
)
def test_module_imports(module):
    assert importlib.import_module(module) is not None


async def test_scheduler_has_both_jobs(session_maker, directory, platform):
    from chat_cleaner.services.dispatcher import ScheduledDispatcher
    from chat_cleaner.services.jobs import QUEUE_JOB_ID, REAPER_JOB_ID, build_scheduler
    from chat_cleaner.services.reaper import ChatReaper

    scheduler = build_scheduler(
        ScheduledDispatcher(session_maker, platform),
        ChatReaper(directory, platform),
        queue_seconds=15,
        reaper_seconds=300,
    )
    assert {job.id for job in scheduler.get_jobs()} == {QUEUE_JOB_ID, REAPER_JOB_ID}
    assert scheduler.get_job(QUEUE_JOB_ID).trigger.interval.total_seconds() == 15
    assert scheduler.get_job(REAPER_JOB_ID).trigger.interval.total_seconds() == 300
