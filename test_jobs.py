"""Сбой одного прохода фонового цикла логируется и не всплывает наружу."""
import logging
from types import SimpleNamespace
from unittest.mock import AsyncMock

from chat_cleaner.logging_config import LOGGER_NAME
from chat_cleaner.services.dispatcher import ScheduledDispatcher
from chat_cleaner.services.jobs import run_chat_reaper, run_message_queue
from chat_cleaner.services.reaper import ChatReaper


async def test_failing_queue_tick_is_logged(caplog):
    dispatcher = AsyncMock(spec=ScheduledDispatcher)
    dispatcher.tick.side_effect = RuntimeError("db down")

    with caplog.at_level(logging.INFO, logger=LOGGER_NAME):
        await run_message_queue(dispatcher)
        await run_message_queue(dispatcher)

    assert dispatcher.tick.await_count == 2
    errors = [r for r in caplog.records if r.levelno == logging.ERROR]
    assert len(errors) == 2
    assert all("failed to process a message queue: db down" in r.getMessage() for r in errors)


async def test_queue_tick_logs_attempted_rows(caplog):
    dispatcher = AsyncMock(spec=ScheduledDispatcher)
    dispatcher.tick.return_value = SimpleNamespace(attempted=[7], waiting=[])

    with caplog.at_level(logging.INFO, logger=LOGGER_NAME):
        await run_message_queue(dispatcher)

    assert "attempted [7]" in caplog.text
    assert not [r for r in caplog.records if r.levelno >= logging.ERROR]


async def test_failing_reaper_tick_is_logged(caplog):
    reaper = AsyncMock(spec=ChatReaper)
    reaper.tick.side_effect = RuntimeError("db down")

    with caplog.at_level(logging.ERROR, logger=LOGGER_NAME):
        await run_chat_reaper(reaper)

    reaper.tick.assert_awaited_once()
    (record,) = caplog.records
    assert record.levelno == logging.ERROR
    assert "failed to clean deprecated chats: db down" in record.getMessage()
