"""
Общие фикстуры: временная SQLite-база, реестр статусов и «фейковый» Telegram.
"""
import os
from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock

import pytest

os.environ.setdefault("TELEGRAM_BOT_TOKEN", "123456:TEST-TOKEN-NOT-REAL")

from aiogram.enums import ChatMemberStatus, ChatType  # noqa: E402

from chat_cleaner.services.directory import ChatDirectory  # noqa: E402
from chat_cleaner.services.status import StatusRegistry  # noqa: E402
from chat_cleaner.services.telegram import TelegramPlatform  # noqa: E402
from chat_cleaner.utils.db import create_engine, create_session_factory, create_tables  # noqa: E402

BOT_ID = 999


def member(status=ChatMemberStatus.MEMBER):
    return SimpleNamespace(status=status)


def tg_user(user_id: int, username: str | None = None, full_name: str = "Test User"):
    return SimpleNamespace(id=user_id, username=username, full_name=full_name, is_bot=False)


def tg_chat(chat_type=ChatType.SUPERGROUP):
    return SimpleNamespace(type=chat_type)


def api_error(cls, text: str):
    return cls(method=Mock(), message=text)


@pytest.fixture
async def session_maker(tmp_path):
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await create_tables(engine)
    yield create_session_factory(engine)
    await engine.dispose()


@pytest.fixture
def registry():
    return StatusRegistry()


@pytest.fixture
def platform():
    p = AsyncMock(spec=TelegramPlatform)
    p.fetch_own_id.return_value = BOT_ID
    p.fetch_membership.return_value = member()
    p.fetch_group.return_value = tg_chat()
    return p


@pytest.fixture
def directory(session_maker, registry, platform):
    return ChatDirectory(session_maker, registry, platform)


async def assert_lockstep(directory: ChatDirectory) -> None:
    """Статус есть ровно у тех чатов, что лежат в tg_chat."""
    ids = {chat.id for chat in await directory.list_chats()}
    assert ids == set(directory.registry.snapshot())
