"""
Справочник чатов и участников, синхронизированный с реестром статусов.

Любое изменение набора чатов идёт через этот класс: запись в БД и запись
в StatusRegistry меняются вместе, так что статус есть ровно у тех чатов,
которые есть в tg_chat.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from chat_cleaner.logging_config import LOGGER_NAME
from chat_cleaner.services.status import CleaningStatus, StatusRegistry
from chat_cleaner.services.telegram import TelegramPlatform, is_privileged
from chat_cleaner.utils.repo import Repo

log = logging.getLogger(LOGGER_NAME)


@dataclass(frozen=True)
class ChatInfo:
    id: int
    name: str
    status: CleaningStatus

    def to_json(self) -> dict:
        return {"id": self.id, "name": self.name, "status": self.status.to_json()}


class ChatDirectory:
    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        registry: StatusRegistry,
        platform: TelegramPlatform,
    ):
        self.session_maker = session_maker
        self.registry = registry
        self.platform = platform

    async def load_statuses(self) -> int:
        """Завести Idle для всех чатов из БД (при старте процесса)."""
        async with self.session_maker() as session:
            chats = await Repo(session).list_chats()
        self.registry.fill(chat.id for chat in chats)
        return len(chats)

    async def register_chat(self, chat_id: int, name: str | None) -> None:
        async with self.session_maker() as session:
            await Repo(session).upsert_chat(chat_id, name or "")
        self.registry.ensure(chat_id)

    async def delete_chat(self, chat_id: int) -> None:
        log.info("deleting chat %s", chat_id)
        self.registry.remove(chat_id)
        async with self.session_maker() as session:
            await Repo(session).delete_chat(chat_id)

    async def migrate_chat(self, old_id: int, new_id: int) -> None:
        log.info("migrating chat %s -> %s", old_id, new_id)
        async with self.session_maker() as session:
            await Repo(session).migrate_chat(old_id, new_id)
        self.registry.migrate(old_id, new_id)

    async def chat_exists(self, chat_id: int) -> bool:
        async with self.session_maker() as session:
            return await Repo(session).get_chat(chat_id) is not None

    async def list_chats(self) -> list[ChatInfo]:
        async with self.session_maker() as session:
            chats = await Repo(session).list_chats()
        result = []
        for chat in chats:
            status = self.registry.get(chat.id) or CleaningStatus.idle()
            result.append(ChatInfo(id=chat.id, name=chat.name, status=status))
        return result

    async def list_members(self, chat_id: int):
        async with self.session_maker() as session:
            return await Repo(session).list_members(chat_id)

    async def register_member(self, chat_id: int, user) -> bool:
        """
        Запомнить участника чата. Сам бот и админы/владельцы не сохраняются.

        :return: True, если запись добавлена/обновлена.
        """
        if user.id == await self.platform.fetch_own_id():
            log.debug("ignoring self in chat %s", chat_id)
            return False

        member = await self.platform.fetch_membership(chat_id, user.id)
        if is_privileged(member):
            log.info("ignored an admin %s in chat %s", user.id, chat_id)
            return False

        async with self.session_maker() as session:
            await Repo(session).upsert_member(
                chat_id=chat_id,
                user_id=user.id,
                username=user.username,
                name=user.full_name,
            )
        return True

    async def forget_member(self, chat_id: int, user_id: int) -> None:
        log.info("removing member %s from chat %s", user_id, chat_id)
        async with self.session_maker() as session:
            await Repo(session).delete_member(chat_id, user_id)
