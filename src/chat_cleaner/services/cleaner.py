"""
Чистка одного чата: сверка локального списка с Telegram и удаление всех
рядовых участников.

Ошибки по отдельным участникам только логируются. Чистка считается
проваленной (ChatUnavailable) лишь тогда, когда не удалось прочитать сам чат.
"""

from __future__ import annotations

import logging

from chat_cleaner.logging_config import LOGGER_NAME
from chat_cleaner.services.directory import ChatDirectory
from chat_cleaner.services.status import CleaningStatus, StatusRegistry
from chat_cleaner.services.telegram import TelegramPlatform, is_tracked, removal_mode_for

log = logging.getLogger(LOGGER_NAME)


class ChatUnavailable(Exception):
    """Не удалось получить чат из Telegram, чистка невозможна."""

    def __init__(self, chat_id: int, cause: BaseException):
        super().__init__(str(cause))
        self.chat_id = chat_id
        self.cause = cause


class MembershipCleaner:
    def __init__(self, directory: ChatDirectory, registry: StatusRegistry, platform: TelegramPlatform):
        self.directory = directory
        self.registry = registry
        self.platform = platform

    async def reconcile(self, chat_id: int) -> int:
        """
        Выкинуть из справочника тех, кто уже не рядовой участник
        (стал админом, вышел, забанен). В Telegram ничего не меняем.

        :return: сколько записей удалено.
        """
        dropped = 0
        for user in await self.directory.list_members(chat_id):
            try:
                member = await self.platform.fetch_membership(chat_id, user.id)
            except Exception as e:
                log.error("error while getting member %s of chat %s: %s", user.id, chat_id, e)
                continue
            if not is_tracked(member):
                log.info("dropping member %s with status %s from chat %s", user.id, member.status, chat_id)
                await self.directory.forget_member(chat_id, user.id)
                dropped += 1
        return dropped

    async def cleanup_and_remove_all(self, chat_id: int) -> int:
        """
        Полная чистка чата. Вызывающий обязан заранее сделать claim.

        :return: сколько участников удалено из чата.
        :raises ChatUnavailable: чат не читается в Telegram.
        :raises StatusNotFound: чата нет в реестре (ошибка вызывающего кода).
        """
        log.info("deleting all members from chat %s", chat_id)
        self.registry.set(chat_id, CleaningStatus.in_progress())

        try:
            chat = await self.platform.fetch_group(chat_id)
        except Exception as e:
            raise ChatUnavailable(chat_id, e) from e

        await self.reconcile(chat_id)

        mode = removal_mode_for(chat)
        removed = 0
        for user in await self.directory.list_members(chat_id):
            try:
                await self.platform.remove_member(chat_id, user.id, mode)
            except Exception as e:
                log.error("failed to remove %r from chat %s (%s): %s", user, chat_id, mode.value, e)
                continue
            await self.directory.forget_member(chat_id, user.id)
            removed += 1

        self.registry.set(chat_id, CleaningStatus.idle())
        log.info("done deleting members from chat %s: removed %s", chat_id, removed)
        return removed
