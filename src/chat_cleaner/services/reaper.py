"""
«Жнец»: раз в REAPER_POLL_SECONDS проверяет, состоит ли бот в каждом известном чате.

Чат удаляется только при однозначном ответе Telegram «бота там нет»
(chat not found / bot was kicked ...). Любая другая ошибка считается
временной: пишем в лог и оставляем чат.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from chat_cleaner.logging_config import LOGGER_NAME
from chat_cleaner.services.directory import ChatDirectory
from chat_cleaner.services.telegram import GONE_KINDS, TelegramPlatform, classify_error

log = logging.getLogger(LOGGER_NAME)


@dataclass
class ReapReport:
    alive: list[int] = field(default_factory=list)
    deleted: list[int] = field(default_factory=list)
    errors: list[int] = field(default_factory=list)


class ChatReaper:
    def __init__(self, directory: ChatDirectory, platform: TelegramPlatform):
        self.directory = directory
        self.platform = platform

    async def tick(self) -> ReapReport:
        report = ReapReport()
        chats = await self.directory.list_chats()
        me = await self.platform.fetch_own_id()

        for chat in chats:
            try:
                await self.platform.fetch_membership(chat.id, me)
            except Exception as e:
                kind = classify_error(e)
                if kind not in GONE_KINDS:
                    log.error("bad error when checking for deprecated chat %s: %s", chat.id, e)
                    report.errors.append(chat.id)
                    continue

                log.info("found a deprecated chat %s (%s): %s", chat.id, kind.value, e)
                try:
                    await self.directory.delete_chat(chat.id)
                except Exception as del_err:
                    log.error("failed to delete deprecated chat %s: %s", chat.id, del_err)
                    report.errors.append(chat.id)
                    continue
                log.info("deleted deprecated chat %s", chat.id)
                report.deleted.append(chat.id)
                continue
            report.alive.append(chat.id)

        log.info("checked %s chats, deleted %s", len(chats), len(report.deleted))
        return report
