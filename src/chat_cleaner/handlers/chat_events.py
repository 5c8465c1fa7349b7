"""
Учёт активности в группах.

Логика:
- Любое сообщение в группе: чат попадает в справочник, автор — в участники
  (если он не админ и не сам бот).
- Вступление: всех вошедших записываем, сервисное сообщение удаляем.
- Выход: участника забываем, сервисное сообщение удаляем.
- Миграция группы в супергруппу: переносим чат и его статус на новый id.
- Бота выгнали (my_chat_member): сразу удаляем чат, не дожидаясь «жнеца».
"""

from __future__ import annotations

import contextlib
import logging

from aiogram import F, Router
from aiogram.enums import ChatMemberStatus, ChatType
from aiogram.exceptions import TelegramBadRequest
from aiogram.types import ChatMemberUpdated, Message

from chat_cleaner.logging_config import LOGGER_NAME
from chat_cleaner.services.directory import ChatDirectory
from chat_cleaner.services.status import StatusNotFound

router = Router(name="chat_events")
log = logging.getLogger(LOGGER_NAME)

IN_GROUP = F.chat.type != ChatType.PRIVATE
BOT_GONE = {ChatMemberStatus.LEFT, ChatMemberStatus.KICKED}


async def _delete_service_message(message: Message, enabled: bool) -> None:
    if not enabled:
        return
    with contextlib.suppress(TelegramBadRequest):
        await message.delete()


async def _migrate(directory: ChatDirectory, old_id: int, new_id: int, title: str | None) -> None:
    try:
        await directory.migrate_chat(old_id, new_id)
    except StatusNotFound:
        # старый чат мы не знали, просто заводим новый
        log.warning("migration from unknown chat %s, registering %s", old_id, new_id)
    await directory.register_chat(new_id, title)


@router.message(IN_GROUP)
@router.edited_message(IN_GROUP)
async def on_group_message(
    message: Message,
    directory: ChatDirectory,
    delete_service_messages: bool = True,
) -> None:
    chat = message.chat

    if message.migrate_from_chat_id:
        try:
            await _migrate(directory, message.migrate_from_chat_id, chat.id, chat.title)
        except Exception as e:
            log.error("failed to migrate chat %s -> %s: %s", message.migrate_from_chat_id, chat.id, e)
        return
    if message.migrate_to_chat_id:
        # парное сообщение придёт уже из новой супергруппы
        return

    try:
        await directory.register_chat(chat.id, chat.title)
    except Exception as e:
        log.error("failed to register chat %s: %s", chat.id, e)
        return

    author = message.from_user
    if author is not None and message.sender_chat is None:
        try:
            await directory.register_member(chat.id, author)
        except Exception as e:
            log.warning("failed to register member %s in chat %s: %s", author.id, chat.id, e)

    if message.new_chat_members:
        for user in message.new_chat_members:
            try:
                await directory.register_member(chat.id, user)
            except Exception as e:
                log.warning("failed to register new member %s in chat %s: %s", user.id, chat.id, e)
        await _delete_service_message(message, delete_service_messages)
    elif message.left_chat_member:
        try:
            await directory.forget_member(chat.id, message.left_chat_member.id)
        except Exception as e:
            log.warning("failed to forget member %s in chat %s: %s", message.left_chat_member.id, chat.id, e)
        await _delete_service_message(message, delete_service_messages)


@router.my_chat_member(IN_GROUP)
async def on_bot_membership(event: ChatMemberUpdated, directory: ChatDirectory) -> None:
    """Бота добавили/выгнали из группы."""
    chat = event.chat
    try:
        if event.new_chat_member.status in BOT_GONE:
            if await directory.chat_exists(chat.id):
                log.info("bot was removed from chat %s", chat.id)
                await directory.delete_chat(chat.id)
        else:
            await directory.register_chat(chat.id, chat.title)
    except Exception as e:
        log.error("failed to handle bot membership change in chat %s: %s", chat.id, e)
