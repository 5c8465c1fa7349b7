"""
Обёртка над aiogram.Bot: ровно те вызовы Telegram, которые нужны чистке,
рассылке и «жнецу», плюс разбор ошибок Bot API по категориям.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional, Sequence

from aiogram import Bot
from aiogram.enums import ChatMemberStatus, ChatType
from aiogram.exceptions import TelegramAPIError, TelegramBadRequest, TelegramForbiddenError
from aiogram.types import BufferedInputFile, InputMediaPhoto

from chat_cleaner.services.media import DecodedImage

PRIVILEGED_STATUSES = {ChatMemberStatus.ADMINISTRATOR, ChatMemberStatus.CREATOR}
TRACKED_STATUSES = {ChatMemberStatus.MEMBER, ChatMemberStatus.RESTRICTED}


class RemovalMode(str, Enum):
    KICK = "kick"
    UNBAN = "unban"


class ErrorKind(str, Enum):
    CHAT_NOT_FOUND = "chat_not_found"
    BOT_KICKED = "bot_kicked"
    BOT_KICKED_FROM_SUPERGROUP = "bot_kicked_from_supergroup"
    OTHER = "other"


# Категории «бота больше нет в чате»
GONE_KINDS = frozenset({
    ErrorKind.CHAT_NOT_FOUND,
    ErrorKind.BOT_KICKED,
    ErrorKind.BOT_KICKED_FROM_SUPERGROUP,
})


def classify_error(exc: BaseException) -> ErrorKind:
    """
    Отнести ошибку к категории.

    aiogram отдаёт только класс исключения и текст description из Bot API,
    отдельного кода для «бота выгнали» нет, поэтому смотрим на оба.
    """
    text = (getattr(exc, "message", None) or str(exc)).lower()

    if isinstance(exc, TelegramBadRequest) and "chat not found" in text:
        return ErrorKind.CHAT_NOT_FOUND
    if isinstance(exc, TelegramForbiddenError):
        if "kicked from the supergroup" in text or "kicked from the channel" in text:
            return ErrorKind.BOT_KICKED_FROM_SUPERGROUP
        if "bot was kicked" in text:
            return ErrorKind.BOT_KICKED
        return ErrorKind.OTHER
    # запасной вариант: ошибка пришла не из aiogram, но текст однозначный
    if "forbidden: bot was kicked from the group chat" in text:
        return ErrorKind.BOT_KICKED
    return ErrorKind.OTHER


def removal_mode_for(chat) -> RemovalMode:
    """Супергруппы и каналы — unban (выкинуть без вечного бана), обычные группы — kick."""
    if chat.type in (ChatType.SUPERGROUP, ChatType.CHANNEL):
        return RemovalMode.UNBAN
    return RemovalMode.KICK


def is_privileged(member) -> bool:
    return member.status in PRIVILEGED_STATUSES


def is_tracked(member) -> bool:
    return member.status in TRACKED_STATUSES


class TelegramPlatform:
    def __init__(self, bot: Bot, *, parse_mode: Optional[str] = "MarkdownV2"):
        self.bot = bot
        self.parse_mode = parse_mode

    async def fetch_own_id(self) -> int:
        me = await self.bot.me()
        return me.id

    async def fetch_group(self, chat_id: int):
        return await self.bot.get_chat(chat_id)

    async def fetch_membership(self, chat_id: int, user_id: int):
        return await self.bot.get_chat_member(chat_id, user_id)

    async def remove_member(self, chat_id: int, user_id: int, mode: RemovalMode) -> None:
        if mode is RemovalMode.UNBAN:
            # для супергрупп unban действующего участника выкидывает его из чата
            await self.bot.unban_chat_member(chat_id, user_id)
        else:
            await self.bot.ban_chat_member(chat_id, user_id)

    async def send_text(self, chat_id: int, text: str) -> None:
        await self.bot.send_message(chat_id, text, parse_mode=self.parse_mode)

    async def send_media_group(self, chat_id: int, images: Sequence[DecodedImage]) -> None:
        if not images:
            return
        files = [BufferedInputFile(img.data, filename=img.filename) for img in images]
        if len(files) == 1:
            # альбом из одной картинки Bot API не принимает
            await self.bot.send_photo(chat_id, files[0])
            return
        await self.bot.send_media_group(chat_id, [InputMediaPhoto(media=f) for f in files])
