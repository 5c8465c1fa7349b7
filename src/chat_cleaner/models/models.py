"""
ORM-модели SQLAlchemy для бота.

Таблицы:
- tg_chat       — известные боту группы/каналы.
- tg_user       — рядовые участники групп (админы и владельцы сюда не попадают).
- message_queue — отложенные рассылки (удаляются после попытки отправки).

Примечание:
- tg_user.chat_id ссылается на tg_chat.id с ON DELETE/ON UPDATE CASCADE:
  удаление чата уносит его участников, миграция чата переносит их на новый id.
"""

from sqlalchemy import (
    JSON,
    BigInteger,
    Column,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class Chat(Base):
    """
    Группа, в которой бот видел активность.

    Атрибуты:
        id   (int) — Telegram chat id (PK).
        name (str) — название чата на момент последнего апдейта.
    """
    __tablename__ = "tg_chat"

    id = Column(BigInteger, primary_key=True, autoincrement=False)
    name = Column(Text, nullable=False, default="")


class ChatUser(Base):
    """
    Рядовой участник группы, кандидат на удаление при чистке.

    Атрибуты:
        id       (int)      — Telegram user id.
        chat_id  (int)      — id группы (FK на tg_chat).
        username (str|None) — @username без «@».
        name     (str)      — отображаемое имя.
    """
    __tablename__ = "tg_user"

    id = Column(BigInteger, primary_key=True, autoincrement=False)
    chat_id = Column(
        BigInteger,
        ForeignKey("tg_chat.id", ondelete="CASCADE", onupdate="CASCADE"),
        primary_key=True,
        index=True,
    )
    username = Column(String, nullable=True)
    name = Column(Text, nullable=False, default="")

    def __repr__(self) -> str:
        return f"ChatUser(id={self.id}, chat_id={self.chat_id}, username={self.username!r})"


class QueuedMessage(Base):
    """
    Отложенная рассылка.

    Атрибуты:
        id       (int)       — PK.
        chats    (list[int]) — целевые чаты, в порядке отправки.
        message  (str)       — текст сообщения.
        images   (list[str]) — картинки в base64 (можно data:-URL).
        datetime (str)       — когда отправить, RFC3339 со смещением.
    """
    __tablename__ = "message_queue"

    id = Column(Integer, primary_key=True, autoincrement=True)
    chats = Column(JSON, nullable=False, default=list)
    message = Column(Text, nullable=False)
    images = Column(JSON, nullable=False, default=list)
    datetime = Column(String, nullable=False)
