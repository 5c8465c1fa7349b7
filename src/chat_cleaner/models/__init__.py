"""
Модуль экспорта ORM-моделей.

Предоставляет доступ к базовым классам и моделям для работы с БД.
"""
from .models import (
    Base,
    Chat,
    ChatUser,
    QueuedMessage,
)

__all__ = [
    "Base",
    "Chat",
    "ChatUser",
    "QueuedMessage",
]
