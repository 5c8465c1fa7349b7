"""
Загрузка и валидация конфигурации приложения.

Используется pydantic для работы с переменными окружения (.env).
"""

from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Настройки бота, загружаемые из окружения.

    - TELEGRAM_BOT_TOKEN: токен бота;
    - DATABASE_URL: строка подключения SQLAlchemy (async-драйвер);
    - API_HOST / API_PORT: где слушает HTTP API для админки;
    - CORS_ORIGINS: откуда разрешены запросы к API;
    - QUEUE_POLL_SECONDS: период опроса очереди отложенных сообщений;
    - REAPER_POLL_SECONDS: период проверки «мёртвых» чатов;
    - MEDIA_GROUP_LIMIT: максимум картинок в одном альбоме (лимит Telegram — 10);
    - MESSAGE_PARSE_MODE: режим разметки текста рассылки;
    - QUEUE_DROP_AFTER_ATTEMPT: удалять сообщение из очереди после попытки,
      даже если часть отправок не удалась;
    - DELETE_SERVICE_MESSAGES: удалять «X joined/left the group»;
    - LOG_LEVEL: уровень логирования.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    TELEGRAM_BOT_TOKEN: str = Field(..., min_length=10)
    DATABASE_URL: str = "sqlite+aiosqlite:///./bot.db"

    API_HOST: str = "0.0.0.0"
    API_PORT: int = 3030
    CORS_ORIGINS: List[str] = Field(default_factory=lambda: ["*"])

    QUEUE_POLL_SECONDS: float = Field(15, gt=0)
    REAPER_POLL_SECONDS: float = Field(300, gt=0)
    MEDIA_GROUP_LIMIT: int = Field(10, ge=1, le=10)
    MESSAGE_PARSE_MODE: str = "MarkdownV2"
    QUEUE_DROP_AFTER_ATTEMPT: bool = True
    DELETE_SERVICE_MESSAGES: bool = True

    LOG_LEVEL: str = "INFO"


settings = Settings()
