"""
Модуль конфигурации логирования.

Предназначен для единообразной настройки логирования во всём приложении.
"""

import logging
from logging import Logger

LOGGER_NAME = "chat-cleaner"


def setup_logging(level: int | str = logging.INFO) -> Logger:
    """
    Настроить формат и уровень логирования.

    :param level: Уровень логирования (по умолчанию INFO).
    :return: Логгер приложения.
    """
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    )
    # aiogram пишет каждый апдейт на INFO, слишком шумно
    logging.getLogger("aiogram.event").setLevel(logging.WARNING)
    return logging.getLogger(LOGGER_NAME)
