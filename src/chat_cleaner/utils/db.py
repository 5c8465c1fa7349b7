"""
Инициализация асинхронного движка и фабрики сессий SQLAlchemy.

Выделено в отдельный модуль для переиспользования в репозитории и при тестировании.
"""

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from chat_cleaner.models import Base


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    # без этого SQLite игнорирует ON DELETE/ON UPDATE CASCADE
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_engine(database_url: str) -> AsyncEngine:
    """
    Создать асинхронный движок SQLAlchemy.

    :param database_url: строка подключения, напр. sqlite+aiosqlite:///./bot.db
    :return: экземпляр AsyncEngine.
    """
    engine = create_async_engine(database_url, future=True, echo=False)
    if engine.dialect.name == "sqlite":
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """
    Создать фабрику асинхронных сессий.

    :param engine: асинхронный движок.
    :return: фабрика сессий.
    """
    return async_sessionmaker(bind=engine, expire_on_commit=False)


async def create_tables(engine: AsyncEngine) -> None:
    """Создать недостающие таблицы по ORM-моделям."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
