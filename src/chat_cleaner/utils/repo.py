from __future__ import annotations

from typing import Iterable, Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from chat_cleaner.models import Chat, ChatUser, QueuedMessage

# ---------- helpers ----------

_UPSERT_DIALECTS = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}


# ---------- repository ----------

class Repo:
    """Справочник чатов/участников и очередь рассылок поверх одной сессии."""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _dialect(self) -> str:
        return self.session.bind.dialect.name

    async def _upsert(self, model, values: dict, *, keys: list[str], update_cols: list[str]) -> None:
        insert_fn = _UPSERT_DIALECTS.get(self._dialect())
        if insert_fn is None:
            # прочие СУБД: без атомарного upsert, через merge
            await self.session.merge(model(**values))
            await self.session.commit()
            return
        stmt = insert_fn(model).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=keys,
            set_={col: getattr(stmt.excluded, col) for col in update_cols},
        )
        await self.session.execute(stmt)
        await self.session.commit()

    # -------- CHATS --------

    async def upsert_chat(self, chat_id: int, name: str) -> None:
        await self._upsert(
            Chat,
            {"id": int(chat_id), "name": name or ""},
            keys=["id"],
            update_cols=["name"],
        )

    async def get_chat(self, chat_id: int) -> Chat | None:
        res = await self.session.execute(select(Chat).where(Chat.id == int(chat_id)))
        return res.scalar_one_or_none()

    async def list_chats(self) -> list[Chat]:
        res = await self.session.execute(select(Chat).order_by(Chat.id.asc()))
        return list(res.scalars().all())

    async def delete_chat(self, chat_id: int) -> None:
        # участников удаляем явно, не полагаясь на FK (у SQLite он может быть выключен)
        await self.session.execute(delete(ChatUser).where(ChatUser.chat_id == int(chat_id)))
        await self.session.execute(delete(Chat).where(Chat.id == int(chat_id)))
        await self.session.commit()

    async def migrate_chat(self, old_id: int, new_id: int) -> None:
        """
        Перенести чат на новый id. Участники едут следом (ON UPDATE CASCADE).
        Если запись с new_id уже есть (апдейт из новой супергруппы пришёл раньше
        миграции), участники старого чата переносятся в неё, а старая запись удаляется.
        """
        if await self.get_chat(new_id) is not None:
            known = {m.id for m in await self.list_members(new_id)}
            for user in await self.list_members(old_id):
                if user.id in known:
                    continue
                await self.upsert_member(
                    chat_id=new_id, user_id=user.id, username=user.username, name=user.name
                )
            await self.delete_chat(old_id)
            return
        await self.session.execute(
            update(Chat).where(Chat.id == int(old_id)).values(id=int(new_id))
        )
        await self.session.execute(
            update(ChatUser).where(ChatUser.chat_id == int(old_id)).values(chat_id=int(new_id))
        )
        await self.session.commit()

    # -------- MEMBERS --------

    async def upsert_member(
        self, *, chat_id: int, user_id: int, username: Optional[str], name: str
    ) -> None:
        await self._upsert(
            ChatUser,
            {"id": int(user_id), "chat_id": int(chat_id), "username": username, "name": name or ""},
            keys=["id", "chat_id"],
            update_cols=["username", "name"],
        )

    async def list_members(self, chat_id: int) -> list[ChatUser]:
        res = await self.session.execute(
            select(ChatUser).where(ChatUser.chat_id == int(chat_id)).order_by(ChatUser.id.asc())
        )
        return list(res.scalars().all())

    async def count_members(self, chat_id: int) -> int:
        res = await self.session.execute(
            select(func.count()).select_from(ChatUser).where(ChatUser.chat_id == int(chat_id))
        )
        return int(res.scalar() or 0)

    async def delete_member(self, chat_id: int, user_id: int) -> None:
        await self.session.execute(
            delete(ChatUser).where(ChatUser.chat_id == int(chat_id), ChatUser.id == int(user_id))
        )
        await self.session.commit()

    # -------- MESSAGE QUEUE --------

    async def queue_message(
        self, *, chats: Iterable[int], message: str, images: Iterable[str], when: str
    ) -> QueuedMessage:
        rec = QueuedMessage(
            chats=[int(c) for c in chats],
            message=message,
            images=list(images),
            datetime=when,
        )
        self.session.add(rec)
        await self.session.flush()
        await self.session.commit()
        return rec

    async def list_queued_messages(self) -> list[QueuedMessage]:
        res = await self.session.execute(select(QueuedMessage).order_by(QueuedMessage.id.asc()))
        return list(res.scalars().all())

    async def get_queued_message(self, message_id: int) -> QueuedMessage | None:
        res = await self.session.execute(select(QueuedMessage).where(QueuedMessage.id == int(message_id)))
        return res.scalar_one_or_none()

    async def delete_queued_message(self, message_id: int) -> None:
        await self.session.execute(delete(QueuedMessage).where(QueuedMessage.id == int(message_id)))
        await self.session.commit()
