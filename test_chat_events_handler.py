"""
Тесты обработчиков апдейтов из групп (вызываем хендлеры напрямую с моками).
"""
from types import SimpleNamespace
from unittest.mock import AsyncMock

from aiogram.enums import ChatMemberStatus

from chat_cleaner.handlers.chat_events import on_bot_membership, on_group_message
from chat_cleaner.services.status import CleaningStatus

from conftest import assert_lockstep, tg_user


def make_message(chat_id=-1, title="group", **overrides):
    fields = dict(
        chat=SimpleNamespace(id=chat_id, title=title, type="supergroup"),
        migrate_from_chat_id=None,
        migrate_to_chat_id=None,
        from_user=tg_user(5, "author"),
        sender_chat=None,
        new_chat_members=None,
        left_chat_member=None,
        delete=AsyncMock(),
    )
    fields.update(overrides)
    return SimpleNamespace(**fields)


async def test_plain_message_registers_chat_and_author(directory):
    await on_group_message(make_message(), directory)

    chats = await directory.list_chats()
    assert [(c.id, c.name) for c in chats] == [(-1, "group")]
    assert [m.id for m in await directory.list_members(-1)] == [5]
    await assert_lockstep(directory)


async def test_anonymous_admin_is_not_registered(directory):
    await on_group_message(make_message(sender_chat=SimpleNamespace(id=-1)), directory)
    assert await directory.list_members(-1) == []


async def test_join_and_leave_update_members_and_delete_service_message(directory):
    joined = make_message(new_chat_members=[tg_user(7), tg_user(8)])
    await on_group_message(joined, directory)
    joined.delete.assert_awaited_once()
    assert {m.id for m in await directory.list_members(-1)} == {5, 7, 8}

    left = make_message(left_chat_member=tg_user(7))
    await on_group_message(left, directory, delete_service_messages=False)
    left.delete.assert_not_awaited()
    assert {m.id for m in await directory.list_members(-1)} == {5, 8}


async def test_migration_moves_chat(directory, registry):
    await on_group_message(make_message(chat_id=-1), directory)
    registry.set(-1, CleaningStatus.error("x"))

    await on_group_message(make_message(chat_id=-1001, migrate_from_chat_id=-1), directory)

    assert [c.id for c in await directory.list_chats()] == [-1001]
    assert registry.get(-1001) == CleaningStatus.error("x")
    assert [m.id for m in await directory.list_members(-1001)] == [5]
    await assert_lockstep(directory)


async def test_migration_from_unknown_chat_registers_new_one(directory):
    await on_group_message(make_message(chat_id=-1001, migrate_from_chat_id=-1), directory)
    assert [c.id for c in await directory.list_chats()] == [-1001]
    await assert_lockstep(directory)


async def test_bot_kicked_deletes_chat(directory):
    await on_group_message(make_message(), directory)

    event = SimpleNamespace(
        chat=SimpleNamespace(id=-1, title="group"),
        new_chat_member=SimpleNamespace(status=ChatMemberStatus.KICKED),
    )
    await on_bot_membership(event, directory)

    assert await directory.list_chats() == []
    await assert_lockstep(directory)
