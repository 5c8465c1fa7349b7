import pytest
from aiogram.enums import ChatMemberStatus

from chat_cleaner.services.status import CleaningStatus, StatusNotFound

from conftest import BOT_ID, assert_lockstep, member, tg_user


async def test_register_and_delete_keep_lockstep(directory):
    await directory.register_chat(-1, "one")
    await directory.register_chat(-2, "two")
    await directory.register_chat(-1, "one renamed")
    await assert_lockstep(directory)

    await directory.delete_chat(-1)
    await assert_lockstep(directory)
    assert directory.registry.get(-1) is None
    assert [c.name for c in await directory.list_chats()] == ["two"]


async def test_load_statuses_from_db(session_maker, registry, platform, directory):
    await directory.register_chat(-5, "g")
    registry.remove(-5)

    assert await directory.load_statuses() == 1
    assert registry.get(-5) == CleaningStatus.idle()


async def test_migrate_keeps_status_and_members(directory, registry):
    await directory.register_chat(100, "g")
    await directory.register_member(100, tg_user(1))
    registry.set(100, CleaningStatus.error("x"))

    await directory.migrate_chat(100, 200)

    await assert_lockstep(directory)
    assert registry.get(200) == CleaningStatus.error("x")
    assert [m.id for m in await directory.list_members(200)] == [1]
    with pytest.raises(StatusNotFound):
        await directory.migrate_chat(100, 300)


async def test_migrate_into_already_registered_chat_moves_members(directory, registry):
    await directory.register_chat(-1, "g")
    await directory.register_member(-1, tg_user(1))
    await directory.register_member(-1, tg_user(2))
    # апдейт из супергруппы пришёл раньше сообщения о миграции
    await directory.register_chat(-1001, "g")
    await directory.register_member(-1001, tg_user(3))

    await directory.migrate_chat(-1, -1001)

    await assert_lockstep(directory)
    assert [c.id for c in await directory.list_chats()] == [-1001]
    assert {m.id for m in await directory.list_members(-1001)} == {1, 2, 3}
    assert registry.get(-1001) == CleaningStatus.idle()


async def test_migrate_does_not_overwrite_busy_status(directory, registry):
    await directory.register_chat(-1, "g")
    registry.set(-1, CleaningStatus.error("x"))
    await directory.register_chat(-1001, "g")
    registry.set(-1001, CleaningStatus.in_progress())

    await directory.migrate_chat(-1, -1001)

    await assert_lockstep(directory)
    assert registry.get(-1001) == CleaningStatus.in_progress()


async def test_register_member_ignores_bot_and_admins(directory, platform):
    await directory.register_chat(-1, "g")

    assert await directory.register_member(-1, tg_user(BOT_ID)) is False

    platform.fetch_membership.return_value = member(ChatMemberStatus.ADMINISTRATOR)
    assert await directory.register_member(-1, tg_user(2)) is False

    platform.fetch_membership.return_value = member(ChatMemberStatus.CREATOR)
    assert await directory.register_member(-1, tg_user(3)) is False

    platform.fetch_membership.return_value = member(ChatMemberStatus.MEMBER)
    assert await directory.register_member(-1, tg_user(4, "bob", "Bob B")) is True

    members = await directory.list_members(-1)
    assert [(m.id, m.username, m.name) for m in members] == [(4, "bob", "Bob B")]


async def test_forget_member(directory):
    await directory.register_chat(-1, "g")
    await directory.register_member(-1, tg_user(4))
    await directory.forget_member(-1, 4)
    assert await directory.list_members(-1) == []
