import httpx
import pytest
from aiogram.exceptions import TelegramBadRequest

from chat_cleaner.api import create_app
from chat_cleaner.services.cleaner import MembershipCleaner
from chat_cleaner.services.dispatcher import ScheduledDispatcher
from chat_cleaner.services.orchestrator import BulkClearOrchestrator
from chat_cleaner.services.status import CleaningStatus
from chat_cleaner.utils.repo import Repo

from conftest import api_error, tg_user


@pytest.fixture
def orchestrator(directory, registry, platform):
    return BulkClearOrchestrator(registry, MembershipCleaner(directory, registry, platform))


@pytest.fixture
async def client(directory, orchestrator, session_maker, platform):
    app = create_app(directory, orchestrator, ScheduledDispatcher(session_maker, platform))
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


async def test_root(client):
    resp = await client.get("/")
    assert resp.status_code == 200
    assert resp.text == "Hello, World!"


async def test_chats_and_status(client, directory, registry):
    await directory.register_chat(-1, "one")
    await directory.register_chat(-2, "two")
    registry.set(-2, CleaningStatus.error("chat not found"))

    chats = (await client.get("/chats")).json()
    assert chats == [
        {"id": -2, "name": "two", "status": {"Error": "chat not found"}},
        {"id": -1, "name": "one", "status": "Idle"},
    ]

    status = (await client.get("/status")).json()
    assert status == {"-1": "Idle", "-2": {"Error": "chat not found"}}


async def test_delete_chat(client, directory, registry):
    await directory.register_chat(-1, "one")

    assert (await client.get("/deleteChat/-1")).status_code == 200
    assert registry.get(-1) is None
    assert (await client.delete("/deleteChat/-1")).status_code == 404


async def test_clear_chat_reports_final_status(client, directory, registry, platform):
    await directory.register_chat(-1, "one")
    await directory.register_member(-1, tg_user(3))

    resp = await client.get("/clearChat/-1")
    assert resp.json() == {"id": -1, "status": "Idle"}
    assert await directory.list_members(-1) == []

    platform.fetch_group.side_effect = api_error(TelegramBadRequest, "Bad Request: chat not found")
    resp = await client.get("/clearChat/-1")
    assert "chat not found" in resp.json()["status"]["Error"]

    registry.set(-1, CleaningStatus.in_progress())
    assert (await client.get("/clearChat/-1")).status_code == 409
    assert (await client.get("/clearChat/-404")).status_code == 404


async def test_clear_chats_returns_job(client, directory, orchestrator):
    await directory.register_chat(-1, "one")

    resp = await client.post("/clearChats/", json={"chats": [-1]})
    assert resp.status_code == 202
    job_id = resp.json()["job_id"]

    await orchestrator.wait_all()
    job = (await client.get(f"/jobs/{job_id}")).json()
    assert job["done"] is True
    assert job["claimed"] == [-1]
    assert (await client.get("/jobs/nope")).status_code == 404


async def test_send_message_queues_row(client, session_maker):
    body = {"chats": [-1, -2], "message": "hi", "images": [], "datetime": "2030-01-01T10:00:00+03:00"}
    resp = await client.post("/sendMessage/", json=body)
    assert resp.status_code == 201

    async with session_maker() as s:
        rows = await Repo(s).list_queued_messages()
    assert [(r.chats, r.message) for r in rows] == [([-1, -2], "hi")]

    body["datetime"] = "next monday"
    assert (await client.post("/sendMessage/", json=body)).status_code == 422
