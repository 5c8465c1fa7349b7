"""
HTTP API для админ-панели: список чатов, статусы, чистка, рассылки.
"""

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import PlainTextResponse

from chat_cleaner.api.schemas import ClearChatsBody, SendMessageBody
from chat_cleaner.services.directory import ChatDirectory
from chat_cleaner.services.dispatcher import ScheduledDispatcher
from chat_cleaner.services.orchestrator import BulkClearOrchestrator

router = APIRouter()


def get_directory(request: Request) -> ChatDirectory:
    return request.app.state.directory


def get_orchestrator(request: Request) -> BulkClearOrchestrator:
    return request.app.state.orchestrator


def get_dispatcher(request: Request) -> ScheduledDispatcher:
    return request.app.state.dispatcher


@router.get("/", response_class=PlainTextResponse)
async def root():
    return "Hello, World!"


@router.get("/chats")
async def chats(directory: ChatDirectory = Depends(get_directory)):
    """Все известные чаты с текущим статусом чистки."""
    return [chat.to_json() for chat in await directory.list_chats()]


@router.get("/status")
async def chat_status(directory: ChatDirectory = Depends(get_directory)):
    """Снимок реестра статусов: {chat_id: status}."""
    return {str(chat_id): st.to_json() for chat_id, st in directory.registry.snapshot().items()}


@router.api_route("/deleteChat/{chat_id}", methods=["GET", "DELETE"])
async def delete_chat(chat_id: int, directory: ChatDirectory = Depends(get_directory)):
    if not await directory.chat_exists(chat_id) and chat_id not in directory.registry:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="chat not found")
    await directory.delete_chat(chat_id)
    return {"deleted": chat_id}


@router.get("/clearChat/{chat_id}")
async def clear_chat(chat_id: int, orchestrator: BulkClearOrchestrator = Depends(get_orchestrator)):
    """Почистить один чат и дождаться результата."""
    registry = orchestrator.registry
    if chat_id not in registry:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="chat not found")
    if not registry.claim(chat_id):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=f"chat is {registry.get(chat_id)}")
    final = await orchestrator.sweep(chat_id)
    return {"id": chat_id, "status": final.to_json() if final else None}


@router.post("/clearChats/", status_code=status.HTTP_202_ACCEPTED)
async def clear_chats(body: ClearChatsBody, orchestrator: BulkClearOrchestrator = Depends(get_orchestrator)):
    job = orchestrator.submit(body.chats)
    return {"job_id": job.id}


@router.get("/jobs/{job_id}")
async def clear_job(job_id: str, orchestrator: BulkClearOrchestrator = Depends(get_orchestrator)):
    job = orchestrator.get_job(job_id)
    if job is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="job not found")
    return job.to_json()


@router.post("/sendMessage/", status_code=status.HTTP_201_CREATED)
async def send_message(body: SendMessageBody, dispatcher: ScheduledDispatcher = Depends(get_dispatcher)):
    queued = await dispatcher.schedule(
        chats=body.chats,
        message=body.message,
        images=body.images,
        when=body.datetime,
    )
    return {"id": queued.id}
