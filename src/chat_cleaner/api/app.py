"""
Сборка FastAPI-приложения. Сервисы кладутся в app.state и достаются роутами
через Depends.
"""

from typing import List

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from chat_cleaner import __version__
from chat_cleaner.api import routes
from chat_cleaner.services.directory import ChatDirectory
from chat_cleaner.services.dispatcher import ScheduledDispatcher
from chat_cleaner.services.orchestrator import BulkClearOrchestrator


def create_app(
    directory: ChatDirectory,
    orchestrator: BulkClearOrchestrator,
    dispatcher: ScheduledDispatcher,
    *,
    cors_origins: List[str] | None = None,
) -> FastAPI:
    app = FastAPI(
        title="Chat Cleaner API",
        description="Group cleanup and scheduled broadcasts",
        version=__version__,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins or ["*"],
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["Content-Type"],
    )

    app.state.directory = directory
    app.state.orchestrator = orchestrator
    app.state.dispatcher = dispatcher

    app.include_router(routes.router)
    return app
