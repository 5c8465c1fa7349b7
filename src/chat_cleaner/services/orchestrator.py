"""
Массовая чистка нескольких чатов.

claim (Idle|Error -> Queued) — единственная защита от двойной чистки одного
и того же чата; чаты, которые уже в очереди или в работе, пропускаются.
Чистки идут строго по очереди, чат за чатом.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, Optional

from chat_cleaner.logging_config import LOGGER_NAME
from chat_cleaner.services.cleaner import MembershipCleaner
from chat_cleaner.services.status import CleaningStatus, StatusNotFound, StatusRegistry

log = logging.getLogger(LOGGER_NAME)


@dataclass
class ClearJob:
    id: str
    chats: list[int]
    claimed: list[int] = field(default_factory=list)
    done: bool = False
    error: Optional[str] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_json(self) -> dict:
        return {
            "id": self.id,
            "chats": self.chats,
            "claimed": self.claimed,
            "done": self.done,
            "error": self.error,
            "created_at": self.created_at.isoformat(),
        }


class BulkClearOrchestrator:
    def __init__(self, registry: StatusRegistry, cleaner: MembershipCleaner, *, max_jobs: int = 100):
        self.registry = registry
        self.cleaner = cleaner
        self.max_jobs = max_jobs
        self._jobs: dict[str, ClearJob] = {}
        self._tasks: set[asyncio.Task] = set()

    def claim_all(self, chat_ids: Iterable[int]) -> list[int]:
        claimed: list[int] = []
        for chat_id in chat_ids:
            if chat_id in claimed:
                continue
            if self.registry.claim(chat_id):
                claimed.append(chat_id)
            elif chat_id not in self.registry:
                log.warning("clear requested for unknown chat %s, skipping", chat_id)
            else:
                log.info("chat %s is already %s, skipping", chat_id, self.registry.get(chat_id))
        return claimed

    async def sweep(self, chat_id: int) -> CleaningStatus | None:
        """Почистить один уже захваченный чат и вернуть его итоговый статус."""
        try:
            await self.cleaner.cleanup_and_remove_all(chat_id)
        except Exception as e:
            log.error("failed to clear chat %s: %s", chat_id, e)
            try:
                self.registry.set(chat_id, CleaningStatus.error(str(e)))
            except StatusNotFound:
                # чат удалили (например, жнец) прямо во время чистки
                log.warning("chat %s disappeared during cleanup", chat_id)
        return self.registry.get(chat_id)

    async def clear_groups(self, chat_ids: Iterable[int], *, job: ClearJob | None = None) -> list[int]:
        """
        Захватить свободные чаты и почистить их по очереди.

        :return: список чатов, которые были захвачены этим вызовом.
        """
        claimed = self.claim_all(chat_ids)
        if job is not None:
            job.claimed = list(claimed)
        log.info("clearing chats %s", claimed)
        for chat_id in claimed:
            await self.sweep(chat_id)
        return claimed

    def submit(self, chat_ids: Iterable[int]) -> ClearJob:
        """Запустить clear_groups в фоне и сразу вернуть задание с id для опроса."""
        chats = [int(c) for c in chat_ids]
        job = ClearJob(id=uuid.uuid4().hex, chats=chats)
        self._remember(job)

        task = asyncio.create_task(self.clear_groups(chats, job=job), name=f"clear_chats:{job.id}")
        self._tasks.add(task)
        task.add_done_callback(lambda t: self._finish(job, t))
        return job

    def get_job(self, job_id: str) -> ClearJob | None:
        return self._jobs.get(job_id)

    def _remember(self, job: ClearJob) -> None:
        self._jobs[job.id] = job
        # храним только последние max_jobs завершённых заданий
        if len(self._jobs) > self.max_jobs:
            for old_id in [j.id for j in self._jobs.values() if j.done][: len(self._jobs) - self.max_jobs]:
                self._jobs.pop(old_id, None)

    def _finish(self, job: ClearJob, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        job.done = True
        if task.cancelled():
            job.error = "cancelled"
            return
        exc = task.exception()
        if exc is not None:
            job.error = str(exc)
            log.error("clear job %s crashed: %s", job.id, exc, exc_info=exc)

    async def wait_all(self) -> None:
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
