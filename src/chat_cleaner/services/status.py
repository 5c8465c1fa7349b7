"""
Реестр статусов чистки по чатам.

Живёт в памяти процесса, одна запись на каждый чат из справочника.
Все методы синхронные и не содержат await: в пределах одного event loop
каждая операция (в том числе claim) выполняется атомарно.

Переходы:
    Idle | Error -> Queued -> InProgress -> Idle
                                         -> Error(reason)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Union


class StatusKind(str, Enum):
    IDLE = "Idle"
    QUEUED = "Queued"
    IN_PROGRESS = "InProgress"
    ERROR = "Error"


@dataclass(frozen=True)
class CleaningStatus:
    kind: StatusKind
    reason: Optional[str] = None

    @classmethod
    def idle(cls) -> "CleaningStatus":
        return cls(StatusKind.IDLE)

    @classmethod
    def queued(cls) -> "CleaningStatus":
        return cls(StatusKind.QUEUED)

    @classmethod
    def in_progress(cls) -> "CleaningStatus":
        return cls(StatusKind.IN_PROGRESS)

    @classmethod
    def error(cls, reason: str) -> "CleaningStatus":
        return cls(StatusKind.ERROR, reason)

    @property
    def is_busy(self) -> bool:
        return self.kind in (StatusKind.QUEUED, StatusKind.IN_PROGRESS)

    def to_json(self) -> Union[str, dict]:
        """«Idle» / «Queued» / «InProgress» или {"Error": "<причина>"}."""
        if self.kind is StatusKind.ERROR:
            return {"Error": self.reason or ""}
        return self.kind.value

    def __str__(self) -> str:
        if self.kind is StatusKind.ERROR:
            return f"Error({self.reason})"
        return self.kind.value


class StatusNotFound(KeyError):
    """Для чата нет записи в реестре."""

    def __init__(self, chat_id: int):
        super().__init__(chat_id)
        self.chat_id = chat_id

    def __str__(self) -> str:
        return f"chat {self.chat_id} not found in status registry"


class StatusRegistry:
    def __init__(self) -> None:
        self._statuses: dict[int, CleaningStatus] = {}

    def ensure(self, chat_id: int) -> None:
        self._statuses.setdefault(chat_id, CleaningStatus.idle())

    def fill(self, chat_ids: Iterable[int]) -> None:
        for chat_id in chat_ids:
            self.ensure(chat_id)

    def get(self, chat_id: int) -> CleaningStatus | None:
        return self._statuses.get(chat_id)

    def __contains__(self, chat_id: int) -> bool:
        return chat_id in self._statuses

    def __len__(self) -> int:
        return len(self._statuses)

    def set(self, chat_id: int, status: CleaningStatus) -> None:
        if chat_id not in self._statuses:
            raise StatusNotFound(chat_id)
        self._statuses[chat_id] = status

    def claim(self, chat_id: int) -> bool:
        """
        Idle|Error -> Queued. Возвращает False, если чат уже в очереди/в работе
        или неизвестен. Проверка и запись идут без точки переключения.
        """
        current = self._statuses.get(chat_id)
        if current is None or current.is_busy:
            return False
        self._statuses[chat_id] = CleaningStatus.queued()
        return True

    def remove(self, chat_id: int) -> None:
        self._statuses.pop(chat_id, None)

    def migrate(self, old_id: int, new_id: int) -> None:
        try:
            status = self._statuses.pop(old_id)
        except KeyError:
            raise StatusNotFound(old_id) from None
        current = self._statuses.get(new_id)
        if current is not None and current.is_busy:
            # новый чат уже чистится, его статус не трогаем
            return
        self._statuses[new_id] = status

    def snapshot(self) -> dict[int, CleaningStatus]:
        return dict(self._statuses)
