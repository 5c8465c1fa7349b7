"""
Отправка отложенных рассылок.

Раз в QUEUE_POLL_SECONDS проходим по очереди message_queue:
- время не разобралось — пишем в лог и оставляем запись до следующего прохода;
- время ещё не наступило — оставляем;
- время наступило — шлём картинки альбомами (до 10 штук) и текст в каждый чат,
  после чего удаляем запись независимо от того, дошло ли сообщение до всех чатов.

Повторных попыток внутри одного прохода нет: доставка «не более одной попытки».
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Sequence

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from chat_cleaner.logging_config import LOGGER_NAME
from chat_cleaner.models import QueuedMessage
from chat_cleaner.services.media import DecodedImage, chunked, decode_images
from chat_cleaner.services.telegram import TelegramPlatform
from chat_cleaner.utils.repo import Repo

log = logging.getLogger(LOGGER_NAME)


RFC3339_RE = re.compile(
    r"^(?P<date>\d{4}-\d{2}-\d{2})[Tt ](?P<time>\d{2}:\d{2}:\d{2})(?:\.(?P<frac>\d+))?"
    r"(?P<offset>[Zz]|[+-]\d{2}:\d{2})$"
)


def parse_scheduled_at(value: str) -> datetime:
    """
    Разобрать RFC3339-время («2024-05-01T10:00:00Z», «...+03:00»).

    :raises ValueError: формат не тот или нет смещения часового пояса.
    """
    m = RFC3339_RE.match((value or "").strip())
    if m is None:
        raise ValueError(f"not an RFC3339 timestamp with offset: {value!r}")
    offset = m["offset"]
    if offset in ("Z", "z"):
        offset = "+00:00"
    # datetime хранит не больше микросекунд
    frac = f".{m['frac'][:6].ljust(6, '0')}" if m["frac"] else ""
    return datetime.fromisoformat(f"{m['date']}T{m['time']}{frac}{offset}")


@dataclass
class DeliveryReport:
    failures: list[str] = field(default_factory=list)
    sent: int = 0

    @property
    def ok(self) -> bool:
        return not self.failures


@dataclass
class TickReport:
    attempted: list[int] = field(default_factory=list)
    waiting: list[int] = field(default_factory=list)
    unparsable: list[int] = field(default_factory=list)
    failed: list[int] = field(default_factory=list)


class ScheduledDispatcher:
    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        platform: TelegramPlatform,
        *,
        media_group_limit: int = 10,
        drop_after_attempt: bool = True,
        clock: Callable[[], datetime] | None = None,
    ):
        self.session_maker = session_maker
        self.platform = platform
        self.media_group_limit = media_group_limit
        self.drop_after_attempt = drop_after_attempt
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    async def schedule(
        self, *, chats: Sequence[int], message: str, images: Sequence[str], when: str
    ) -> QueuedMessage:
        """Поставить рассылку в очередь. Время проверяется сразу."""
        parse_scheduled_at(when)
        log.info("queueing message for chats %s at %s", list(chats), when)
        async with self.session_maker() as session:
            return await Repo(session).queue_message(chats=chats, message=message, images=images, when=when)

    async def send_to_chats(
        self, chats: Sequence[int], message: str, images: Sequence[DecodedImage]
    ) -> DeliveryReport:
        report = DeliveryReport()
        for chat_id in chats:
            for batch in chunked(images, self.media_group_limit):
                try:
                    await self.platform.send_media_group(chat_id, batch)
                    report.sent += 1
                    log.info("sent media group to chat %s", chat_id)
                except Exception as e:
                    log.error("error sending media group to chat %s: %s", chat_id, e)
                    report.failures.append(f"media:{chat_id}: {e}")
            try:
                await self.platform.send_text(chat_id, message)
                report.sent += 1
                log.info("sent message to chat %s", chat_id)
            except Exception as e:
                log.error("error sending message to chat %s: %s", chat_id, e)
                report.failures.append(f"text:{chat_id}: {e}")
        return report

    async def deliver(self, row: QueuedMessage) -> DeliveryReport:
        images, errors = decode_images(row.images or [])
        for err in errors:
            log.error("queued message %s: dropping %s", row.id, err)
        report = await self.send_to_chats(list(row.chats or []), row.message, images)
        report.failures.extend(errors)
        return report

    async def process(self, row: QueuedMessage, now: datetime, report: TickReport) -> None:
        try:
            when = parse_scheduled_at(row.datetime)
        except ValueError as e:
            log.error("queued message %s has a bad datetime %r: %s", row.id, row.datetime, e)
            report.unparsable.append(row.id)
            return

        if when > now:
            report.waiting.append(row.id)
            return

        log.info("queued message %s is due (%s), sending it now", row.id, row.datetime)
        delivery = await self.deliver(row)

        if delivery.ok or self.drop_after_attempt:
            async with self.session_maker() as session:
                await Repo(session).delete_queued_message(row.id)
            log.info("removed queued message %s", row.id)
        else:
            log.warning("queued message %s kept for retry: %s", row.id, delivery.failures)
        report.attempted.append(row.id)

    async def tick(self) -> TickReport:
        """Один проход по очереди. Ошибка одной записи не мешает остальным."""
        async with self.session_maker() as session:
            rows = await Repo(session).list_queued_messages()

        now = self._clock()
        report = TickReport()
        for row in rows:
            try:
                await self.process(row, now, report)
            except Exception as e:
                log.error("failed to process queued message %s: %s", row.id, e)
                report.failed.append(row.id)
        return report
