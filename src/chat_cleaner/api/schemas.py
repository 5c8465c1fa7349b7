"""
Тела запросов HTTP API.
"""

from typing import List

from pydantic import BaseModel, Field, field_validator

from chat_cleaner.services.dispatcher import parse_scheduled_at


class ClearChatsBody(BaseModel):
    chats: List[int]


class SendMessageBody(BaseModel):
    chats: List[int] = Field(..., min_length=1)
    message: str
    images: List[str] = Field(default_factory=list)
    datetime: str

    @field_validator("datetime")
    @classmethod
    def _rfc3339(cls, value: str) -> str:
        parse_scheduled_at(value)
        return value
