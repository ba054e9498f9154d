"""Message models for the session store and the chat API."""

from __future__ import annotations

import threading
import time
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class Sender(str, Enum):
    """Message sender role."""

    USER = "user"
    ASSISTANT = "assistant"

    @property
    def tag(self) -> str:
        """Short tag used inside message ids."""
        return "user" if self is Sender.USER else "ai"


_clock_lock = threading.Lock()
_last_millis = 0


def next_millis() -> int:
    """Return epoch milliseconds, strictly increasing across calls."""
    global _last_millis
    with _clock_lock:
        now = time.time_ns() // 1_000_000
        _last_millis = max(now, _last_millis + 1)
        return _last_millis


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Message(BaseModel):
    """Persisted chat message."""

    id: str
    text: str
    sender: Sender
    timestamp: datetime = Field(default_factory=utc_now)
    is_error: bool = False

    @field_validator("text")
    @classmethod
    def _text_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("message text must not be empty")
        return value

    @field_validator("sender", mode="before")
    @classmethod
    def _legacy_sender(cls, value: object) -> object:
        # Older saves tag assistant replies as "ai"
        if value == "ai":
            return Sender.ASSISTANT
        return value

    @field_validator("timestamp")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @classmethod
    def create(
        cls,
        sender: Sender,
        text: str,
        *,
        timestamp: datetime | None = None,
        is_error: bool = False,
    ) -> Message:
        """Build a new message with a fresh ``msg-<millis>-<tag>`` id."""
        return cls(
            id=f"msg-{next_millis()}-{sender.tag}",
            text=text,
            sender=sender,
            timestamp=timestamp or utc_now(),
            is_error=is_error,
        )


def reply_timestamp(user_message: Message, delay_ms: int) -> datetime:
    """Timestamp for a reply: never earlier than the user message plus delay."""
    return max(utc_now(), user_message.timestamp + timedelta(milliseconds=delay_ms))


class ChatRequest(BaseModel):
    """Message submitted by the client."""

    content: str


class EditRequest(BaseModel):
    """Replacement text for an existing message."""

    text: str


class ChatResponse(BaseModel):
    """Outcome of one send through the pipeline."""

    session_id: str
    session_name: str
    created: bool = False
    renamed: bool = False
    discarded: bool = False
    user_message: Message
    assistant_message: Optional[Message] = None
