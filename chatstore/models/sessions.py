"""Session models for conversation management."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from chatstore.models.messages import Message, next_millis, utc_now


class Session(BaseModel):
    """A named conversation thread."""

    id: str
    name: str
    messages: list[Message] = Field(default_factory=list)

    @classmethod
    def create(cls, name: str) -> Session:
        return cls(id=f"chat-{next_millis()}", name=name)

    @property
    def message_count(self) -> int:
        return len(self.messages)


class StoreState(BaseModel):
    """Everything the store persists: sessions newest first plus the active id."""

    sessions: list[Session] = Field(default_factory=list)
    active_session_id: Optional[str] = None

    def find(self, session_id: str | None) -> Session | None:
        if session_id is None:
            return None
        return next((s for s in self.sessions if s.id == session_id), None)


def placeholder_name(template: str, date_format: str, when: datetime | None = None) -> str:
    """Render the placeholder name given to freshly created sessions."""
    when = when or utc_now()
    return template.format(date=when.strftime(date_format))


class SessionSummary(BaseModel):
    """Summary of a session for list views."""

    id: str
    name: str
    message_count: int = 0
    is_active: bool = False


class SessionListResponse(BaseModel):
    """Response for listing sessions."""

    sessions: list[SessionSummary]
    active_session_id: Optional[str] = None
    total: int


class SessionHistoryResponse(BaseModel):
    """Full transcript of one session."""

    session_id: str
    name: str
    messages: list[Message]
