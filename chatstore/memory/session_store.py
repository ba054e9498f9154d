"""In-memory authoritative session state with write-through persistence.

The store exclusively owns the ordered session list and the active session id.
Every mutation runs under one lock and is followed by ``StorageAdapter.save``;
a failed save is logged and the in-memory change stands.
"""

from __future__ import annotations

import logging
import threading
from typing import Sequence

from chatstore.config import Settings, settings as default_settings
from chatstore.errors import MessageNotFoundError, SessionNotFoundError, StorageError
from chatstore.memory.storage import StorageAdapter
from chatstore.models.messages import Message
from chatstore.models.sessions import Session, StoreState, placeholder_name

logger = logging.getLogger(__name__)


class SessionStore:
    """Ordered sessions (newest first) plus a weak reference to the active one."""

    def __init__(self, adapter: StorageAdapter, settings: Settings | None = None) -> None:
        self._adapter = adapter
        self._settings = settings or default_settings
        self._lock = threading.RLock()
        self._state: StoreState = adapter.load()

    # ------------------------------------------------------------------
    # Read model
    # ------------------------------------------------------------------

    @property
    def sessions(self) -> list[Session]:
        with self._lock:
            return list(self._state.sessions)

    @property
    def active_session_id(self) -> str | None:
        return self._state.active_session_id

    @property
    def active_session(self) -> Session | None:
        with self._lock:
            return self._state.find(self._state.active_session_id)

    @property
    def active_messages(self) -> list[Message]:
        """Messages of the active session, or an empty list."""
        session = self.active_session
        return list(session.messages) if session else []

    def get_session(self, session_id: str) -> Session | None:
        with self._lock:
            return self._state.find(session_id)

    def find_message(self, session_id: str, message_id: str) -> Message:
        with self._lock:
            session = self._state.find(session_id)
            if session is None:
                raise SessionNotFoundError(session_id)
            for message in session.messages:
                if message.id == message_id:
                    return message
            raise MessageNotFoundError(session_id, message_id)

    def snapshot(self) -> StoreState:
        with self._lock:
            return self._state.model_copy(deep=True)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def create_session(self) -> str:
        """Prepend a new empty session, make it active, and return its id."""
        name = placeholder_name(
            self._settings.placeholder_name_template,
            self._settings.placeholder_date_format,
        )
        with self._lock:
            session = Session.create(name)
            self._state.sessions.insert(0, session)
            self._state.active_session_id = session.id
            self._persist()
        logger.info("Created session %s", session.id)
        return session.id

    def select_session(self, session_id: str) -> bool:
        with self._lock:
            if self._state.find(session_id) is None:
                logger.warning("Cannot select unknown session %s", session_id)
                return False
            self._state.active_session_id = session_id
            self._persist()
        return True

    def delete_session(self, session_id: str) -> bool:
        with self._lock:
            remaining = [s for s in self._state.sessions if s.id != session_id]
            if len(remaining) == len(self._state.sessions):
                logger.warning("Cannot delete unknown session %s", session_id)
                return False
            self._state.sessions = remaining
            if self._state.active_session_id == session_id:
                self._state.active_session_id = remaining[0].id if remaining else None
            self._persist()
        logger.info(
            "Deleted session %s, active=%s", session_id, self._state.active_session_id
        )
        return True

    def append_messages(self, session_id: str, messages: Sequence[Message]) -> None:
        """Append messages in order. Raises ``SessionNotFoundError``."""
        with self._lock:
            session = self._state.find(session_id)
            if session is None:
                raise SessionNotFoundError(session_id)
            if not messages:
                return
            session.messages.extend(messages)
            self._persist()
        logger.debug("Appended %d message(s) to %s", len(messages), session_id)

    def rename_session(self, session_id: str, name: str) -> None:
        with self._lock:
            session = self._state.find(session_id)
            if session is None:
                raise SessionNotFoundError(session_id)
            session.name = name
            self._persist()

    def edit_message(self, session_id: str, message_id: str, new_text: str) -> bool:
        """Replace a message's text in place. Returns False when nothing changed."""
        text = new_text.strip()
        if not text:
            logger.warning("Ignoring empty edit for message %s", message_id)
            return False
        with self._lock:
            try:
                message = self.find_message(session_id, message_id)
            except (SessionNotFoundError, MessageNotFoundError) as exc:
                logger.warning("Edit skipped: %s", exc)
                return False
            message.text = text
            self._persist()
        return True

    def _persist(self) -> None:
        try:
            self._adapter.save(self._state)
        except StorageError:
            logger.exception("Failed to persist session state")
