"""Edit and copy actions on messages that are already in a session.

The edit buffer (which message, its draft text) is transient interaction
state. It lives here, never in the store, and is dropped on session switch.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable

from chatstore.memory.session_store import SessionStore
from chatstore.models.messages import Message, Sender

logger = logging.getLogger(__name__)

Clipboard = Callable[[str], None]


class EditController:
    """One edit at a time, confirmed through ``SessionStore.edit_message``."""

    def __init__(
        self,
        store: SessionStore,
        *,
        clipboard: Clipboard | None = None,
        editable_senders: Iterable[Sender] = (Sender.ASSISTANT,),
    ) -> None:
        self._store = store
        self._clipboard = clipboard
        self._editable = frozenset(editable_senders)
        self._session_id: str | None = None
        self._message_id: str | None = None
        self._draft: str = ""

    @property
    def is_editing(self) -> bool:
        return self._message_id is not None

    @property
    def editing_message_id(self) -> str | None:
        return self._message_id

    @property
    def draft(self) -> str:
        return self._draft

    def can_edit(self, message: Message) -> bool:
        return message.sender in self._editable and not message.is_error

    def begin(self, session_id: str, message: Message) -> bool:
        if not self.can_edit(message):
            logger.warning("Message %s is not editable", message.id)
            return False
        self._session_id = session_id
        self._message_id = message.id
        self._draft = message.text
        return True

    def update_draft(self, text: str) -> None:
        if self.is_editing:
            self._draft = text

    def confirm(self) -> bool:
        """Save the draft. An empty draft is refused and editing continues."""
        if not self.is_editing:
            return False
        if not self._draft.strip():
            logger.warning("Cannot save empty text for message %s", self._message_id)
            return False
        saved = self._store.edit_message(self._session_id, self._message_id, self._draft)
        self.cancel()
        return saved

    def cancel(self) -> None:
        self._session_id = None
        self._message_id = None
        self._draft = ""

    def on_session_changed(self, session_id: str | None) -> None:
        if self.is_editing and session_id != self._session_id:
            logger.debug("Dropping edit of %s after session switch", self._message_id)
            self.cancel()

    def copy(self, text: str) -> bool:
        """Put ``text`` on the clipboard. Failures are logged, never raised."""
        if self._clipboard is None:
            logger.warning("Clipboard unavailable, nothing copied")
            return False
        try:
            self._clipboard(text)
        except Exception as exc:
            logger.error("Failed to copy text: %s", exc)
            return False
        logger.debug("Copied %d chars to clipboard", len(text))
        return True
