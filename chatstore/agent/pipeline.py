"""Send-message flow: target resolution, message construction, reply, naming.

Pattern for one send:

1. Reject input that trims to empty before touching any state.
2. Resolve the target session, creating one when there is none to target.
3. Build the user message and ask the responder for a reply.
4. A synchronous reply is appended together with the user message. An
   awaitable reply is awaited after the user message has been appended and
   persisted; if the session is deleted or the wait is cancelled in the
   meantime the reply is dropped.
5. Name a freshly created session after its first user message.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import dataclass

from chatstore.agent.responders import Responder, echo_responder
from chatstore.config import Settings, settings as default_settings
from chatstore.errors import EmptyMessageError, ResponseBackendError, SessionNotFoundError
from chatstore.memory.session_store import SessionStore
from chatstore.models.messages import Message, Sender, reply_timestamp

logger = logging.getLogger(__name__)


@dataclass
class SendResult:
    session_id: str
    user_message: Message
    assistant_message: Message | None = None
    created: bool = False
    renamed: bool = False
    discarded: bool = False


class InputBuffer:
    """The caller's composer text; cleared only after a successful send."""

    def __init__(self, text: str = "") -> None:
        self.text = text

    def clear(self) -> None:
        self.text = ""


def derive_session_name(text: str, max_length: int = 25, ellipsis: str = "...") -> str:
    """First ``max_length`` characters of ``text``, with ``ellipsis`` if cut."""
    if len(text) <= max_length:
        return text
    return text[:max_length] + ellipsis


class MessagePipeline:
    """Runs user submissions against a ``SessionStore``."""

    def __init__(
        self,
        store: SessionStore,
        responder: Responder | None = None,
        settings: Settings | None = None,
    ) -> None:
        self._store = store
        self._responder: Responder = responder or echo_responder
        self._settings = settings or default_settings
        self._pending: dict[str, set[asyncio.Future]] = {}
        self._cancelled: set[asyncio.Future] = set()

    @property
    def pending(self) -> list[str]:
        """Session ids with a reply still in flight."""
        return [sid for sid, futures in self._pending.items() if futures]

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def submit(self, buffer: InputBuffer) -> SendResult | None:
        """Send the buffer's text and clear it; empty input leaves it untouched."""
        try:
            result = await self.send(buffer.text)
        except EmptyMessageError:
            return None
        buffer.clear()
        return result

    async def send(self, text: str) -> SendResult:
        content = text.strip()
        if not content:
            raise EmptyMessageError("Message text is empty")

        session_id, created = self._resolve_target()
        user_message = Message.create(Sender.USER, content)
        result = SendResult(session_id=session_id, user_message=user_message, created=created)

        session = self._store.get_session(session_id)
        history = [*(session.messages if session else []), user_message]

        error: Exception | None = None
        reply = None
        try:
            reply = self._responder(history)
        except Exception as exc:
            logger.exception("Responder failed for session %s", session_id)
            error = exc

        if not inspect.isawaitable(reply):
            assistant = self._build_reply(user_message, reply, error)
            self._store.append_messages(session_id, [user_message, assistant])
            result.assistant_message = assistant
            result.renamed = self._apply_naming(session_id, content, created)
            return result

        # Async backend: the user message is visible while the reply is pending
        self._store.append_messages(session_id, [user_message])
        result.renamed = self._apply_naming(session_id, content, created)

        future = asyncio.ensure_future(reply)
        self._pending.setdefault(session_id, set()).add(future)
        try:
            reply_text = await future
        except asyncio.CancelledError:
            if future not in self._cancelled:
                raise
            logger.info("Discarding cancelled reply for session %s", session_id)
            result.discarded = True
            return result
        except Exception as exc:
            logger.exception("Response backend failed for session %s", session_id)
            reply_text, error = None, exc
        finally:
            self._forget(session_id, future)

        assistant = self._build_reply(user_message, reply_text, error)
        try:
            self._store.append_messages(session_id, [assistant])
        except SessionNotFoundError:
            logger.info("Session %s was deleted before its reply arrived", session_id)
            result.discarded = True
            return result
        result.assistant_message = assistant
        return result

    def cancel(self, session_id: str) -> bool:
        """Cancel in-flight replies for a session. Returns True if any were pending."""
        futures = self._pending.get(session_id)
        if not futures:
            return False
        for future in futures:
            self._cancelled.add(future)
            future.cancel()
        return True

    def cancel_all(self) -> None:
        for session_id in list(self._pending):
            self.cancel(session_id)

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def _resolve_target(self) -> tuple[str, bool]:
        active = self._store.active_session
        if active is None:
            return self._store.create_session(), True
        if self._settings.auto_create_policy == "empty_active" and not active.messages:
            return self._store.create_session(), True
        return active.id, False

    def _build_reply(
        self, user_message: Message, reply: object, error: Exception | None
    ) -> Message:
        if error is None and not (isinstance(reply, str) and reply.strip()):
            error = ResponseBackendError("Empty reply")
        timestamp = reply_timestamp(user_message, self._settings.response_delay_ms)
        if error is not None:
            text = self._settings.response_error_template.format(
                error=str(error) or type(error).__name__
            )
            return Message.create(Sender.ASSISTANT, text, timestamp=timestamp, is_error=True)
        return Message.create(Sender.ASSISTANT, reply, timestamp=timestamp)

    def _apply_naming(self, session_id: str, content: str, created: bool) -> bool:
        if not created or len(content) <= self._settings.naming_min_length:
            return False
        name = derive_session_name(
            content, self._settings.naming_max_length, self._settings.naming_ellipsis
        )
        self._store.rename_session(session_id, name)
        logger.debug("Named session %s %r", session_id, name)
        return True

    def _forget(self, session_id: str, future: asyncio.Future) -> None:
        self._cancelled.discard(future)
        futures = self._pending.get(session_id)
        if futures is not None:
            futures.discard(future)
            if not futures:
                del self._pending[session_id]
