"""Response functions that turn a conversation into the next assistant reply.

A responder receives the session history ending with the new user message and
returns the reply text, either directly or as an awaitable. The pipeline
treats the two shapes differently, see ``chatstore.agent.pipeline``.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, Sequence, Union

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage

from chatstore.config import Settings
from chatstore.errors import ChatStoreError, ResponseBackendError
from chatstore.models.messages import Message, Sender

logger = logging.getLogger(__name__)

Responder = Callable[[Sequence[Message]], Union[str, Awaitable[str]]]


def echo_responder(history: Sequence[Message]) -> str:
    """Reply with the text of the latest user message."""
    for message in reversed(history):
        if message.sender is Sender.USER:
            return message.text
    raise ResponseBackendError("No user message to respond to")


def to_langchain_messages(history: Sequence[Message]) -> list[BaseMessage]:
    """Convert stored messages to LangChain messages, skipping error placeholders."""
    converted: list[BaseMessage] = []
    for message in history:
        if message.is_error:
            continue
        if message.sender is Sender.USER:
            converted.append(HumanMessage(content=message.text))
        else:
            converted.append(AIMessage(content=message.text))
    return converted


class LangChainResponder:
    """Async responder backed by any LangChain chat model."""

    def __init__(self, llm: BaseChatModel, system_prompt: str | None = None) -> None:
        self._llm = llm
        self._system_prompt = system_prompt

    async def __call__(self, history: Sequence[Message]) -> str:
        messages = to_langchain_messages(history)
        if self._system_prompt:
            messages.insert(0, SystemMessage(content=self._system_prompt))

        result = await self._llm.ainvoke(messages)
        text = result.content if isinstance(result.content, str) else ""
        if not text.strip():
            raise ResponseBackendError("Model returned an empty reply")
        logger.debug("Model replied with %d chars", len(text))
        return text


_BUILTIN: dict[str, Responder] = {
    "echo": echo_responder,
}


def build_responder(settings: Settings) -> Responder:
    """Return the responder named by ``settings.responder``."""
    try:
        return _BUILTIN[settings.responder]
    except KeyError:
        raise ChatStoreError(f"Unknown responder: {settings.responder!r}") from None
