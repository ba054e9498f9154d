"""Tests for the built-in responders."""

import pytest
from langchain_core.language_models.fake_chat_models import FakeListChatModel
from langchain_core.messages import AIMessage, HumanMessage
from pydantic import ValidationError

from chatstore.agent.pipeline import MessagePipeline
from chatstore.agent.responders import (
    LangChainResponder,
    build_responder,
    echo_responder,
    to_langchain_messages,
)
from chatstore.config import Settings
from chatstore.errors import ChatStoreError, ResponseBackendError
from chatstore.memory.session_store import SessionStore
from chatstore.models.messages import Message, Sender


def test_echo_returns_latest_user_text() -> None:
    history = [
        Message.create(Sender.USER, "first"),
        Message.create(Sender.ASSISTANT, "first"),
        Message.create(Sender.USER, "second"),
    ]
    assert echo_responder(history) == "second"


def test_echo_without_user_message_raises() -> None:
    with pytest.raises(ResponseBackendError):
        echo_responder([])


def test_to_langchain_messages_skips_error_replies() -> None:
    history = [
        Message.create(Sender.USER, "hi there"),
        Message.create(Sender.ASSISTANT, "Response failed: x", is_error=True),
        Message.create(Sender.USER, "retry"),
        Message.create(Sender.ASSISTANT, "done"),
    ]
    converted = to_langchain_messages(history)

    assert [type(m) for m in converted] == [HumanMessage, HumanMessage, AIMessage]
    assert [m.content for m in converted] == ["hi there", "retry", "done"]


@pytest.mark.asyncio
async def test_langchain_responder_returns_model_text() -> None:
    responder = LangChainResponder(
        FakeListChatModel(responses=["The capital is Paris."]),
        system_prompt="Be brief.",
    )
    reply = await responder([Message.create(Sender.USER, "capital of France?")])
    assert reply == "The capital is Paris."


@pytest.mark.asyncio
async def test_langchain_responder_rejects_empty_reply() -> None:
    responder = LangChainResponder(FakeListChatModel(responses=["   "]))
    with pytest.raises(ResponseBackendError):
        await responder([Message.create(Sender.USER, "hello")])


@pytest.mark.asyncio
async def test_pipeline_with_langchain_responder(store: SessionStore) -> None:
    pipeline = MessagePipeline(
        store, LangChainResponder(FakeListChatModel(responses=["Sure, here it is."]))
    )
    result = await pipeline.send("write me a haiku")

    assert result.assistant_message.text == "Sure, here it is."
    assert [m.sender for m in store.active_messages] == [Sender.USER, Sender.ASSISTANT]


def test_build_responder(test_settings: Settings) -> None:
    assert build_responder(test_settings) is echo_responder
    with pytest.raises(ChatStoreError):
        build_responder(test_settings.model_copy(update={"responder": "oracle"}))


def test_settings_reject_unknown_responder() -> None:
    with pytest.raises(ValidationError):
        Settings(responder="oracle")
