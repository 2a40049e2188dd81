"""Tests for one assistant turn with a mocked model provider."""
import asyncio
from unittest.mock import AsyncMock

import httpx
import pytest

from helf.llm.base import LLMProvider, LLMResponse
from helf.schemas.assistant import ChatMessage
from helf.schemas.session import SessionContext, SessionCreate
from helf.services.assistant import FALLBACK_REPLY, AssistantService
from helf.services.session import SessionService

SESSION_PLAN_REPLY = """Try this:
```json
{"type": "sessionPlan", "data": {"name": "Pull", "exercises": [{"name": "Row", "target_sets": 3}]}}
```"""

MESSAGES = [ChatMessage(role="user", content="Give me a pull session")]


def mock_provider(**kwargs) -> AsyncMock:
    provider = AsyncMock(spec=LLMProvider)
    provider.chat.configure_mock(**kwargs)
    return provider


def sent_prompt(provider) -> str:
    messages = provider.chat.await_args.args[0]
    return "\n".join(m.content for m in messages)


@pytest.mark.asyncio
async def test_structured_reply_is_processed(db, session_factory):
    provider = mock_provider(return_value=LLMResponse(content=SESSION_PLAN_REPLY))
    service = AssistantService(db, session_factory, provider=provider)

    reply = await service.generate_response(1, MESSAGES)

    assert reply.success is True
    assert reply.structured_data_type == "sessionPlan"
    assert reply.payload["exercises"][0]["name"] == "Row"
    assert reply.content == SESSION_PLAN_REPLY

    messages = provider.chat.await_args.args[0]
    assert messages[-1].content == "Give me a pull session"
    assert "ACTIVE PLAN: none" in sent_prompt(provider)


@pytest.mark.asyncio
async def test_plain_reply(db, session_factory):
    provider = mock_provider(return_value=LLMResponse(content="Rest today."))

    reply = await AssistantService(db, session_factory, provider=provider).generate_response(1, MESSAGES)

    assert reply.content == "Rest today."
    assert reply.success is None


@pytest.mark.asyncio
async def test_timeout_returns_fallback(db, session_factory):
    async def slow(*args, **kwargs):
        await asyncio.sleep(1)

    provider = mock_provider(side_effect=slow)
    service = AssistantService(db, session_factory, provider=provider, timeout=0.05)

    reply = await service.generate_response(1, MESSAGES)

    assert reply.success is False
    assert reply.content == FALLBACK_REPLY
    assert reply.error_code == "AI_TIMEOUT_001"
    assert provider.chat.await_count == 1


@pytest.mark.asyncio
async def test_transport_error_returns_fallback(db, session_factory):
    provider = mock_provider(side_effect=httpx.ConnectError("connection refused"))

    reply = await AssistantService(db, session_factory, provider=provider).generate_response(1, MESSAGES)

    assert reply.success is False
    assert reply.content == FALLBACK_REPLY
    assert reply.error_code == "AI_UNAVAILABLE_001"


@pytest.mark.asyncio
async def test_current_session_in_context(db, session_factory):
    created = await SessionService(db).create_session(1, SessionCreate(name="Leg Day"))
    provider = mock_provider(return_value=LLMResponse(content="ok"))

    await AssistantService(db, session_factory, provider=provider).generate_response(
        1, MESSAGES, session_context=SessionContext(session_id=created.session_id)
    )

    prompt = sent_prompt(provider)
    assert "CURRENT SESSION" in prompt
    assert "Leg Day" in prompt


@pytest.mark.asyncio
async def test_missing_context_session_is_skipped(db, session_factory):
    provider = mock_provider(return_value=LLMResponse(content="ok"))

    reply = await AssistantService(db, session_factory, provider=provider).generate_response(
        1, MESSAGES, session_context=SessionContext(session_id=404)
    )

    assert reply.content == "ok"
    assert "CURRENT SESSION" not in sent_prompt(provider)
