"""Tests for the conversation service and session management."""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, Mock

import pytest
from fakes import USER_ID

from gutcheck.clients.openrouter import OpenRouterConfig
from gutcheck.models.messages import AgentResponse, ChatMessage, ConversationOutcome, ToolCall
from gutcheck.models.session import Session
from gutcheck.services.conversation import ConversationService
from gutcheck.services.session_manager import InMemorySessionManager


@pytest.fixture
def session():
    return Session(session_id="test-session", user_id=USER_ID)


@pytest.fixture
def client():
    client = Mock()
    client.config = OpenRouterConfig(max_message_tokens=1000, tokenizer_model=None)
    client.validate_message_tokens.return_value = None
    return client


def make_service(client, response: AgentResponse) -> tuple[ConversationService, AsyncMock]:
    orchestrator = Mock()
    orchestrator.converse = AsyncMock(return_value=response)
    return ConversationService(orchestrator, client), orchestrator.converse


class TestConversationService:
    """Tests for history handling around each exchange."""

    @pytest.mark.asyncio
    async def test_too_long_message_rejected(self, client, session):
        client.validate_message_tokens.side_effect = ValueError("Message exceeds token limit")
        service, converse = make_service(client, AgentResponse(message="x", outcome=ConversationOutcome.DIRECT))

        with pytest.raises(ValueError, match="Please keep messages under 1000 tokens"):
            await service.process_message("Long message", session)

        client.validate_message_tokens.assert_called_once_with("Long message")
        converse.assert_not_called()
        assert session.history == []

    @pytest.mark.asyncio
    async def test_direct_exchange_appended(self, client, session):
        service, converse = make_service(
            client, AgentResponse(message="Hello there", outcome=ConversationOutcome.DIRECT)
        )

        response = await service.process_message("Hi", session)

        assert response.message == "Hello there"
        converse.assert_awaited_once_with("Hi", session.history, USER_ID)
        assert [(m.role, m.content) for m in session.history] == [("user", "Hi"), ("assistant", "Hello there")]
        assert session.history[1].tool_calls is None

    @pytest.mark.asyncio
    async def test_tool_calls_recorded_on_assistant_message(self, client, session):
        call = ToolCall(id="call_1", name="queryUserData", arguments={"days": 7}, result={"summary": "ok"})
        service, _ = make_service(
            client,
            AgentResponse(message="Your week looks good", tool_calls=[call], outcome=ConversationOutcome.AFTER_TOOLS),
        )

        await service.process_message("How was my week?", session)

        assert session.history[1].tool_calls == [call]

    @pytest.mark.asyncio
    async def test_follow_up_failure_still_appended(self, client, session):
        service, _ = make_service(
            client,
            AgentResponse(message="partial", error="timeout", outcome=ConversationOutcome.FOLLOW_UP_FAILED),
        )

        await service.process_message("How was my week?", session)

        assert len(session.history) == 2

    @pytest.mark.asyncio
    async def test_failed_exchange_leaves_history_untouched(self, client, session):
        session.history.append(ChatMessage(role="user", content="earlier"))
        service, _ = make_service(
            client, AgentResponse(message="sorry", error="503", outcome=ConversationOutcome.FAILED)
        )

        response = await service.process_message("Hi", session)

        assert response.outcome == ConversationOutcome.FAILED
        assert [m.content for m in session.history] == ["earlier"]

    @pytest.mark.asyncio
    async def test_history_passed_to_orchestrator(self, client, session):
        seen = []

        async def converse(message, history, user_id):
            seen.append([m.content for m in history])
            return AgentResponse(message=f"reply to {message}", outcome=ConversationOutcome.DIRECT)

        orchestrator = Mock()
        orchestrator.converse = converse
        service = ConversationService(orchestrator, client)

        await service.process_message("first", session)
        await service.process_message("second", session)

        assert seen == [[], ["first", "reply to first"]]


class TestInMemorySessionManager:
    """Tests for session lifecycle."""

    def test_create_and_get(self):
        manager = InMemorySessionManager()

        session = manager.create_session(USER_ID)

        assert session.user_id == USER_ID
        assert len(session.session_id) > 0
        assert manager.get_session(session.session_id) is session
        assert manager.get_session_count() == 1

    def test_unique_ids(self):
        manager = InMemorySessionManager()

        ids = {manager.create_session(USER_ID).session_id for _ in range(20)}

        assert len(ids) == 20

    def test_unknown_session(self):
        assert InMemorySessionManager().get_session("missing") is None

    def test_delete(self):
        manager = InMemorySessionManager()
        session = manager.create_session(USER_ID)

        assert manager.delete_session(session.session_id) is True
        assert manager.delete_session(session.session_id) is False
        assert manager.get_session(session.session_id) is None

    def test_expired_sessions_removed(self):
        manager = InMemorySessionManager(session_timeout_minutes=30)
        session = manager.create_session(USER_ID)
        session.last_activity = datetime.now(UTC) - timedelta(minutes=31)

        assert manager.get_session(session.session_id) is None
        assert manager.get_session_count() == 0
