"""Tests for the agent graph and orchestrator."""

import json

import pytest
from fakes import USER_ID, ScriptedCompletionClient, text_reply, tool_reply

from gutcheck.clients.openrouter import LLMConnectionError, LLMStatusError
from gutcheck.graphs.agent import SYSTEM_PROMPT, AgentOrchestrator, build_messages
from gutcheck.graphs.nodes import APOLOGY_MESSAGE, EMPTY_REPLY_MESSAGE, FOLLOW_UP_FAILED_MESSAGE
from gutcheck.models.messages import ChatMessage, ConversationOutcome

WEEKLY_QUESTION = "How has my gut health been this week?"


class TestBuildMessages:
    """Tests for the first request's message list."""

    def test_system_history_then_user(self):
        history = [
            ChatMessage(role="user", content="Hi"),
            ChatMessage(role="assistant", content="Hello! How can I help?"),
        ]

        messages = build_messages("What about fiber?", history)

        assert messages == [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": "Hi"},
            {"role": "assistant", "content": "Hello! How can I help?"},
            {"role": "user", "content": "What about fiber?"},
        ]

    def test_empty_history(self):
        messages = build_messages("Hi", [])

        assert [m["role"] for m in messages] == ["system", "user"]


class TestDirectAnswer:
    """Exchanges where the model answers without tools."""

    @pytest.mark.asyncio
    async def test_direct_outcome(self, registry):
        client = ScriptedCompletionClient(text_reply("Fiber helps regularity."))
        orchestrator = AgentOrchestrator(client, registry)

        response = await orchestrator.converse("Is fiber good for me?", [], USER_ID)

        assert response.outcome == ConversationOutcome.DIRECT
        assert response.message == "Fiber helps regularity."
        assert response.tool_calls == []
        assert response.error is None

    @pytest.mark.asyncio
    async def test_first_request_offers_catalog(self, registry):
        client = ScriptedCompletionClient(text_reply("Hello"))
        orchestrator = AgentOrchestrator(client, registry)

        await orchestrator.converse("Hi", [], USER_ID)

        assert len(client.requests) == 1
        request = client.requests[0]
        assert request["tools"] == registry.get_tool_schemas()
        assert request["tool_choice"] == "auto"
        assert request["messages"][0] == {"role": "system", "content": SYSTEM_PROMPT}
        assert request["messages"][-1] == {"role": "user", "content": "Hi"}

    @pytest.mark.asyncio
    async def test_empty_content_gets_generic_message(self, registry):
        client = ScriptedCompletionClient(text_reply(""))
        orchestrator = AgentOrchestrator(client, registry)

        response = await orchestrator.converse("Hi", [], USER_ID)

        assert response.outcome == ConversationOutcome.DIRECT
        assert response.message == EMPTY_REPLY_MESSAGE

    @pytest.mark.asyncio
    async def test_empty_user_message_rejected(self, registry):
        orchestrator = AgentOrchestrator(ScriptedCompletionClient(), registry)

        with pytest.raises(ValueError, match="Message cannot be empty"):
            await orchestrator.converse("   ", [], USER_ID)


class TestToolExchange:
    """Exchanges where the model asks for tools."""

    @pytest.mark.asyncio
    async def test_weekly_gut_health_scenario(self, registry):
        client = ScriptedCompletionClient(
            tool_reply(("call_1", "queryUserData", {"days": 7})),
            text_reply("Based on your data, your consistency score this week is 75%."),
        )
        orchestrator = AgentOrchestrator(client, registry)

        response = await orchestrator.converse(WEEKLY_QUESTION, [], USER_ID)

        assert response.outcome == ConversationOutcome.AFTER_TOOLS
        assert response.message == "Based on your data, your consistency score this week is 75%."
        assert response.error is None
        assert len(response.tool_calls) == 1
        call = response.tool_calls[0]
        assert call.name == "queryUserData"
        assert "error" not in call.result
        assert call.result["insights"]["consistencyScore"] == 75

    @pytest.mark.asyncio
    async def test_follow_up_request_carries_tool_results(self, registry):
        client = ScriptedCompletionClient(
            tool_reply(("call_1", "queryUserData", {"days": 7})),
            text_reply("Done."),
        )
        orchestrator = AgentOrchestrator(client, registry)

        await orchestrator.converse(WEEKLY_QUESTION, [], USER_ID)

        assert len(client.requests) == 2
        follow_up = client.requests[1]
        assert follow_up["tools"] is None
        assert follow_up["messages"][:2] == client.requests[0]["messages"]

        assistant = follow_up["messages"][2]
        assert assistant["role"] == "assistant"
        assert assistant["tool_calls"] == [
            {"id": "call_1", "type": "function", "function": {"name": "queryUserData", "arguments": '{"days": 7}'}}
        ]

        tool_message = follow_up["messages"][3]
        assert tool_message["role"] == "tool"
        assert tool_message["tool_call_id"] == "call_1"
        assert json.loads(tool_message["content"])["insights"]["consistencyScore"] == 75

    @pytest.mark.asyncio
    async def test_tools_run_in_requested_order(self, registry):
        client = ScriptedCompletionClient(
            tool_reply(
                ("call_a", "getHealthData", {"days": 7}),
                ("call_b", "queryUserData", {"days": 7}),
                ("call_c", "searchPubMed", {"query": "sleep"}),
            ),
            text_reply("Summary"),
        )
        orchestrator = AgentOrchestrator(client, registry)

        response = await orchestrator.converse("Does sleep affect me?", [], USER_ID)

        assert [c.id for c in response.tool_calls] == ["call_a", "call_b", "call_c"]
        tool_messages = [m for m in client.requests[1]["messages"] if m["role"] == "tool"]
        assert [m["tool_call_id"] for m in tool_messages] == ["call_a", "call_b", "call_c"]

    @pytest.mark.asyncio
    async def test_partial_failure_is_isolated(self, registry):
        async def failing_search(query):
            raise RuntimeError("literature backend down")

        registry.literature.search = failing_search
        client = ScriptedCompletionClient(
            tool_reply(
                ("call_1", "queryUserData", {"days": 7}),
                ("call_2", "searchPubMed", {"query": "constipation"}),
            ),
            text_reply("Your data looks good; I couldn't reach the research database."),
        )
        orchestrator = AgentOrchestrator(client, registry)

        response = await orchestrator.converse(WEEKLY_QUESTION, [], USER_ID)

        assert response.outcome == ConversationOutcome.AFTER_TOOLS
        assert len(response.tool_calls) == 2
        assert [c.failed for c in response.tool_calls] == [False, True]
        assert response.tool_calls[1].result == {"error": "literature backend down"}
        assert response.message

        tool_contents = [json.loads(m["content"]) for m in client.requests[1]["messages"] if m["role"] == "tool"]
        assert tool_contents[1] == {"error": "literature backend down"}

    @pytest.mark.asyncio
    async def test_unknown_tool_and_malformed_arguments(self, registry):
        client = ScriptedCompletionClient(
            tool_reply(
                ("call_1", "bookAppointment", {}),
                ("call_2", "queryUserData", '{"days": '),
            ),
            text_reply("Sorry, I could not fetch your data."),
        )
        orchestrator = AgentOrchestrator(client, registry)

        response = await orchestrator.converse(WEEKLY_QUESTION, [], USER_ID)

        assert response.outcome == ConversationOutcome.AFTER_TOOLS
        assert response.tool_calls[0].result == {"error": "Unknown tool: bookAppointment"}
        assert response.tool_calls[1].result["error"].startswith("Malformed tool arguments")

    @pytest.mark.asyncio
    async def test_empty_final_content_gets_generic_message(self, registry):
        client = ScriptedCompletionClient(
            tool_reply(("call_1", "queryUserData", {"days": 7})),
            text_reply(None),
        )
        orchestrator = AgentOrchestrator(client, registry)

        response = await orchestrator.converse(WEEKLY_QUESTION, [], USER_ID)

        assert response.outcome == ConversationOutcome.AFTER_TOOLS
        assert response.message == EMPTY_REPLY_MESSAGE


class TestFailures:
    """Transport failures in either phase."""

    @pytest.mark.asyncio
    async def test_first_phase_failure_is_single_attempt(self, registry):
        client = ScriptedCompletionClient(LLMStatusError(503, "upstream unavailable"), text_reply("never sent"))
        orchestrator = AgentOrchestrator(client, registry)

        response = await orchestrator.converse(WEEKLY_QUESTION, [], USER_ID)

        assert len(client.requests) == 1
        assert response.outcome == ConversationOutcome.FAILED
        assert response.message == APOLOGY_MESSAGE
        assert "503" in response.error
        assert response.tool_calls == []

    @pytest.mark.asyncio
    async def test_follow_up_failure_keeps_tool_calls(self, registry):
        client = ScriptedCompletionClient(
            tool_reply(("call_1", "queryUserData", {"days": 7})),
            LLMConnectionError("OpenRouter connection error: timed out"),
        )
        orchestrator = AgentOrchestrator(client, registry)

        response = await orchestrator.converse(WEEKLY_QUESTION, [], USER_ID)

        assert len(client.requests) == 2
        assert response.outcome == ConversationOutcome.FOLLOW_UP_FAILED
        assert response.message == FOLLOW_UP_FAILED_MESSAGE
        assert "timed out" in response.error
        assert len(response.tool_calls) == 1
        assert not response.tool_calls[0].failed

    @pytest.mark.asyncio
    async def test_unexpected_error_becomes_failed_outcome(self, registry):
        client = ScriptedCompletionClient(RuntimeError("bug"))
        orchestrator = AgentOrchestrator(client, registry)

        response = await orchestrator.converse("Hi", [], USER_ID)

        assert response.outcome == ConversationOutcome.FAILED
        assert response.message == APOLOGY_MESSAGE
        assert response.error == "bug"
