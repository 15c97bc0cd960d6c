"""Node implementations for the agent graph."""

import json
from typing import Any, Protocol

from gutcheck.clients.openrouter import CompletionResult, LLMError
from gutcheck.graphs.state import AgentState
from gutcheck.models.messages import ConversationOutcome
from gutcheck.tools.registry import ToolsRegistry
from gutcheck.utils.logging import get_logger

logger = get_logger(__name__)

APOLOGY_MESSAGE = "I apologize, but I encountered an error. Please try again."
EMPTY_REPLY_MESSAGE = "I processed your request and gathered some data for you."
FOLLOW_UP_FAILED_MESSAGE = (
    "I gathered your data but couldn't put together a final answer. Please try asking again."
)


class CompletionClient(Protocol):
    """The part of the OpenRouter client the graph depends on."""

    async def create_completion(
        self,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]] | None = None,
        tool_choice: str | None = None,
        **kwargs,
    ) -> CompletionResult: ...


def _reply_text(result: CompletionResult) -> str:
    content = (result.content or "").strip()
    return content or EMPTY_REPLY_MESSAGE


class AgentNodes:
    """The three steps of an exchange, bound to a client and a tools registry."""

    def __init__(self, client: CompletionClient, registry: ToolsRegistry):
        """Initialize nodes with their collaborators."""
        self.client = client
        self.registry = registry

    async def agent(self, state: AgentState) -> dict[str, Any]:
        """First model call: answer directly or request tools."""
        logger.info(f"Agent node calling model with {len(state.messages)} messages for user {state.user_id}")

        try:
            result = await self.client.create_completion(
                messages=state.messages,
                tools=self.registry.get_tool_schemas(),
                tool_choice="auto",
            )
        except LLMError as e:
            logger.error(f"First model call failed: {e}")
            return {
                "response": APOLOGY_MESSAGE,
                "outcome": ConversationOutcome.FAILED,
                "error": str(e),
            }

        if result.tool_calls:
            names = [tc.name for tc in result.tool_calls]
            logger.info(f"Agent requesting {len(names)} tool calls: {names}")
            return {
                "assistant_message": result.as_assistant_message(),
                "pending_tool_calls": result.tool_calls,
            }

        return {"response": _reply_text(result), "outcome": ConversationOutcome.DIRECT}

    async def tools(self, state: AgentState) -> dict[str, Any]:
        """Execute requested tools one after another, in the order listed."""
        executed = []
        for pending in state.pending_tool_calls:
            executed.append(await self.registry.execute(pending.id, pending.name, pending.arguments, state.user_id))

        failures = sum(1 for call in executed if call.failed)
        if failures:
            logger.warning(f"{failures} of {len(executed)} tool calls failed for user {state.user_id}")

        return {"tool_calls": executed, "pending_tool_calls": []}

    async def respond(self, state: AgentState) -> dict[str, Any]:
        """Second model call: turn tool results into the final answer."""
        messages = [
            *state.messages,
            state.assistant_message,
            *(
                {"role": "tool", "tool_call_id": call.id, "content": json.dumps(call.result)}
                for call in state.tool_calls
            ),
        ]
        logger.info(f"Respond node calling model with {len(state.tool_calls)} tool results")

        try:
            # No tool schema, so the model has to answer in text
            result = await self.client.create_completion(messages=messages)
        except LLMError as e:
            logger.error(f"Follow-up model call failed after running tools: {e}")
            return {
                "response": FOLLOW_UP_FAILED_MESSAGE,
                "outcome": ConversationOutcome.FOLLOW_UP_FAILED,
                "error": str(e),
            }

        return {"response": _reply_text(result), "outcome": ConversationOutcome.AFTER_TOOLS}
