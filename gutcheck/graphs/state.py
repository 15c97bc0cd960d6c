"""State definitions for the agent graph."""

from typing import Any

from pydantic import BaseModel, Field

from gutcheck.clients.openrouter import CompletionToolCall
from gutcheck.models.messages import ConversationOutcome, ToolCall


class AgentState(BaseModel):
    """State passed through the agent graph for one exchange.

    ``messages`` is the first request exactly as sent: system prompt, prior
    history and the new user message. Later nodes append to a copy of it
    rather than mutating it.
    """

    messages: list[dict[str, Any]]
    user_id: str

    # Set by the first model call when it asks for tools
    assistant_message: dict[str, Any] | None = None
    pending_tool_calls: list[CompletionToolCall] = Field(default_factory=list)

    # Executed calls, in the order the model listed them
    tool_calls: list[ToolCall] = Field(default_factory=list)

    # Terminal fields
    response: str | None = None
    outcome: ConversationOutcome | None = None
    error: str | None = None
