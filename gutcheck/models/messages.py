"""Chat message and tool call data models."""

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any, Literal

from pydantic import BaseModel, Field


class ToolCall(BaseModel):
    """A tool invocation requested by the model, together with its result."""

    id: str
    name: str
    arguments: dict[str, Any] = Field(default_factory=dict)
    result: dict[str, Any]

    @property
    def failed(self) -> bool:
        """Whether the tool reported an error instead of data."""
        return "error" in self.result


class ChatMessage(BaseModel):
    """A message in a chat session."""

    role: Literal["user", "assistant", "system"]
    content: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    tool_calls: list[ToolCall] | None = None


class ConversationOutcome(StrEnum):
    """Terminal state of a single orchestrated exchange."""

    DIRECT = "direct"  # answered without tools
    AFTER_TOOLS = "after_tools"  # answered from tool results
    FOLLOW_UP_FAILED = "follow_up_failed"  # tools ran, final answer request failed
    FAILED = "failed"  # first request failed, nothing ran


class AgentResponse(BaseModel):
    """Result of one orchestrated exchange."""

    message: str
    tool_calls: list[ToolCall] = Field(default_factory=list)
    error: str | None = None
    outcome: ConversationOutcome
