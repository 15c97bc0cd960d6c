"""Request and response models for the HTTP API."""

from datetime import datetime

from pydantic import BaseModel, Field

from gutcheck.models.messages import ConversationOutcome, ToolCall


class ChatRequest(BaseModel):
    """Request model for the chat endpoint."""

    message: str = Field(..., min_length=1)
    user_id: str = Field(..., min_length=1)
    session_id: str | None = None


class ChatResponse(BaseModel):
    """Response model for the chat endpoint."""

    message: str
    tool_calls: list[ToolCall]
    error: str | None = None
    outcome: ConversationOutcome
    session_id: str


class AnalysisRequest(BaseModel):
    """Request model for stool image analysis."""

    image_base64: str = Field(..., min_length=1)
    image_format: str = "jpeg"
    user_id: str | None = None


class InsightsRequest(BaseModel):
    """Request model for AI bowel health insights."""

    user_id: str = Field(..., min_length=1)
    days: int = Field(default=30, ge=1, le=365)


class HealthResponse(BaseModel):
    """Response model for health check endpoint."""

    status: str
    timestamp: datetime
    version: str
