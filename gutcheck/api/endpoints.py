"""API endpoints for the gut health assistant."""

import base64
import binascii
from datetime import UTC, date, datetime, timedelta

from fastapi import APIRouter, Depends, HTTPException, Request

from gutcheck import __version__
from gutcheck.clients.openrouter import LLMError
from gutcheck.clients.postgrest import RowStoreError
from gutcheck.container import ServiceContainer
from gutcheck.graphs.nodes import APOLOGY_MESSAGE
from gutcheck.models.analysis import BowelInsight, StoolAnalysisResult
from gutcheck.models.conversation import AnalysisRequest, ChatRequest, ChatResponse, HealthResponse, InsightsRequest
from gutcheck.models.messages import ConversationOutcome
from gutcheck.services.stool_analysis import StoolAnalysisError
from gutcheck.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()


def get_container(request: Request) -> ServiceContainer:
    """Dependency returning the services attached to the running app."""
    return request.app.state.container


@router.post("/chat", response_model=ChatResponse, tags=["Chat"])
async def handle_chat(request: ChatRequest, container: ServiceContainer = Depends(get_container)) -> ChatResponse:
    """Run one chat turn for a user, creating a session when none is given."""
    if not container.rate_limiter.allow(request.user_id):
        raise HTTPException(status_code=429, detail="Too many messages. Please wait a moment and try again.")

    if request.session_id:
        session = container.sessions.get_session(request.session_id)
        if not session:
            logger.warning(f"Invalid session ID provided: {request.session_id}")
            raise HTTPException(status_code=400, detail=f"Invalid session ID: {request.session_id}")
        if session.user_id != request.user_id:
            logger.warning(f"Session {request.session_id} does not belong to user {request.user_id}")
            raise HTTPException(status_code=400, detail="Session belongs to a different user")
    else:
        session = container.sessions.create_session(request.user_id)
        logger.info(f"Created session {session.session_id} for user {request.user_id}")

    try:
        logger.info(f"Processing message for session {session.session_id}: {request.message[:50]}...")
        response = await container.conversation.process_message(request.message, session)
    except ValueError as e:
        logger.warning(f"Message validation error for session {session.session_id}: {e}")
        raise HTTPException(status_code=400, detail=str(e)) from e
    except Exception as e:
        logger.error(f"Chat processing error for session {session.session_id}: {e}", exc_info=True)
        return ChatResponse(
            message=APOLOGY_MESSAGE,
            tool_calls=[],
            error=str(e),
            outcome=ConversationOutcome.FAILED,
            session_id=session.session_id,
        )

    return ChatResponse(
        message=response.message,
        tool_calls=response.tool_calls,
        error=response.error,
        outcome=response.outcome,
        session_id=session.session_id,
    )


@router.post("/analysis", response_model=StoolAnalysisResult, tags=["Analysis"])
async def analyze_image(
    request: AnalysisRequest, container: ServiceContainer = Depends(get_container)
) -> StoolAnalysisResult:
    """Classify a stool photo, logging it as an entry when a user is given."""
    try:
        image = base64.b64decode(request.image_base64, validate=True)
    except (binascii.Error, ValueError) as e:
        raise HTTPException(status_code=400, detail="image_base64 is not valid base64") from e

    try:
        return await container.stool_analyzer.analyze(image, request.image_format, user_id=request.user_id)
    except (LLMError, StoolAnalysisError, RowStoreError) as e:
        logger.error(f"Image analysis failed: {e}")
        raise HTTPException(status_code=502, detail=f"Image analysis failed: {e}") from e


@router.post("/insights", response_model=BowelInsight, tags=["Analysis"])
async def generate_insights(
    request: InsightsRequest, container: ServiceContainer = Depends(get_container)
) -> BowelInsight:
    """Summarize a user's entries over the requested number of days."""
    try:
        profile = await container.entries.get_user(request.user_id)
        if profile is None:
            raise HTTPException(status_code=404, detail=f"Unknown user: {request.user_id}")

        today = date.today()
        entries = await container.entries.list_entries(request.user_id, today - timedelta(days=request.days), today)
        return await container.insights.generate(profile, entries, f"Last {request.days} days")
    except (LLMError, RowStoreError) as e:
        logger.error(f"Insight generation failed for user {request.user_id}: {e}")
        raise HTTPException(status_code=502, detail=f"Insight generation failed: {e}") from e


@router.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check() -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(UTC),
        version=__version__,
    )
