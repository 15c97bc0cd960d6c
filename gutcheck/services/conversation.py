"""Conversation service tying sessions to the agent orchestrator."""

import json

from gutcheck.clients.openrouter import OpenRouterClient
from gutcheck.graphs.agent import AgentOrchestrator
from gutcheck.models.messages import AgentResponse, ChatMessage, ConversationOutcome
from gutcheck.models.session import Session
from gutcheck.utils.logging import get_logger

logger = get_logger(__name__)


class ConversationService:
    """Service for handling chat turns within a session."""

    def __init__(self, orchestrator: AgentOrchestrator, client: OpenRouterClient):
        """Initialize conversation service.

        Args:
            orchestrator: Runs the tool-calling exchange
            client: Used for message token validation
        """
        self.orchestrator = orchestrator
        self.client = client

    async def process_message(self, message: str, session: Session) -> AgentResponse:
        """Process a user message and return the assistant's response.

        The exchange is appended to the session history unless the first
        model call failed, in which case the history is left untouched.

        Args:
            message: User's message
            session: Current session state

        Returns:
            Agent response

        Raises:
            ValueError: If the message is empty or exceeds the token limit
        """
        logger.info(f"Processing message for session {session.session_id} {json.dumps(session.as_dict())}")

        try:
            self.client.validate_message_tokens(message)
        except ValueError as e:
            max_message_tokens = self.client.config.max_message_tokens
            raise ValueError(
                f"Your message is too long. Please keep messages under {max_message_tokens} tokens."
            ) from e

        user_message = ChatMessage(role="user", content=message)
        response = await self.orchestrator.converse(message, session.history, session.user_id)

        if response.outcome == ConversationOutcome.FAILED:
            logger.warning(f"Exchange failed for session {session.session_id}: {response.error}")
            return response

        assistant_message = ChatMessage(
            role="assistant",
            content=response.message,
            tool_calls=response.tool_calls or None,
        )
        session.append_exchange(user_message, assistant_message)
        return response
