"""Chat session state."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from gutcheck.models.messages import ChatMessage
from gutcheck.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class Session:
    """A user's chat session, holding the conversation so far in memory."""

    session_id: str
    user_id: str
    history: list[ChatMessage] = field(default_factory=list)
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    last_activity: datetime = field(default_factory=lambda: datetime.now(UTC))

    def as_dict(self) -> dict[str, Any]:
        """Return the session as a dictionary."""
        return {
            "session_id": self.session_id,
            "user_id": self.user_id,
            "messages": len(self.history),
            "created_at": self.created_at.isoformat(),
            "last_activity": self.last_activity.isoformat(),
        }

    def update_activity(self) -> None:
        """Update the last activity timestamp."""
        self.last_activity = datetime.now(UTC)

    def append_exchange(self, user_message: ChatMessage, assistant_message: ChatMessage) -> None:
        """Append a completed user/assistant pair to the history."""
        self.history.extend([user_message, assistant_message])
        logger.debug(f"Session {self.session_id} now holds {len(self.history)} messages")
        self.update_activity()
