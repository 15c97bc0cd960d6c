"""Per-user request rate limiting."""

import time

from limits import parse
from limits.storage import MemoryStorage
from limits.strategies import MovingWindowRateLimiter

from gutcheck.utils.logging import get_logger

logger = get_logger(__name__)


class ChatRateLimiter:
    """Moving-window limit on chat requests, keyed by user."""

    def __init__(self, limit: str = "20/minute"):
        """Initialize the limiter.

        Args:
            limit: Rate in ``limits`` notation, e.g. "20/minute"
        """
        self.storage = MemoryStorage()
        self.limiter = MovingWindowRateLimiter(self.storage)
        self.limit = parse(limit)

    def allow(self, identity: str) -> bool:
        """Record a request for ``identity`` and report whether it is within the limit."""
        if self.limiter.hit(self.limit, "chat", identity):
            return True

        window_stats = self.limiter.get_window_stats(self.limit, "chat", identity)
        retry_after = max(0.0, window_stats.reset_time - time.time())
        logger.warning(f"Chat rate limit exceeded for {identity}, resets in {retry_after:.1f}s")
        return False
