"""Builds immutable message records and keeps per-user post counts."""

import logging
import threading
from datetime import datetime, timezone

from .models import ChatMessage, MessageType

logger = logging.getLogger(__name__)


class MessageAssembler:
    """Stamps each message with its sender's running post count.

    Counts are keyed by the lowercase display name, so ``Bob`` and ``BOB`` share
    one counter. They only go back to zero on :meth:`reset`.
    """

    def __init__(self) -> None:
        self._post_counts: dict[str, int] = {}
        self._lock = threading.Lock()

    def post_count(self, username: str) -> int:
        """Messages seen so far for a user (0 if none)."""
        with self._lock:
            return self._post_counts.get(username.lower(), 0)

    def assemble(self, message_type: MessageType, resolved_username: str, body: str) -> ChatMessage:
        key = resolved_username.lower()
        with self._lock:
            count = self._post_counts.get(key, 0) + 1
            self._post_counts[key] = count
        return ChatMessage(
            type=message_type,
            display_username=resolved_username,
            body=body,
            post_count=count,
            timestamp=datetime.now(timezone.utc),
        )

    def reset(self) -> None:
        """Zero every counter."""
        with self._lock:
            users = len(self._post_counts)
            self._post_counts.clear()
        logger.debug(f"Reset post counts for {users} users")
