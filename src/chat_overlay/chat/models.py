"""Data models for chat events and assembled messages."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


class MessageType(str, Enum):
    """Kinds of chat events the engine understands."""

    NORMAL = "normal"
    ACTION = "action"  # /me messages
    JOIN = "join"
    MANUAL = "manual"  # Typed in by the operator, not received from the network
    SYSTEM = "system"  # Synthetic notices

    @property
    def carries_identity(self) -> bool:
        """Whether the sender field names someone whose casing should be resolved."""
        return self is not MessageType.JOIN

    @property
    def has_parsable_username(self) -> bool:
        """Whether the sender is a real network handle that can be looked up remotely."""
        return self in (MessageType.NORMAL, MessageType.ACTION)


@dataclass(frozen=True)
class ChatEvent:
    """A typed event delivered by the chat-network collaborator."""

    type: MessageType
    sender: str
    body: str = ""
    channel: str = ""


@dataclass(frozen=True)
class BanEvent:
    """A ban or unban keyed by host-mask."""

    hostmask: str
    banned: bool = True
    channel: str = ""


@dataclass(frozen=True)
class ChatMessage:
    """A single assembled chat message, handed to the render surface."""

    type: MessageType
    display_username: str
    body: str
    post_count: int
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_action(self) -> bool:
        return self.type is MessageType.ACTION

    @property
    def is_join(self) -> bool:
        return self.type is MessageType.JOIN
