"""Chat event handling: username casing, post counts, dispatch."""

from .assembler import MessageAssembler
from .dispatcher import ChatEventDispatcher, ChatEventWorker
from .engine import ChatEngine
from .models import BanEvent, ChatEvent, ChatMessage, MessageType
from .usernames import UsernameResolver

__all__ = [
    "BanEvent",
    "ChatEngine",
    "ChatEvent",
    "ChatEventDispatcher",
    "ChatEventWorker",
    "ChatMessage",
    "MessageAssembler",
    "MessageType",
    "UsernameResolver",
]
