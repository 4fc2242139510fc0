"""Core models and settings for the chat overlay engine."""

from .models import CasingPolicy
from .settings import EmojiSettings, LookupSettings, MessageSettings, Settings

__all__ = [
    "CasingPolicy",
    "EmojiSettings",
    "LookupSettings",
    "MessageSettings",
    "Settings",
]
