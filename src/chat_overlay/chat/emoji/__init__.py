"""Emoji and badge loading."""

from .cache import EmojiCache, EmojiLoaderWorker
from .fetcher import ProbeResult, ResourceFetcher
from .models import (
    AnimatedImage,
    EmojiRecord,
    EmojiType,
    InvalidEmojiUrlError,
    SlotState,
)
from .registry import NegativeResourceRegistry
from .segments import EmojiSegment, RenderSegment, TextSegment, resolve_message_segments

__all__ = [
    "AnimatedImage",
    "EmojiCache",
    "EmojiLoaderWorker",
    "EmojiRecord",
    "EmojiSegment",
    "EmojiType",
    "InvalidEmojiUrlError",
    "NegativeResourceRegistry",
    "ProbeResult",
    "RenderSegment",
    "ResourceFetcher",
    "SlotState",
    "TextSegment",
    "resolve_message_segments",
]
