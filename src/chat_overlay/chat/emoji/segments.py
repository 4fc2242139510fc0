"""Splits message text into text and emoji segments for the render surface."""

from dataclasses import dataclass

from ..models import ChatMessage
from .cache import EmojiCache
from .matcher import find_emoji_tokens
from .models import EmojiRecord


@dataclass
class TextSegment:
    """A text portion of a rendered message."""

    text: str


@dataclass
class EmojiSegment:
    """An emoji portion of a rendered message."""

    record: EmojiRecord
    token: str
    coloring_required: bool = False


RenderSegment = TextSegment | EmojiSegment


def resolve_message_segments(message: ChatMessage, cache: EmojiCache) -> list[RenderSegment]:
    """Resolve a message body into render segments, in display order.

    Images are not loaded here; the render surface asks the cache for each
    segment's image when it paints.
    """
    text = message.body
    segments: list[RenderSegment] = []
    last_end = 0

    for start, end, record in find_emoji_tokens(text, cache.find):
        if start > last_end:
            segments.append(TextSegment(text=text[last_end:start]))
        segments.append(
            EmojiSegment(
                record=record,
                token=text[start:end],
                coloring_required=cache.is_coloring_required(record),
            )
        )
        last_end = end

    if last_end < len(text):
        segments.append(TextSegment(text=text[last_end:]))

    if not segments:
        segments.append(TextSegment(text=text))

    return segments
