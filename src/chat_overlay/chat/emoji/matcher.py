"""Finds emoji tokens in message text.

Chat text is split on whitespace and each token is looked up as-is, so
markers such as ``:)`` or ``<3`` match exactly. A token that misses is tried
again without trailing sentence punctuation (``Kappa!``) and then as its
word core (``(Kappa)``). Lookups are case-sensitive.
"""

import re
from collections.abc import Callable

from .models import EmojiRecord

EmojiLookup = Callable[[str], "EmojiRecord | None"]

TRAILING_PUNCTUATION = ".,!?;:"

_TOKEN = re.compile(r"\S+")
_WORD_CORE = re.compile(r"\w(?:.*\w)?", re.DOTALL)


def is_link(token: str) -> bool:
    lowered = token.lower()
    return "://" in lowered or lowered.startswith("www.")


def token_spans(token: str) -> list[tuple[int, int]]:
    """Spans inside one token worth looking up, most specific first."""
    spans = [(0, len(token))]
    trimmed = len(token.rstrip(TRAILING_PUNCTUATION))
    if 0 < trimmed < len(token):
        spans.append((0, trimmed))
    core = _WORD_CORE.search(token)
    if core is not None and core.span() not in spans:
        spans.append(core.span())
    return spans


def find_emoji_tokens(text: str, lookup: EmojiLookup) -> list[tuple[int, int, EmojiRecord]]:
    """Return ``(start, end, record)`` for each emoji in ``text``, in order.

    At most one emoji is matched per whitespace-delimited token; links are
    skipped.
    """
    positions: list[tuple[int, int, EmojiRecord]] = []
    for match in _TOKEN.finditer(text or ""):
        token = match.group(0)
        if is_link(token):
            continue
        for start, end in token_spans(token):
            record = lookup(token[start:end])
            if record is not None:
                positions.append((match.start() + start, match.start() + end, record))
                break
    return positions
