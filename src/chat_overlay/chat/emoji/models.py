"""Emoji and badge records."""

import threading
from dataclasses import dataclass, field
from enum import Enum
from urllib.parse import urlparse

from PySide6.QtGui import QImage

DEFAULT_EMOJI_SIZE = 24


class InvalidEmojiUrlError(ValueError):
    """An emoji record was configured with a source URL that can never load."""


class EmojiType(str, Enum):
    """Where an emoji or badge comes from."""

    TWITCH_V1 = "twitch_v1"
    TWITCH_V2 = "twitch_v2"
    TWITCH_V3 = "twitch_v3"
    TWITCH_BADGE = "twitch_badge"
    FRANKERFACEZ_CHANNEL = "ffz_channel"
    FRANKERFACEZ_GLOBAL = "ffz_global"
    FRANKERFACEZ_BADGE = "ffz_badge"
    BETTER_TTV_CHANNEL = "bttv_channel"
    BETTER_TTV_GLOBAL = "bttv_global"

    @property
    def is_badge(self) -> bool:
        return self in (EmojiType.TWITCH_BADGE, EmojiType.FRANKERFACEZ_BADGE)

    @property
    def requires_tint(self) -> bool:
        # FFZ badges are white-on-transparent and get their colour at draw time
        return self is EmojiType.FRANKERFACEZ_BADGE

    @property
    def opacity_fix_candidate(self) -> bool:
        # Larger v1 Twitch emotes are sometimes served without an alpha channel
        return self is EmojiType.TWITCH_V1


class SlotState(str, Enum):
    """Load state of one lazily populated image slot."""

    UNLOADED = "unloaded"
    LOADING = "loading"
    LOADED = "loaded"
    FAILED = "failed"  # Permanent; the URL is in the negative registry


@dataclass
class AnimatedImage:
    """A fully decoded animation."""

    frames: list[QImage]
    delays: list[int]  # ms per frame
    width: int
    height: int

    @property
    def frame_count(self) -> int:
        return len(self.frames)

    def frame_at(self, elapsed_ms: int) -> QImage:
        """Frame to show ``elapsed_ms`` into a looping animation."""
        total = sum(self.delays)
        if total <= 0 or len(self.frames) == 1:
            return self.frames[0]
        position = elapsed_ms % total
        for frame, delay in zip(self.frames, self.delays):
            if position < delay:
                return frame
            position -= delay
        return self.frames[-1]


def validate_source_url(url: str) -> str:
    """Reject anything that is not an absolute http(s) URL."""
    parsed = urlparse(url or "")
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise InvalidEmojiUrlError(f"Invalid emoji source URL: {url!r}")
    return url


@dataclass(eq=False)
class EmojiRecord:
    """One image for an emoji or badge token.

    Several records may share an identifier (alternate sizes or frames). The
    static and animated images are loaded on first use by :class:`EmojiCache`,
    each through its own :class:`SlotState` machine guarded by ``lock``.
    """

    identifier: str  # Word or badge key (e.g. "Kappa", "moderator")
    url: str
    type: EmojiType = EmojiType.TWITCH_V3
    replaces: str | None = None  # Badge key this record stands in for
    width: int = DEFAULT_EMOJI_SIZE
    height: int = DEFAULT_EMOJI_SIZE
    tint_color: str | None = None  # "#RRGGBB" background for tinted badges
    animated: bool = False  # Source declares a real animation
    subscriber: bool = False
    state: str | None = None

    animated_gif: bool = field(default=False, init=False)
    static_image: QImage | None = field(default=None, init=False, repr=False)
    animated_image: AnimatedImage | None = field(default=None, init=False, repr=False)
    static_state: SlotState = field(default=SlotState.UNLOADED, init=False)
    animated_state: SlotState = field(default=SlotState.UNLOADED, init=False)
    first_failure_logged: bool = field(default=False, init=False)
    lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def __post_init__(self) -> None:
        validate_source_url(self.url)

    @property
    def is_replacement(self) -> bool:
        return self.replaces is not None

    @property
    def requires_tint_overlay(self) -> bool:
        return self.type.requires_tint

    @property
    def needs_loading(self) -> bool:
        """Whether a background load could still populate a slot."""
        with self.lock:
            if self.static_state is SlotState.UNLOADED:
                return True
            return self.animated_gif and self.animated_state is SlotState.UNLOADED

    def loaded_image(self, want_animated: bool) -> "QImage | AnimatedImage | None":
        """Whatever is already in memory, without touching the network.

        Falls back to the static image while an animation is still loading.
        """
        with self.lock:
            if want_animated and self.animated_gif and self.animated_image is not None:
                return self.animated_image
            return self.static_image
