"""Chat engine - wires username resolution, message assembly and emoji loading."""

import logging

from PySide6.QtCore import QObject, Signal
from PySide6.QtGui import QImage

from ..api.identity import IdentityLookupClient
from ..core.models import CasingPolicy
from ..core.settings import Settings
from .assembler import MessageAssembler
from .dispatcher import ChatEventDispatcher, ChatEventWorker
from .emoji.cache import EmojiCache
from .emoji.fetcher import ResourceFetcher
from .emoji.models import AnimatedImage, EmojiRecord
from .emoji.registry import NegativeResourceRegistry
from .emoji.segments import RenderSegment, resolve_message_segments
from .models import BanEvent, ChatEvent, ChatMessage, MessageType
from .usernames import IdentityLookup, UsernameResolver

logger = logging.getLogger(__name__)


class ChatEngine(QObject):
    """Owns the engine components and applies configuration events to them.

    Network events are queued to a background :class:`ChatEventWorker`; the
    assembled messages come back on ``message_ready``.
    """

    # Assembled messages for the render surface
    message_ready = Signal(object)  # ChatMessage
    # Host-masks for the render surface's ban list
    user_banned = Signal(str)
    user_unbanned = Signal(str)
    connection_changed = Signal(bool)
    # Repaint hint when an emoji image finishes loading
    emoji_loaded = Signal(str)

    def __init__(
        self,
        settings: Settings | None = None,
        lookup_client: IdentityLookup | None = None,
        emoji_cache: EmojiCache | None = None,
        registry: NegativeResourceRegistry | None = None,
        parent: QObject | None = None,
    ):
        super().__init__(parent)
        self.settings = settings or Settings()
        if lookup_client is None:
            lookup_client = IdentityLookupClient(self.settings.lookup)
        self._resolver = UsernameResolver(self.settings.message, lookup_client)
        self._assembler = MessageAssembler()

        if emoji_cache is None:
            emoji_cache = EmojiCache(
                ResourceFetcher(self.settings.emoji),
                registry=registry,
                loader_threads=self.settings.emoji.loader_threads,
                parent=self,
            )
        self._emoji_cache = emoji_cache
        self._emoji_cache.emoji_loaded.connect(self.emoji_loaded)

        self._dispatcher = ChatEventDispatcher(self._resolver, self._assembler, parent=self)
        self._dispatcher.message_ready.connect(self.message_ready)
        self._dispatcher.user_banned.connect(self.user_banned)
        self._dispatcher.user_unbanned.connect(self.user_unbanned)
        self._dispatcher.connection_changed.connect(self.connection_changed)
        self._worker: ChatEventWorker | None = None

    @property
    def resolver(self) -> UsernameResolver:
        return self._resolver

    @property
    def assembler(self) -> MessageAssembler:
        return self._assembler

    @property
    def dispatcher(self) -> ChatEventDispatcher:
        return self._dispatcher

    @property
    def emoji_cache(self) -> EmojiCache:
        return self._emoji_cache

    # Configuration events

    def set_casing_policy(self, policy: CasingPolicy) -> None:
        """Switch casing policy; cached casings are dropped only on an actual change."""
        if policy is self.settings.message.casing_policy:
            return
        logger.info(
            f"Username casing policy changed: {self.settings.message.casing_policy.value} "
            f"-> {policy.value}"
        )
        self.settings.message.casing_policy = policy
        self._resolver.clear()

    def set_infer_casing_from_body(self, enabled: bool) -> None:
        self.settings.message.infer_casing_from_body = enabled

    def apply_settings(self, settings: Settings) -> None:
        """Adopt edited message settings from the configuration collaborator."""
        self.set_infer_casing_from_body(settings.message.infer_casing_from_body)
        self.set_casing_policy(settings.message.casing_policy)

    def reset_session(self) -> None:
        """Forget casings and post counts, e.g. on reconnect."""
        self._resolver.clear()
        self._assembler.reset()
        logger.info("Chat session reset")

    # Event intake

    def start(self) -> None:
        """Start the background event worker."""
        if self._worker is not None:
            return
        self._worker = ChatEventWorker(self._dispatcher, parent=self)
        self._worker.start()

    def submit(self, event: ChatEvent | BanEvent) -> None:
        """Queue a network event for the background worker."""
        if self._worker is None:
            self.start()
        self._worker.enqueue(event)

    def post(self, username: str, body: str, message_type: MessageType = MessageType.NORMAL) -> ChatMessage:
        """Dispatch a message synchronously on the calling thread."""
        return self._dispatcher.post(username, body, message_type)

    def emoji_image(self, record: EmojiRecord) -> "QImage | AnimatedImage | None":
        """Image for the render surface, honouring the animation setting. Never blocks."""
        return self._emoji_cache.request_image(record, self.settings.emoji.animate)

    def message_segments(self, message: ChatMessage) -> list[RenderSegment]:
        """Split a message body into text and emoji segments for painting."""
        return resolve_message_segments(message, self._emoji_cache)

    def stop(self) -> None:
        """Drain and stop background workers."""
        if self._worker is not None:
            self._worker.stop()
            self._worker.wait(5000)
            self._worker = None
        self._emoji_cache.stop()
