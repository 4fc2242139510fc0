"""Lazy-loading emoji/badge cache with a permanent negative cache."""

import logging
import queue
import threading
from typing import Protocol

from PySide6.QtCore import QObject, QThread, Signal
from PySide6.QtGui import QImage

from .fetcher import ProbeResult
from .image import decode_animated, decode_static, fix_opaque_background, needs_opacity_fix
from .models import AnimatedImage, EmojiRecord, SlotState
from .registry import NegativeResourceRegistry

logger = logging.getLogger(__name__)

DEFAULT_LOADER_THREADS = 2


class Fetcher(Protocol):
    def probe(self, url: str) -> ProbeResult: ...

    def fetch_bytes(self, url: str) -> bytes | None: ...


class EmojiCache(QObject):
    """Holds every emoji record and loads their images on first use.

    - ``get_image`` blocks on the network and belongs on a loader thread.
    - ``request_image`` never blocks; it returns what is loaded (or None) and
      queues a background load, announcing completion on ``emoji_loaded``.

    Unreachable URLs go into the shared :class:`NegativeResourceRegistry` and
    are never retried. Decode failures are retried on the next access.
    """

    # Emitted with the identifier of a record whose image just loaded
    emoji_loaded = Signal(str)

    def __init__(
        self,
        fetcher: Fetcher,
        registry: NegativeResourceRegistry | None = None,
        loader_threads: int = DEFAULT_LOADER_THREADS,
        parent: QObject | None = None,
    ):
        super().__init__(parent)
        self._fetcher = fetcher
        self._registry = registry if registry is not None else NegativeResourceRegistry()
        self._records: dict[str, list[EmojiRecord]] = {}
        self._records_lock = threading.Lock()
        self._loader_threads = max(1, loader_threads)
        self._workers: list[EmojiLoaderWorker] = []
        self._request_queue: queue.Queue[EmojiRecord | None] = queue.Queue()
        self._pending: set[EmojiRecord] = set()
        self._pending_lock = threading.Lock()

    @property
    def registry(self) -> NegativeResourceRegistry:
        return self._registry

    # Record table

    def add(self, record: EmojiRecord) -> None:
        with self._records_lock:
            self._records.setdefault(record.identifier, []).append(record)

    def add_all(self, records: list[EmojiRecord]) -> None:
        for record in records:
            self.add(record)

    def records(self, identifier: str) -> list[EmojiRecord]:
        with self._records_lock:
            return list(self._records.get(identifier, []))

    def identifiers(self) -> set[str]:
        with self._records_lock:
            return set(self._records)

    def __contains__(self, identifier: object) -> bool:
        with self._records_lock:
            return identifier in self._records

    def find(self, identifier: str) -> EmojiRecord | None:
        """First record for an identifier that has not permanently failed."""
        for record in self.records(identifier):
            if record.url not in self._registry:
                return record
        return None

    def badge_for(self, badge_key: str) -> EmojiRecord | None:
        """Replacement badge for a key if one is registered, else the badge itself."""
        with self._records_lock:
            candidates = [r for records in self._records.values() for r in records]
        for record in candidates:
            if record.replaces == badge_key and record.url not in self._registry:
                return record
        return self.find(badge_key)

    def clear(self) -> None:
        """Drop every record (and its loaded images)."""
        with self._records_lock:
            count = sum(len(v) for v in self._records.values())
            self._records.clear()
        logger.debug(f"Cleared {count} emoji records")

    # Loading

    def is_coloring_required(self, record: EmojiRecord) -> bool:
        """Whether the renderer must tint the image instead of drawing it verbatim."""
        return record.type.requires_tint or record.tint_color is not None

    def cache_image(self, record: EmojiRecord) -> None:
        """Load both slots now (blocking)."""
        self.get_image(record, True)

    def get_image(self, record: EmojiRecord, want_animated: bool) -> "QImage | AnimatedImage | None":
        """Load the record's images if needed and return the one asked for.

        Returns the animation only when it is wanted and the record is GIF
        backed; otherwise the static image. None when nothing could be loaded.
        """
        if record.url in self._registry:
            return None

        if self._claim(record, "static_state"):
            try:
                if not self._load_static(record):
                    return None
            except Exception as e:
                self._release(record, "static_state", "image", e)

        with record.lock:
            load_animation = record.animated_gif
        if load_animation and self._claim(record, "animated_state"):
            try:
                self._load_animated(record)
            except Exception as e:
                self._release(record, "animated_state", "animation", e)

        with record.lock:
            if want_animated and record.animated_gif:
                return record.animated_image
            return record.static_image

    @staticmethod
    def _claim(record: EmojiRecord, slot: str) -> bool:
        """Move a slot from UNLOADED to LOADING; False if someone else owns it."""
        with record.lock:
            if getattr(record, slot) is not SlotState.UNLOADED:
                return False
            setattr(record, slot, SlotState.LOADING)
            return True

    def _log_failure_once(self, record: EmojiRecord, what: str, error: Exception | None = None) -> None:
        with record.lock:
            if record.first_failure_logged:
                return
            record.first_failure_logged = True
        reason = f" ({error})" if error is not None else ""
        logger.error(f"Unable to load {what} for emoji {record.identifier}: {record.url}{reason}")

    def _release(self, record: EmojiRecord, slot: str, what: str, error: Exception) -> None:
        """Hand a slot back after an unexpected error so the next access retries it."""
        self._log_failure_once(record, what, error)
        with record.lock:
            if getattr(record, slot) is SlotState.LOADING:
                setattr(record, slot, SlotState.UNLOADED)

    def _load_static(self, record: EmojiRecord) -> bool:
        """Populate the static slot. Returns False if the URL is unreachable."""
        result = self._fetcher.probe(record.url)
        if result is ProbeResult.UNREACHABLE:
            self._registry.add(record.url)
            with record.lock:
                record.static_state = SlotState.FAILED
                record.animated_state = SlotState.FAILED
            return False

        if result is ProbeResult.OK_ANIMATED:
            with record.lock:
                record.animated_gif = True

        image = decode_static(self._fetcher.fetch_bytes(record.url))
        if image is None:
            self._log_failure_once(record, "image")
            with record.lock:
                record.static_state = SlotState.UNLOADED
            return True

        if needs_opacity_fix(record.type, image):
            image = fix_opaque_background(image)

        with record.lock:
            record.static_image = image
            record.width = image.width()
            record.height = image.height()
            record.static_state = SlotState.LOADED
        return True

    def _load_animated(self, record: EmojiRecord) -> None:
        animation = decode_animated(self._fetcher.fetch_bytes(record.url))
        if animation is None:
            self._log_failure_once(record, "animation")
            with record.lock:
                record.animated_state = SlotState.UNLOADED
            return

        with record.lock:
            record.animated_image = animation
            record.width = animation.width
            record.height = animation.height
            record.animated_state = SlotState.LOADED

    # Background loading

    def request_image(self, record: EmojiRecord, want_animated: bool) -> "QImage | AnimatedImage | None":
        """Non-blocking variant of :meth:`get_image` for the render path."""
        if record.url in self._registry:
            return None
        image = record.loaded_image(want_animated)
        if record.needs_loading:
            self._enqueue(record)
        return image

    def pending_count(self) -> int:
        with self._pending_lock:
            return len(self._pending)

    def _enqueue(self, record: EmojiRecord) -> None:
        with self._pending_lock:
            if record in self._pending:
                return
            self._pending.add(record)
        self._request_queue.put(record)
        self._start_workers()

    def _start_workers(self) -> None:
        if self._workers:
            return
        for _ in range(self._loader_threads):
            worker = EmojiLoaderWorker(self, self._request_queue)
            self._workers.append(worker)
            worker.start()

    def _load_requested(self, record: EmojiRecord) -> None:
        """Called on a loader thread for each queued record."""
        try:
            self.get_image(record, True)
        finally:
            with self._pending_lock:
                self._pending.discard(record)
        with record.lock:
            loaded = SlotState.LOADED in (record.static_state, record.animated_state)
        if loaded:
            self.emoji_loaded.emit(record.identifier)

    def stop(self) -> None:
        """Let the loaders finish what is queued, then stop them."""
        workers = self._workers
        self._workers = []
        for _ in workers:
            self._request_queue.put(None)
        for worker in workers:
            worker.wait(5000)


class EmojiLoaderWorker(QThread):
    """Worker thread for loading emoji images.

    Several workers share one request queue; a ``None`` item stops one worker.
    """

    def __init__(
        self,
        cache: EmojiCache,
        requests: "queue.Queue[EmojiRecord | None]",
        parent: QObject | None = None,
    ):
        super().__init__(parent)
        self._cache = cache
        self._requests = requests

    def run(self) -> None:
        while True:
            record = self._requests.get()
            if record is None:
                return
            try:
                self._cache._load_requested(record)
            except Exception as e:
                logger.debug(f"Failed to load emoji {record.identifier}: {e}")
