"""Username casing resolution.

Turns the raw handle of a message sender into the display form shown on the
overlay. Resolved forms are cached per lowercase handle until the casing
policy changes, at which point the owner calls :meth:`UsernameResolver.clear`.

Remote lookups block the calling thread, so ``resolve`` must only be called
from the event worker, never from a thread that paints.
"""

import logging
import re
import threading
from typing import Protocol

from ..api.identity import IdentityLookupError
from ..core.models import CasingPolicy
from ..core.settings import MessageSettings
from .models import MessageType

logger = logging.getLogger(__name__)


class IdentityLookup(Protocol):
    def lookup(self, handle: str) -> str: ...


def find_cased_handle(handle: str, body: str) -> str | None:
    """Return the handle exactly as typed in ``body``, or None.

    Only whole-word occurrences count: ``ann`` matches ``"hey Ann, nice"`` but
    not ``"annoying"``. Handles with leading or trailing punctuation, such as
    ``[ann]``, match the same way.
    """
    if not handle or not body:
        return None
    match = re.search(rf"(?<!\w){re.escape(handle)}(?!\w)", body, re.IGNORECASE)
    if match is None:
        return None
    return match.group(0)


class UsernameResolver:
    """Resolves and caches the display casing of sender handles."""

    def __init__(
        self,
        settings: MessageSettings | None = None,
        lookup_client: IdentityLookup | None = None,
    ) -> None:
        self.settings = settings or MessageSettings()
        self._lookup_client = lookup_client
        self._cases: dict[str, str] = {}
        self._lookup_failures: dict[str, int] = {}
        # Bumped by clear(); derivations started before a clear are not cached
        self._generation = 0
        self._lock = threading.Lock()

    @property
    def policy(self) -> CasingPolicy:
        return self.settings.casing_policy

    def cached(self, handle: str) -> str | None:
        """Return the cached display form for a handle, if any."""
        with self._lock:
            return self._cases.get(handle.lower())

    def lookup_failures(self, handle: str) -> int:
        """Number of failed remote lookups recorded for a handle."""
        with self._lock:
            return self._lookup_failures.get(handle.lower(), 0)

    def __len__(self) -> int:
        with self._lock:
            return len(self._cases)

    def clear(self) -> None:
        """Forget every resolved casing."""
        with self._lock:
            count = len(self._cases)
            self._cases.clear()
            self._lookup_failures.clear()
            self._generation += 1
        logger.debug(f"Cleared {count} cached username casings")

    def resolve(self, raw_handle: str, body: str, message_type: MessageType) -> str:
        """Return the display form for ``raw_handle``."""
        if not message_type.carries_identity or not raw_handle:
            return raw_handle

        key = raw_handle.lower()

        if self.settings.infer_casing_from_body:
            inferred = find_cased_handle(raw_handle, body)
            if inferred is not None:
                with self._lock:
                    self._cases[key] = inferred
                return inferred

        with self._lock:
            cached = self._cases.get(key)
            generation = self._generation
        if cached is not None:
            return cached

        derived = self._derive(raw_handle, message_type, generation)
        if derived is None:
            return raw_handle

        with self._lock:
            if generation != self._generation:
                return derived
            # A body-inferred casing stored while we were deriving wins
            return self._cases.setdefault(key, derived)

    def _derive(self, raw_handle: str, message_type: MessageType, generation: int) -> str | None:
        """Derive a casing per policy; None means use the raw handle without caching it."""
        policy = self.policy
        if policy is not CasingPolicy.REMOTE_LOOKUP:
            return policy.apply(raw_handle)

        if not message_type.has_parsable_username or self._lookup_client is None:
            return None

        key = raw_handle.lower()
        try:
            return self._lookup_client.lookup(key)
        except IdentityLookupError as e:
            self._record_failure(key, generation)
            logger.error(f"Attempt to look up {raw_handle} failed: {e}")
        except Exception as e:
            self._record_failure(key, generation)
            logger.exception(f"Unexpected error looking up {raw_handle}: {e}")
        return None

    def _record_failure(self, key: str, generation: int) -> None:
        with self._lock:
            if generation == self._generation:
                self._lookup_failures[key] = self._lookup_failures.get(key, 0) + 1
