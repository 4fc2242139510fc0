"""Negative cache of remote resources known to be unreachable."""

import logging
import threading

logger = logging.getLogger(__name__)


class NegativeResourceRegistry:
    """URLs that failed their probe.

    Membership is permanent for the registry's lifetime; nothing is ever
    removed, so a failed resource is never fetched again. One instance is
    shared by every cache that should honour the same failures.
    """

    def __init__(self) -> None:
        self._urls: set[str] = set()
        self._lock = threading.Lock()

    def add(self, url: str) -> bool:
        """Mark a URL unreachable. Returns True if it was not known before."""
        with self._lock:
            if url in self._urls:
                return False
            self._urls.add(url)
        logger.info(f"Marking emoji URL unreachable: {url}")
        return True

    def __contains__(self, url: object) -> bool:
        with self._lock:
            return url in self._urls

    def __len__(self) -> int:
        with self._lock:
            return len(self._urls)

    def snapshot(self) -> frozenset[str]:
        with self._lock:
            return frozenset(self._urls)
