"""Remote probe and download of emoji images."""

import asyncio
import logging
from enum import Enum

import aiohttp

from ...api.base import BaseHttpClient
from ...core.settings import DEFAULT_USER_AGENT, EmojiSettings

logger = logging.getLogger(__name__)


class ProbeResult(str, Enum):
    OK_STATIC = "ok_static"
    OK_ANIMATED = "ok_animated"
    UNREACHABLE = "unreachable"


def classify_response(status: int, content_type: str | None) -> ProbeResult:
    """Map a HEAD response to a probe result."""
    if status != 200:
        return ProbeResult.UNREACHABLE
    if content_type and "image/gif" in content_type.lower():
        return ProbeResult.OK_ANIMATED
    return ProbeResult.OK_STATIC


class ResourceFetcher(BaseHttpClient):
    """Blocking HEAD/GET access to emoji URLs.

    Performs no caching of its own; the emoji cache decides what to remember.
    """

    def __init__(self, settings: EmojiSettings | None = None) -> None:
        self.settings = settings or EmojiSettings()
        super().__init__(
            timeout_seconds=self.settings.request_timeout_seconds,
            headers={"User-Agent": self.settings.user_agent or DEFAULT_USER_AGENT},
        )

    def probe(self, url: str) -> ProbeResult:
        """Classify a URL with a header-only request."""
        try:
            return self.run_sync(lambda session: self._probe(session, url))
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.debug(f"Probe failed for {url}: {e}")
            return ProbeResult.UNREACHABLE

    async def _probe(self, session: aiohttp.ClientSession, url: str) -> ProbeResult:
        async with session.head(url, allow_redirects=True) as resp:
            return classify_response(resp.status, resp.headers.get("Content-Type"))

    def fetch_bytes(self, url: str) -> bytes | None:
        """Download the full payload, or None on any failure."""
        try:
            return self.run_sync(lambda session: self._fetch(session, url))
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.debug(f"Download failed for {url}: {e}")
            return None

    async def _fetch(self, session: aiohttp.ClientSession, url: str) -> bytes | None:
        async with session.get(url) as resp:
            if resp.status != 200:
                logger.debug(f"Download of {url} returned HTTP {resp.status}")
                return None
            data = await resp.read()
            return data or None
