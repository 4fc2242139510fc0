"""Base HTTP client plumbing shared by the identity lookup and resource fetcher."""

import asyncio
import json
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

import aiohttp

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10

T = TypeVar("T")


async def safe_json(resp: aiohttp.ClientResponse) -> dict | list | None:
    """Safely parse JSON from response, returning None on error.

    This handles common error cases:
    - HTML error pages (ContentTypeError)
    - Malformed JSON (JSONDecodeError)
    - Empty responses

    Args:
        resp: aiohttp response object

    Returns:
        Parsed JSON data or None if parsing failed
    """
    try:
        return await resp.json(content_type=None)
    except (aiohttp.ContentTypeError, json.JSONDecodeError, UnicodeDecodeError) as e:
        logger.warning(f"Failed to parse JSON response: {e}")
        return None


def run_blocking(operation: Callable[[], Awaitable[T]]) -> T:
    """Run a coroutine to completion on a private event loop.

    Blocks the calling thread. Never call this from a thread that paints.
    """
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(operation())
    finally:
        loop.close()


class BaseHttpClient:
    """Owns the request defaults and opens one aiohttp session per blocking call.

    Sessions are bound to the event loop that created them, and every blocking
    call runs on its own loop, so nothing is shared between calls.
    """

    def __init__(
        self,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        headers: dict[str, str] | None = None,
    ) -> None:
        self._timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self._headers = dict(headers or {})

    @property
    def headers(self) -> dict[str, str]:
        return dict(self._headers)

    def _new_session(self) -> aiohttp.ClientSession:
        connector = aiohttp.TCPConnector(limit=8)
        return aiohttp.ClientSession(
            timeout=self._timeout, headers=self._headers, connector=connector
        )

    def run_sync(self, operation: Callable[[aiohttp.ClientSession], Awaitable[T]]) -> T:
        """Open a session, run ``operation(session)`` and block until it finishes."""

        async def _run() -> T:
            async with self._new_session() as session:
                return await operation(session)

        return run_blocking(_run)
