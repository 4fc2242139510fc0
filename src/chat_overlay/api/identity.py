"""Display-name lookup against the chat network's user API."""

import asyncio
import logging

import aiohttp

from ..core.settings import LookupSettings
from .base import BaseHttpClient, safe_json

logger = logging.getLogger(__name__)


class IdentityLookupError(Exception):
    """The user API could not produce a display name for a handle."""


class IdentityLookupClient(BaseHttpClient):
    """Resolves a lowercase handle to its display-cased name.

    Issues ``GET {base_url}{handle}`` and reads the ``display_name`` field of
    the JSON object returned.
    """

    def __init__(self, settings: LookupSettings | None = None) -> None:
        self.settings = settings or LookupSettings()
        headers = {"Accept": "application/json"}
        if self.settings.client_id:
            headers["Client-ID"] = self.settings.client_id
        super().__init__(timeout_seconds=self.settings.timeout_seconds, headers=headers)

    def url_for(self, handle: str) -> str:
        return f"{self.settings.base_url}{handle.lower()}"

    def lookup(self, handle: str) -> str:
        """Blocking lookup.

        Raises:
            IdentityLookupError: on transport errors, non-2xx status, malformed
                payload or a missing ``display_name`` field.
        """
        try:
            return self.run_sync(lambda session: self._lookup(session, handle))
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise IdentityLookupError(f"Lookup of {handle!r} failed: {e}") from e

    async def _lookup(self, session: aiohttp.ClientSession, handle: str) -> str:
        url = self.url_for(handle)
        async with session.get(url) as resp:
            if not 200 <= resp.status < 300:
                raise IdentityLookupError(f"Lookup of {handle!r} returned HTTP {resp.status}")
            data = await safe_json(resp)

        if not isinstance(data, dict):
            raise IdentityLookupError(f"Lookup of {handle!r} returned a malformed payload")
        display_name = data.get("display_name")
        if not isinstance(display_name, str) or not display_name:
            raise IdentityLookupError(f"Lookup of {handle!r} has no display_name")
        return display_name
