"""
HTTP implementation of AssetValidator.

Sends a HEAD request for each asset URL and remembers the answer, so a URL
is checked at most once per validator (until clear() is called or it is
evicted). Concurrent checks of the same URL share one request.
"""
import asyncio
import logging
from collections import OrderedDict
from typing import Dict, Optional

import httpx

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 2.0
DEFAULT_MAX_ENTRIES = 2048


class HttpAssetValidator:
    """Asset reachability via httpx HEAD requests."""

    def __init__(
        self,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        client: Optional[httpx.AsyncClient] = None,
        max_entries: int = DEFAULT_MAX_ENTRIES,
    ):
        """
        Args:
            timeout_seconds: Timeout for each HEAD request
            client: Optional shared client (tests inject one with a mock transport)
            max_entries: Remembered answers; least recently used are evicted
        """
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self._timeout = timeout_seconds
        self._client = client
        self._owns_client = client is None
        self._max_entries = max_entries
        self._known: "OrderedDict[str, bool]" = OrderedDict()
        self._in_flight: Dict[str, "asyncio.Future[bool]"] = {}

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout, follow_redirects=True)
        return self._client

    async def is_reachable(self, url: str) -> bool:
        if not url.startswith(("http://", "https://")):
            # bundled identifiers are always available
            return bool(url)
        if url in self._known:
            self._known.move_to_end(url)
            return self._known[url]

        check = self._in_flight.get(url)
        if check is None:
            check = asyncio.ensure_future(self._check(url))
            self._in_flight[url] = check
            check.add_done_callback(lambda _, u=url: self._in_flight.pop(u, None))
        # a cancelled caller must not cancel the request other callers wait on
        return await asyncio.shield(check)

    async def _check(self, url: str) -> bool:
        try:
            response = await self._get_client().head(url, timeout=self._timeout)
            reachable = response.status_code < 400
        except httpx.HTTPError as e:
            logger.warning("Asset check failed for %s: %s", url, e)
            reachable = False

        if not reachable:
            logger.info("Asset %s is not reachable", url)
        self._remember(url, reachable)
        return reachable

    def _remember(self, url: str, reachable: bool) -> None:
        self._known[url] = reachable
        self._known.move_to_end(url)
        while len(self._known) > self._max_entries:
            self._known.popitem(last=False)

    def __len__(self) -> int:
        return len(self._known)

    def clear(self) -> None:
        self._known.clear()

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
