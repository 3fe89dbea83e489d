"""
Songbook client - read-only access to the third-party song catalog.

The upstream API is paginated; the admin page wants one flat list, so
`fetch_all` walks pages until it sees a short page or hits the page cap.

Upstream failures never leak their bodies: callers only ever see an
UpstreamError with a generic message.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from songqueue.core import UpstreamError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.meloming.com/v1"


class SongbookClient:
    """
    Aggregating client for the songbook catalog.

    Args:
        base_url: Catalog API root.
        channel_id: Channel whose songbook is listed.
        page_size: Songs requested per page; a shorter page ends the walk.
        max_pages: Hard cap on pages fetched per call.
        timeout_s: Per-request timeout.
        transport: Optional httpx transport (tests use httpx.MockTransport).
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        channel_id: str = "beberry",
        *,
        page_size: int = 100,
        max_pages: int = 20,
        timeout_s: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if page_size < 1 or max_pages < 1:
            raise ValueError("page_size and max_pages must be positive")
        self.base_url = base_url.rstrip("/")
        self.channel_id = channel_id
        self.page_size = page_size
        self.max_pages = max_pages
        self.timeout_s = timeout_s
        self._transport = transport

    @property
    def songs_url(self) -> str:
        return f"{self.base_url}/songs/channel/{self.channel_id}"

    async def fetch_all(self) -> list[dict[str, Any]]:
        """
        Fetch every page of the channel's songbook.

        Returns:
            All songs, in upstream order.

        Raises:
            UpstreamError: On transport errors, non-2xx answers or payloads
                that are not a song list.
        """
        songs: list[dict[str, Any]] = []

        async with httpx.AsyncClient(
            timeout=self.timeout_s,
            transport=self._transport,
        ) as client:
            for page in range(1, self.max_pages + 1):
                batch = await self._fetch_page(client, page)
                songs.extend(batch)
                if len(batch) < self.page_size:
                    break
            else:
                logger.warning(
                    "Songbook page cap (%d) reached for channel %s",
                    self.max_pages,
                    self.channel_id,
                )

        logger.debug("Fetched %d songs for channel %s", len(songs), self.channel_id)
        return songs

    async def _fetch_page(self, client: httpx.AsyncClient, page: int) -> list[dict[str, Any]]:
        try:
            response = await client.get(
                self.songs_url,
                params={"page": page, "limit": self.page_size},
            )
        except httpx.HTTPError as e:
            logger.exception("Songbook request failed (page %d): %s", page, e)
            raise UpstreamError("Songbook proxy error") from e

        if not response.is_success:
            logger.error(
                "Songbook upstream answered %d for page %d",
                response.status_code,
                page,
            )
            raise UpstreamError("Failed to fetch songbook")

        try:
            payload = response.json()
        except ValueError as e:
            logger.exception("Songbook upstream sent invalid JSON (page %d)", page)
            raise UpstreamError("Songbook proxy error") from e

        return _extract_songs(payload)


def _extract_songs(payload: Any) -> list[dict[str, Any]]:
    """Accept either a bare list or an object wrapping the list in `data`."""
    if isinstance(payload, dict):
        payload = payload.get("data")
    if not isinstance(payload, list):
        logger.error("Songbook upstream payload is not a song list")
        raise UpstreamError("Songbook proxy error")
    return payload
