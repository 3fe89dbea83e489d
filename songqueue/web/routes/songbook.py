"""
Songbook Routes for songqueue.

Public, read-only proxy to the third-party catalog. Upstream failures are
turned into a generic 500 by the UpstreamError handler.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from fastapi import APIRouter, FastAPI, Request

if TYPE_CHECKING:
    from songqueue.songbook import SongbookClient

logger = logging.getLogger(__name__)

router = APIRouter(tags=["songbook"])


def register_songbook_routes(app: FastAPI) -> None:
    """Register songbook routes. Expects `app.state.songbook_client`."""
    app.include_router(router)


@router.get("/songbook")
@router.get("/api/meloming/songs")
async def list_songbook(request: Request) -> dict[str, Any]:
    """All songs of the configured channel, flattened across pages."""
    client: SongbookClient = request.app.state.songbook_client
    songs = await client.fetch_all()
    return {"count": len(songs), "songs": songs}
