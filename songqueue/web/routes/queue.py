"""
Queue API Routes for songqueue.

Read access is public; every write requires the X-Admin-Key header.
All routes are registered both at /queue... and under the /api prefix
used by the bundled pages.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, FastAPI, Request

from songqueue.core import ValidationError
from songqueue.core.commands import QueueService
from songqueue.web.auth import require_admin_key

logger = logging.getLogger(__name__)

router = APIRouter(tags=["queue"])
ADMIN_ONLY = [Depends(require_admin_key)]


def register_queue_routes(app: FastAPI) -> None:
    """
    Register queue routes with the FastAPI app.

    Expects `app.state.queue_service` to be set.
    """
    app.include_router(router)
    app.include_router(router, prefix="/api")


def _service(request: Request) -> QueueService:
    return request.app.state.queue_service


async def _json_body(request: Request) -> Any:
    try:
        return await request.json()
    except ValueError:
        raise ValidationError("request body must be valid JSON") from None


@router.get("/queue")
async def get_queue(request: Request) -> dict[str, Any]:
    """Current song, next item and full queue."""
    return _service(request).snapshot().to_dict()


@router.post("/queue/add", status_code=201, dependencies=ADMIN_ONLY)
async def add_item(request: Request) -> dict[str, Any]:
    """Append a request. Body: {songRef?, title, artist, memo?}."""
    item = await _service(request).add(await _json_body(request))
    return item.to_dict()


@router.post("/queue/advance", dependencies=ADMIN_ONLY)
@router.post("/queue/next", dependencies=ADMIN_ONLY)
async def advance(request: Request) -> dict[str, Any]:
    """Move the head of the queue to the current song."""
    current = await _service(request).advance()
    return {"current": current.to_dict()}


@router.post("/queue/current", dependencies=ADMIN_ONLY)
async def set_current(request: Request) -> dict[str, Any]:
    """Announce a current song regardless of the queue."""
    current = await _service(request).set_current(await _json_body(request))
    return {"current": current.to_dict()}


@router.post("/queue/current/clear", dependencies=ADMIN_ONLY)
async def clear_current(request: Request) -> dict[str, Any]:
    await _service(request).clear_current()
    return {"current": None}


@router.post("/queue/reorder", dependencies=ADMIN_ONLY)
async def reorder(request: Request) -> dict[str, Any]:
    """Apply positions. Body: {items: [{id, position}, ...]}."""
    await _service(request).reorder(await _json_body(request))
    return {"success": True}


@router.delete("/queue/{item_id}", dependencies=ADMIN_ONLY)
async def delete_item(item_id: str, request: Request) -> dict[str, Any]:
    await _service(request).remove(item_id)
    return {"success": True}
