"""
HTML Page Routes for songqueue.

- /admin: queue control page, behind HTTP Basic
- /overlay/now-playing: broadcast overlay, public
"""

from __future__ import annotations

from pathlib import Path

from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import FileResponse, Response

from songqueue.web.auth import check_basic_auth

STATIC_DIR = Path(__file__).resolve().parent.parent / "static"

router = APIRouter(tags=["pages"])


def register_page_routes(app: FastAPI) -> None:
    """Register the HTML page routes."""
    app.include_router(router)


@router.get("/admin", response_model=None)
async def admin_page(request: Request) -> Response:
    denied = check_basic_auth(request)
    if denied is not None:
        return denied
    return FileResponse(STATIC_DIR / "admin.html", media_type="text/html")


@router.get("/overlay/now-playing", response_model=None)
async def overlay_page() -> Response:
    return FileResponse(STATIC_DIR / "overlay.html", media_type="text/html")
