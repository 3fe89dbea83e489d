"""
Web Server Module for songqueue.

This module provides the WebServer class that creates and manages the
FastAPI application, registers all routes, and maps domain errors to
HTTP responses.

The WebServer integrates:
- Queue REST API (read + admin commands)
- Server-Sent Events stream for overlays
- Songbook proxy
- Admin and overlay pages
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from songqueue import __version__
from songqueue.config import Settings, get_settings
from songqueue.core import CoreError
from songqueue.core.commands import QueueService
from songqueue.core.notifier import ChangeNotifier
from songqueue.songbook import SongbookClient
from songqueue.web.routes import (
    register_page_routes,
    register_queue_routes,
    register_songbook_routes,
    register_stream_routes,
)

logger = logging.getLogger(__name__)


async def core_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Render any CoreError as {"error": message} with its status code."""
    status_code = getattr(exc, "status_code", 500)
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    else:
        logger.debug("%s %s rejected: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=status_code, content={"error": str(exc)})


class WebServer:
    """
    FastAPI-based web server for songqueue.

    Components are injected so tests can share a QueueService or stub the
    songbook transport; anything not given is built from settings.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        queue_service: QueueService | None = None,
        songbook_client: SongbookClient | None = None,
    ) -> None:
        """
        Initialize the WebServer.

        Args:
            settings: Server settings (defaults to the global settings)
            queue_service: Command layer holding the queue state
            songbook_client: Catalog proxy client
        """
        self.settings = settings if settings is not None else get_settings()
        self.queue_service = queue_service or QueueService(
            notifier=ChangeNotifier(buffer_size=self.settings.observer_buffer_size),
        )
        self.songbook_client = songbook_client or SongbookClient(
            base_url=self.settings.songbook_base_url,
            channel_id=self.settings.songbook_channel_id,
            page_size=self.settings.songbook_page_size,
            max_pages=self.settings.songbook_max_pages,
            timeout_s=self.settings.songbook_timeout_s,
        )

        # Create FastAPI app
        self.app = FastAPI(
            title="songqueue",
            description="Live karaoke song request queue",
            version=__version__,
        )

        # Add CORS middleware
        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_methods=["*"],
            allow_headers=["*"],
        )

        self.app.add_exception_handler(CoreError, core_error_handler)

        self.app.state.settings = self.settings
        self.app.state.queue_service = self.queue_service
        self.app.state.songbook_client = self.songbook_client

        # Server state
        self._server: uvicorn.Server | None = None
        self._serve_task: asyncio.Task[None] | None = None
        self._host = self.settings.host
        self._port = self.settings.port

        # Register routes
        self._register_routes()

    def _register_routes(self) -> None:
        """Register all routes with the FastAPI app."""

        # Health check
        @self.app.get("/health")
        async def health_check() -> dict[str, Any]:
            """Health check endpoint."""
            return {
                "status": "ok",
                "server": "songqueue",
                "version": __version__,
                "observers": len(self.queue_service.notifier),
            }

        register_queue_routes(self.app)
        register_stream_routes(self.app)
        register_songbook_routes(self.app)
        register_page_routes(self.app)

    async def start(self, host: str | None = None, port: int | None = None) -> None:
        """
        Start the web server in the background.

        Args:
            host: Host address to bind to (defaults to settings)
            port: Port to listen on (defaults to settings)
        """
        self._host = host or self.settings.host
        self._port = port or self.settings.port

        config = uvicorn.Config(
            self.app,
            host=self._host,
            port=self._port,
            log_level="warning",
            access_log=False,
        )
        self._server = uvicorn.Server(config)
        self._serve_task = asyncio.create_task(self._server.serve())

        logger.info("Web server started on http://%s:%d", self._host, self._port)

    async def stop(self) -> None:
        """Stop the web server and end all open streams."""
        # Closing observers ends their SSE generators so uvicorn can drain.
        self.queue_service.notifier.close_all()

        if self._server is not None:
            self._server.should_exit = True
            self._server = None

        if self._serve_task is not None:
            await self._serve_task
            self._serve_task = None

        logger.info("Web server stopped")

    @property
    def port(self) -> int:
        """Get the server port."""
        return self._port

    @property
    def host(self) -> str:
        """Get the server host."""
        return self._host
