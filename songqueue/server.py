"""
songqueue - Main Server Module

This module contains the SongQueueServer class that wires the queue state,
the change notifier and the web server together and manages the
application lifecycle.
"""

import asyncio
import logging
import signal

from songqueue.config import Settings, get_settings
from songqueue.core.commands import QueueService
from songqueue.core.notifier import ChangeNotifier
from songqueue.core.queue import QueueStore
from songqueue.web.server import WebServer

logger = logging.getLogger(__name__)


class SongQueueServer:
    """
    Main songqueue server.

    The server manages:
    - The in-memory queue (created empty, lost on restart)
    - The change notifier feeding /queue/stream observers
    - The web server for the HTTP API and pages
    """

    def __init__(self, settings: Settings | None = None) -> None:
        """
        Initialize the server.

        Args:
            settings: Loaded settings. Defaults to the global settings.
        """
        self.settings = settings if settings is not None else get_settings()

        self.queue_service = QueueService(
            store=QueueStore(),
            notifier=ChangeNotifier(buffer_size=self.settings.observer_buffer_size),
        )
        self.web_server = WebServer(
            settings=self.settings,
            queue_service=self.queue_service,
        )

        # Server state
        self._running = False
        self._shutdown_event: asyncio.Event | None = None

    async def start(self) -> None:
        """Start all server components."""
        logger.info(
            "Starting songqueue on %s:%d",
            self.settings.host,
            self.settings.port,
        )
        if not self.settings.admin_key:
            logger.warning("ADMIN_KEY is not set; admin API calls will fail with 500")
        if not self.settings.admin_ui_configured:
            logger.warning("ADMIN_UI_USER / ADMIN_UI_PASS not set; /admin is unavailable")

        self._running = True
        self._shutdown_event = asyncio.Event()

        await self.web_server.start(host=self.settings.host, port=self.settings.port)

        logger.info("songqueue started successfully")

    async def stop(self) -> None:
        """Stop all server components gracefully."""
        if not self._running:
            return

        logger.info("Stopping songqueue...")
        self._running = False

        await self.web_server.stop()

        if self._shutdown_event:
            self._shutdown_event.set()

        logger.info("songqueue stopped")

    async def run(self) -> None:
        """
        Run the server until shutdown is requested.

        This method starts all components and waits for a shutdown signal
        (SIGINT or SIGTERM).
        """
        await self.start()

        # Set up signal handlers for graceful shutdown
        loop = asyncio.get_running_loop()

        def handle_signal() -> None:
            logger.info("Received shutdown signal")
            if self._shutdown_event:
                self._shutdown_event.set()

        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, handle_signal)
            except NotImplementedError:
                # Signal handlers not supported on Windows
                pass

        # Wait for shutdown
        if self._shutdown_event:
            await self._shutdown_event.wait()

        await self.stop()

    @property
    def is_running(self) -> bool:
        """Check if the server is currently running."""
        return self._running

    @property
    def connected_observers(self) -> int:
        """Get the number of currently connected overlay streams."""
        return len(self.queue_service.notifier)
