"""
Change notification for songqueue.

This module fans out queue snapshots to every connected observer (typically
a broadcast overlay holding a `/queue/stream` connection open).

Key classes:
- ObserverHandle: one connected observer and its pending snapshots
- ChangeNotifier: registry of observers and publish-to-all

All methods are synchronous and never await, so on a single event loop a
subscribe or publish runs to completion without interleaving. Delivery is
`put_nowait` into a bounded per-observer buffer: a stalled or closed observer
is dropped instead of blocking the command that triggered the publish.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
import time
from dataclasses import dataclass, field

from songqueue.core.snapshot import QueueSnapshot

logger = logging.getLogger(__name__)

# Observers retry their feed after this delay when the connection drops.
RECONNECT_DELAY_MS = 5000

DEFAULT_BUFFER_SIZE = 32


class ObserverClosedError(Exception):
    """Raised when delivering to an observer that has already gone away."""


@dataclass(eq=False)
class ObserverHandle:
    """
    Represents one connected observer.

    Each observer has:
    - A process-unique observer_id
    - A bounded buffer of snapshots not yet sent to the far end
    - A closed flag, set once it leaves or is dropped
    """

    observer_id: int
    buffer_size: int = DEFAULT_BUFFER_SIZE
    connected_at: float = field(default_factory=time.time)
    closed: bool = False
    _pending: asyncio.Queue[QueueSnapshot | None] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        # One extra slot so close() always has room for the end marker.
        self._pending = asyncio.Queue(maxsize=self.buffer_size + 1)

    @property
    def pending_count(self) -> int:
        return self._pending.qsize()

    def deliver(self, snapshot: QueueSnapshot) -> None:
        """
        Queue a snapshot for this observer.

        Raises:
            ObserverClosedError: If the observer has been closed.
            asyncio.QueueFull: If the observer stopped consuming.
        """
        if self.closed:
            raise ObserverClosedError(f"observer {self.observer_id} is closed")
        if self._pending.qsize() >= self.buffer_size:
            raise asyncio.QueueFull(f"observer {self.observer_id} buffer full")
        self._pending.put_nowait(snapshot)

    def close(self) -> None:
        """Mark closed and wake any waiting consumer. Idempotent."""
        if self.closed:
            return
        self.closed = True
        while not self._pending.empty():
            self._pending.get_nowait()
        self._pending.put_nowait(None)

    async def next_snapshot(self) -> QueueSnapshot | None:
        """Wait for the next snapshot. Returns None once the observer is closed."""
        if self.closed and self._pending.empty():
            return None
        return await self._pending.get()


class ChangeNotifier:
    """
    Registry of live observers.

    Supports:
    - subscribe: register and prime with the current snapshot
    - unsubscribe: idempotent removal
    - publish: best-effort delivery of one snapshot to everyone
    """

    def __init__(self, buffer_size: int = DEFAULT_BUFFER_SIZE) -> None:
        if buffer_size < 1:
            raise ValueError("buffer_size must be positive")
        self._observers: dict[int, ObserverHandle] = {}
        self._ids = itertools.count(1)
        self._buffer_size = buffer_size

    def __len__(self) -> int:
        """Return the number of registered observers."""
        return len(self._observers)

    def __contains__(self, handle: ObserverHandle) -> bool:
        return self._observers.get(handle.observer_id) is handle

    def subscribe(self, snapshot: QueueSnapshot) -> ObserverHandle:
        """
        Register a new observer.

        Args:
            snapshot: State at subscribe time, delivered before anything else.

        Returns:
            The handle the connection reads from.
        """
        handle = ObserverHandle(
            observer_id=next(self._ids),
            buffer_size=self._buffer_size,
        )
        handle.deliver(snapshot)
        self._observers[handle.observer_id] = handle
        logger.debug(
            "Observer %d subscribed (%d connected)",
            handle.observer_id,
            len(self._observers),
        )
        return handle

    def unsubscribe(self, handle: ObserverHandle) -> None:
        """Remove an observer. Safe to call repeatedly or after it was dropped."""
        removed = self._observers.pop(handle.observer_id, None)
        handle.close()
        if removed is not None:
            logger.debug(
                "Observer %d unsubscribed (%d connected)",
                handle.observer_id,
                len(self._observers),
            )

    def publish(self, snapshot: QueueSnapshot) -> int:
        """
        Send a snapshot to every registered observer.

        Failures are isolated per observer: the failing observer is logged and
        dropped, the others still receive the snapshot, and nothing is raised.

        Returns:
            Number of observers the snapshot was delivered to.
        """
        delivered = 0
        for handle in list(self._observers.values()):
            try:
                handle.deliver(snapshot)
                delivered += 1
            except Exception as e:
                logger.warning("Dropping observer %d: %s", handle.observer_id, e)
                self.unsubscribe(handle)

        if delivered:
            logger.debug("Published snapshot to %d observers", delivered)
        return delivered

    def close_all(self) -> int:
        """
        Close every observer, ending their streams.

        This is typically called during server shutdown.
        """
        handles = list(self._observers.values())
        self._observers.clear()
        for handle in handles:
            handle.close()
        logger.info("All observers closed (%d total)", len(handles))
        return len(handles)
