"""
Admin commands for the song queue.

QueueService is the single entry point for state changes. Every command
follows the same path:

    parse + validate body -> one QueueStore mutation -> snapshot -> publish

Validation happens before the mutation, so a rejected command changes
nothing. Writers are serialized with an asyncio lock; the store mutation
itself never awaits, so readers on the same loop never observe a
half-applied change.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from songqueue.core import NotFoundError, ValidationError
from songqueue.core.notifier import ChangeNotifier, ObserverHandle
from songqueue.core.queue import CurrentSong, QueueItem, QueueStore
from songqueue.core.snapshot import QueueSnapshot

logger = logging.getLogger(__name__)


def _require_body(body: Any) -> dict[str, Any]:
    if not isinstance(body, dict):
        raise ValidationError("request body must be a JSON object")
    return body


def _song_fields(body: Any) -> dict[str, Any]:
    """Extract song fields from a request body. `songId` is accepted as an alias."""
    body = _require_body(body)
    return {
        "song_ref": body.get("songRef", body.get("songId")),
        "title": body.get("title"),
        "artist": body.get("artist"),
        "memo": body.get("memo"),
    }


def _to_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            pass
    raise ValidationError(f"{field_name} must be an integer")


def parse_reorder(body: Any) -> dict[int, int]:
    """
    Turn `{"items": [{"id": .., "position": ..}, ...]}` into an id -> position map.

    Raises:
        ValidationError: If items is not a list of id/position objects.
    """
    body = _require_body(body)
    items = body.get("items")
    if not isinstance(items, list):
        raise ValidationError("items must be an array")

    mapping: dict[int, int] = {}
    for entry in items:
        if not isinstance(entry, dict) or "id" not in entry or "position" not in entry:
            raise ValidationError("each item must have an id and a position")
        mapping[_to_int(entry["id"], "id")] = _to_int(entry["position"], "position")
    return mapping


class QueueService:
    """
    Serialized command layer over a QueueStore.

    The store and notifier are injected so tests and the web layer can share
    one instance per application.
    """

    def __init__(
        self,
        store: QueueStore | None = None,
        notifier: ChangeNotifier | None = None,
    ) -> None:
        self.store = store if store is not None else QueueStore()
        self.notifier = notifier if notifier is not None else ChangeNotifier()
        self._lock = asyncio.Lock()

    def snapshot(self) -> QueueSnapshot:
        """Current read view. Does not take the writer lock."""
        return self.store.snapshot()

    def subscribe(self) -> ObserverHandle:
        """Register an observer primed with the state at this instant."""
        return self.notifier.subscribe(self.store.snapshot())

    def unsubscribe(self, handle: ObserverHandle) -> None:
        self.notifier.unsubscribe(handle)

    def _publish(self) -> None:
        self.notifier.publish(self.store.snapshot())

    async def add(self, body: Any) -> QueueItem:
        """Append a request. Body: {songRef?, title, artist, memo?}."""
        fields = _song_fields(body)
        async with self._lock:
            item = self.store.add(**fields)
            self._publish()
        return item

    async def advance(self) -> CurrentSong:
        """Promote the queue head to the current song."""
        async with self._lock:
            current = self.store.advance()
            self._publish()
        return current

    async def set_current(self, body: Any) -> CurrentSong:
        """Announce an ad-hoc current song. Body: {songRef?, title, artist, memo?}."""
        fields = _song_fields(body)
        async with self._lock:
            current = self.store.set_current(**fields)
            self._publish()
        return current

    async def clear_current(self) -> None:
        async with self._lock:
            self.store.clear_current()
            self._publish()

    async def remove(self, item_id: Any) -> QueueItem:
        """Delete a queued item by id. Unparseable ids are simply not found."""
        try:
            parsed_id = _to_int(item_id, "id")
        except ValidationError:
            raise NotFoundError("Queue item not found") from None
        async with self._lock:
            item = self.store.remove(parsed_id)
            self._publish()
        return item

    async def reorder(self, body: Any) -> None:
        """Apply new positions. Body: {items: [{id, position}, ...]}."""
        mapping = parse_reorder(body)
        async with self._lock:
            self.store.reorder(mapping)
            self._publish()
