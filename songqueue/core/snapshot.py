"""
Read-only views of the queue state.

A QueueSnapshot is what every reader sees: `GET /queue`, the initial event of
a stream, and each pushed update. Snapshots are immutable, so the same
instance can be handed to every observer.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Iterable

if TYPE_CHECKING:
    from songqueue.core.queue import CurrentSong, QueueItem


@dataclass(frozen=True, slots=True)
class QueueSnapshot:
    """Current song, queue head and full queue at one point in time."""

    current: CurrentSong | None
    queue: tuple[QueueItem, ...] = ()

    @property
    def next(self) -> QueueItem | None:
        """The item at position 1, derived from the queue."""
        return self.queue[0] if self.queue else None

    def to_dict(self) -> dict[str, Any]:
        """Convert to the JSON shape served over HTTP."""
        next_item = self.next
        return {
            "current": self.current.to_dict() if self.current else None,
            "next": next_item.to_dict() if next_item else None,
            "queue": [item.to_dict() for item in self.queue],
        }


def build_snapshot(
    current: CurrentSong | None,
    items: Iterable[QueueItem],
) -> QueueSnapshot:
    """Freeze the given state into a snapshot."""
    return QueueSnapshot(current=current, queue=tuple(items))
