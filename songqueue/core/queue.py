"""
Queue state for songqueue.

This module holds the song request queue and the current-song slot.

Design decisions:
- Simple list-based queue, in memory only (state is lost on restart)
- Items are frozen dataclasses; renumbering rebuilds the list
- Positions are always 1..N in list order after every mutation
- The store performs no I/O and has no locking; the command layer
  serializes writers
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any, Iterable, Mapping, Union

from songqueue.core import EmptyQueueError, NotFoundError, ValidationError
from songqueue.core.snapshot import QueueSnapshot, build_snapshot

logger = logging.getLogger(__name__)

# External catalog identifier; the catalog uses numbers but any string is accepted.
SongRef = Union[int, str]


def require_text(value: Any, field_name: str) -> str:
    """Return value if it is a non-blank string, else raise ValidationError."""
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value


def normalize_memo(value: Any) -> str:
    """Validate an optional admin note. None counts as empty."""
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValidationError("memo must be a string")
    return value


def normalize_song_ref(value: Any) -> SongRef | None:
    """Validate an optional catalog reference. Empty strings count as absent."""
    if value is None or value == "":
        return None
    # bool is an int subclass
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise ValidationError("songRef must be a string or an integer")
    return value


@dataclass(frozen=True, slots=True)
class CurrentSong:
    """The song being performed right now. Never partially populated."""

    title: str
    artist: str
    song_ref: SongRef | None = None
    memo: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "songRef": self.song_ref,
            "title": self.title,
            "artist": self.artist,
            "memo": self.memo,
        }


@dataclass(frozen=True, slots=True)
class QueueItem:
    """
    A pending request in the queue.

    `id` is unique for the process lifetime; `position` is the 1-based
    slot in the queue and changes whenever earlier items move.
    """

    id: int
    title: str
    artist: str
    position: int
    song_ref: SongRef | None = None
    memo: str = ""

    def to_current(self) -> CurrentSong:
        """Drop id/position, keeping the song data."""
        return CurrentSong(
            title=self.title,
            artist=self.artist,
            song_ref=self.song_ref,
            memo=self.memo,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "songRef": self.song_ref,
            "title": self.title,
            "artist": self.artist,
            "memo": self.memo,
            "position": self.position,
        }


def _renumber(items: Iterable[QueueItem]) -> list[QueueItem]:
    """Rebuild the list with positions 1..N in iteration order."""
    return [
        item if item.position == index else replace(item, position=index)
        for index, item in enumerate(items, start=1)
    ]


class QueueStore:
    """
    The song queue and current-song slot.

    Supports:
    - Appending requests (add)
    - Promoting the head of the queue to the current song (advance)
    - Setting or clearing the current song independently of the queue
    - Removing and reordering pending items
    - Read-only snapshots
    """

    def __init__(self) -> None:
        self._items: list[QueueItem] = []
        self._current: CurrentSong | None = None
        self._next_id = 1

    def __len__(self) -> int:
        """Return number of pending items."""
        return len(self._items)

    @property
    def is_empty(self) -> bool:
        """Check if the queue is empty."""
        return not self._items

    @property
    def current(self) -> CurrentSong | None:
        return self._current

    @property
    def items(self) -> tuple[QueueItem, ...]:
        return tuple(self._items)

    def add(
        self,
        song_ref: SongRef | None,
        title: str,
        artist: str,
        memo: str | None = None,
    ) -> QueueItem:
        """
        Append a request at the end of the queue.

        Args:
            song_ref: Optional catalog identifier.
            title: Song title (required).
            artist: Artist name (required).
            memo: Optional note shown to the admin.

        Returns:
            The created item.

        Raises:
            ValidationError: If title or artist is missing, or memo is
                not a string.
        """
        title = require_text(title, "title")
        artist = require_text(artist, "artist")
        song_ref = normalize_song_ref(song_ref)
        memo = normalize_memo(memo)

        position = self._items[-1].position + 1 if self._items else 1
        item = QueueItem(
            id=self._next_id,
            title=title,
            artist=artist,
            position=position,
            song_ref=song_ref,
            memo=memo,
        )
        self._next_id += 1
        self._items.append(item)

        logger.info(
            "queue.add: id=%d, title=%s, artist=%s, position=%d, len=%d",
            item.id,
            item.title,
            item.artist,
            item.position,
            len(self._items),
        )
        return item

    def advance(self) -> CurrentSong:
        """
        Move the item at position 1 into the current-song slot.

        Returns:
            The new current song.

        Raises:
            EmptyQueueError: If there is nothing queued. State is unchanged.
        """
        if not self._items:
            raise EmptyQueueError("Queue is empty")

        head, *rest = self._items
        self._current = head.to_current()
        self._items = _renumber(rest)

        logger.info(
            "queue.advance: id=%d promoted (%s - %s), %d remaining",
            head.id,
            head.artist,
            head.title,
            len(self._items),
        )
        return self._current

    def set_current(
        self,
        song_ref: SongRef | None,
        title: str,
        artist: str,
        memo: str | None = None,
    ) -> CurrentSong:
        """Overwrite the current song without touching the queue."""
        title = require_text(title, "title")
        artist = require_text(artist, "artist")
        song_ref = normalize_song_ref(song_ref)
        memo = normalize_memo(memo)

        self._current = CurrentSong(
            title=title,
            artist=artist,
            song_ref=song_ref,
            memo=memo,
        )
        logger.info("queue.set_current: %s - %s", artist, title)
        return self._current

    def clear_current(self) -> None:
        """Remove the current song. Safe to call when nothing is playing."""
        self._current = None
        logger.info("queue.clear_current")

    def remove(self, item_id: int) -> QueueItem:
        """
        Remove an item by id and close the gap it leaves.

        Raises:
            NotFoundError: If no item has this id.
        """
        for index, item in enumerate(self._items):
            if item.id == item_id:
                break
        else:
            raise NotFoundError("Queue item not found")

        remaining = self._items[:index] + self._items[index + 1 :]
        self._items = _renumber(remaining)

        logger.info("queue.remove: id=%d, len=%d", item_id, len(self._items))
        return item

    def reorder(self, mapping: Mapping[int, int]) -> None:
        """
        Assign new positions to items and sort the queue by them.

        Items missing from the mapping keep their position. The sort is
        stable, so ties keep their previous relative order. Positions are
        renumbered to 1..N afterwards; ids that are not queued are ignored.

        Raises:
            ValidationError: If mapping is not an id -> position mapping of ints.
        """
        if not isinstance(mapping, Mapping):
            raise ValidationError("items must be an array")
        for item_id, position in mapping.items():
            if not _is_int(item_id) or not _is_int(position):
                raise ValidationError("item id and position must be integers")

        placed = [
            replace(item, position=mapping[item.id]) if item.id in mapping else item
            for item in self._items
        ]
        placed.sort(key=lambda item: item.position)
        self._items = _renumber(placed)

        logger.info(
            "queue.reorder: %d positions applied, order=%s",
            len(mapping),
            [item.id for item in self._items],
        )

    def snapshot(self) -> QueueSnapshot:
        """Build a read-only view of the current state."""
        return build_snapshot(self._current, self._items)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)
