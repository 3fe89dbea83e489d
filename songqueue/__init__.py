"""
songqueue - a live song request queue for karaoke streams.

An admin picks the current song and manages the queue of upcoming requests;
overlays follow every change through a Server-Sent Events feed.
"""

__version__ = "0.1.0"
__license__ = "GPL-2.0"

from songqueue.server import SongQueueServer

__all__ = ["SongQueueServer", "__version__"]
