"""
Songbook package.

Read-only proxy to the third-party catalog of available songs.
"""

from songqueue.songbook.client import SongbookClient

__all__ = ["SongbookClient"]
