"""
Web Routes Package.

This package contains FastAPI route modules:
- queue: queue read and admin write API (/queue/*, /api/queue/*)
- stream: Server-Sent Events feed (/queue/stream)
- songbook: catalog proxy (/songbook)
- pages: admin and overlay HTML pages
"""

from songqueue.web.routes.pages import register_page_routes
from songqueue.web.routes.queue import register_queue_routes
from songqueue.web.routes.songbook import register_songbook_routes
from songqueue.web.routes.stream import register_stream_routes

__all__ = [
    "register_page_routes",
    "register_queue_routes",
    "register_songbook_routes",
    "register_stream_routes",
]
