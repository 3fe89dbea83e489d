"""
songqueue Web Layer.

This package provides the HTTP layer: the queue REST API, the Server-Sent
Events feed used by overlays, the songbook proxy and the HTML pages.

Components:
- WebServer: FastAPI application with all routes
- auth: admin key and basic auth checks
"""

from songqueue.web.server import WebServer

__all__ = ["WebServer"]
