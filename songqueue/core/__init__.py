"""
Core domain package.

This package contains the queue state machine and its change notification,
independent of the HTTP layer. The goal is to keep this layer small, testable,
and free of networking concerns.

Exceptions carry the HTTP status the web layer should answer with, so the
routes never translate errors by hand.
"""

from __future__ import annotations

__all__: list[str] = [
    "AuthError",
    "ConfigError",
    "CoreError",
    "EmptyQueueError",
    "NotFoundError",
    "UpstreamError",
    "ValidationError",
]


class CoreError(Exception):
    """Base class for songqueue exceptions."""

    status_code: int = 500


class ValidationError(CoreError):
    """Raised when a command carries malformed or missing input."""

    status_code = 400


class NotFoundError(CoreError):
    """Raised when a queue item id does not exist."""

    status_code = 404


class EmptyQueueError(CoreError):
    """Raised when advancing an empty queue."""

    status_code = 400


class AuthError(CoreError):
    """Raised when an admin credential is missing or wrong."""

    status_code = 401


class ConfigError(CoreError):
    """Raised when required server configuration is missing or invalid."""

    status_code = 500


class UpstreamError(CoreError):
    """Raised when the songbook catalog cannot be fetched."""

    status_code = 500
