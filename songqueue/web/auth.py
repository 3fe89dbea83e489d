"""
Credential checks for songqueue.

Two static schemes:
- X-Admin-Key header for the admin write API
- HTTP Basic for the admin HTML page

Missing server-side configuration is a server error (500), not an auth
failure, so a misconfigured deployment is obvious.
"""

from __future__ import annotations

import base64
import binascii
import logging
import secrets

from fastapi import Header, Request
from fastapi.responses import PlainTextResponse, Response
from fastapi.security import HTTPBasicCredentials

from songqueue.core import AuthError, ConfigError

logger = logging.getLogger(__name__)

ADMIN_KEY_HEADER = "X-Admin-Key"
BASIC_REALM = "Admin Area"

def _matches(given: str, expected: str) -> bool:
    return secrets.compare_digest(given.encode("utf-8"), expected.encode("utf-8"))


async def require_admin_key(
    request: Request,
    x_admin_key: str | None = Header(default=None),
) -> None:
    """
    FastAPI dependency guarding admin write routes.

    Raises:
        ConfigError: If ADMIN_KEY is not configured on the server.
        AuthError: If the header is missing or does not match.
    """
    expected = request.app.state.settings.admin_key
    if not expected:
        raise ConfigError("ADMIN_KEY is not set in environment variables")

    if x_admin_key is None or not _matches(x_admin_key, expected):
        logger.warning("Rejected admin request from %s", _client_host(request))
        raise AuthError("Unauthorized")


def parse_basic_credentials(authorization: str | None) -> HTTPBasicCredentials | None:
    """
    Decode an `Authorization: Basic ...` header value.

    The user:pass pair is decoded as UTF-8. Returns None for a missing,
    non-Basic or malformed header.
    """
    if not authorization:
        return None
    scheme, _, param = authorization.partition(" ")
    if scheme.lower() != "basic" or not param.strip():
        return None
    try:
        decoded = base64.b64decode(param.strip(), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return None
    username, separator, password = decoded.partition(":")
    if not separator:
        return None
    return HTTPBasicCredentials(username=username, password=password)


def check_basic_auth(request: Request) -> Response | None:
    """
    Check the admin page credentials.

    Configuration is checked before the header is looked at, so an
    unconfigured server answers 500 whatever the client sent.

    Returns:
        None if the request may proceed, otherwise the response to send.
    """
    settings = request.app.state.settings
    if not settings.admin_ui_configured:
        return PlainTextResponse(
            "ADMIN_UI_USER / ADMIN_UI_PASS not set on server",
            status_code=500,
        )

    credentials = parse_basic_credentials(request.headers.get("Authorization"))
    if credentials is None:
        return _challenge("Authentication required")

    if _matches(credentials.username, settings.admin_ui_user) and _matches(
        credentials.password, settings.admin_ui_pass
    ):
        return None

    logger.warning("Invalid admin UI credentials from %s", _client_host(request))
    return _challenge("Invalid credentials")


def _challenge(message: str) -> Response:
    return PlainTextResponse(
        message,
        status_code=401,
        headers={"WWW-Authenticate": f'Basic realm="{BASIC_REALM}"'},
    )


def _client_host(request: Request) -> str:
    return request.client.host if request.client else "unknown"
