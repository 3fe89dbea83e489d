"""
Configuration management for songqueue.

Defaults come from `defaults.toml` next to this module; the environment (and
a `.env` file, loaded by the entry point) overrides them. Secrets are only
ever read from the environment.

Environment variables:
- HOST, PORT: bind address for the HTTP server
- ADMIN_KEY: shared secret expected in the X-Admin-Key header
- ADMIN_UI_USER, ADMIN_UI_PASS: basic auth pair for the /admin page
- MELOMING_BASE, MELOMING_CHANNEL_ID: songbook upstream
- SONGBOOK_PAGE_SIZE, SONGBOOK_MAX_PAGES: songbook pagination limits
"""

from __future__ import annotations

import logging
import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

from songqueue.core import ConfigError
from songqueue.core.notifier import DEFAULT_BUFFER_SIZE, RECONNECT_DELAY_MS

logger = logging.getLogger(__name__)

# Path to the config directory
CONFIG_DIR = Path(__file__).parent


@dataclass
class Settings:
    """Loaded server configuration."""

    host: str = "0.0.0.0"
    port: int = 3000
    admin_key: str | None = None
    admin_ui_user: str | None = None
    admin_ui_pass: str | None = None
    stream_retry_ms: int = RECONNECT_DELAY_MS
    observer_buffer_size: int = DEFAULT_BUFFER_SIZE
    songbook_base_url: str = "https://api.meloming.com/v1"
    songbook_channel_id: str = "beberry"
    songbook_page_size: int = 100
    songbook_max_pages: int = 20
    songbook_timeout_s: float = 10.0

    @property
    def admin_ui_configured(self) -> bool:
        """Check if both basic auth credentials are present."""
        return bool(self.admin_ui_user and self.admin_ui_pass)


def _env(environ: Mapping[str, str], name: str) -> str | None:
    """Read an environment variable, treating empty values as unset."""
    value = environ.get(name)
    if value is None or not value.strip():
        return None
    return value.strip()


def _env_int(environ: Mapping[str, str], name: str, default: int) -> int:
    value = _env(environ, name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {value!r}") from None


def load_settings(
    config_path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> Settings:
    """
    Load settings from TOML defaults and the environment.

    Args:
        config_path: Path to a TOML file. If None, uses the packaged defaults.
        environ: Environment mapping. If None, uses os.environ.

    Returns:
        Loaded Settings instance.
    """
    if config_path is None:
        config_path = CONFIG_DIR / "defaults.toml"
    if environ is None:
        environ = os.environ

    logger.debug("Loading settings from %s", config_path)

    try:
        with config_path.open("rb") as f:
            data: dict[str, Any] = tomllib.load(f)
    except FileNotFoundError:
        raise ConfigError(f"config file not found: {config_path}") from None
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"invalid config file {config_path}: {e}") from None

    server = data.get("server", {})
    stream = data.get("stream", {})
    songbook = data.get("songbook", {})

    retry_ms = int(stream.get("retry_ms", RECONNECT_DELAY_MS))
    if retry_ms < 0:
        raise ConfigError(f"stream.retry_ms must not be negative, got {retry_ms}")
    buffer_size = int(stream.get("observer_buffer_size", DEFAULT_BUFFER_SIZE))
    if buffer_size < 1:
        raise ConfigError(
            f"stream.observer_buffer_size must be at least 1, got {buffer_size}"
        )

    return Settings(
        host=_env(environ, "HOST") or str(server.get("host", "0.0.0.0")),
        port=_env_int(environ, "PORT", int(server.get("port", 3000))),
        admin_key=_env(environ, "ADMIN_KEY"),
        admin_ui_user=_env(environ, "ADMIN_UI_USER"),
        admin_ui_pass=_env(environ, "ADMIN_UI_PASS"),
        stream_retry_ms=retry_ms,
        observer_buffer_size=buffer_size,
        songbook_base_url=_env(environ, "MELOMING_BASE")
        or str(songbook.get("base_url", "https://api.meloming.com/v1")),
        songbook_channel_id=_env(environ, "MELOMING_CHANNEL_ID")
        or str(songbook.get("channel_id", "beberry")),
        songbook_page_size=_env_int(
            environ, "SONGBOOK_PAGE_SIZE", int(songbook.get("page_size", 100))
        ),
        songbook_max_pages=_env_int(
            environ, "SONGBOOK_MAX_PAGES", int(songbook.get("max_pages", 20))
        ),
        songbook_timeout_s=float(songbook.get("timeout_s", 10.0)),
    )


# Global singleton instance (lazy loaded)
_settings: Settings | None = None


def get_settings() -> Settings:
    """
    Get the global settings (lazy loaded singleton).

    Returns:
        The Settings instance.
    """
    global _settings

    if _settings is None:
        _settings = load_settings()

    return _settings


def reload_settings(config_path: Path | None = None) -> Settings:
    """
    Force reload of settings.

    Returns:
        The newly loaded Settings instance.
    """
    global _settings
    _settings = load_settings(config_path)
    return _settings
