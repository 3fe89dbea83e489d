"""
Tests for songqueue.config settings loading.
"""

from pathlib import Path

import pytest

from songqueue.config import Settings, load_settings
from songqueue.core import ConfigError


class TestLoadSettings:
    """Tests for load_settings."""

    def test_packaged_defaults(self) -> None:
        settings = load_settings(environ={})
        assert settings.port == 3000
        assert settings.stream_retry_ms == 5000
        assert settings.songbook_channel_id == "beberry"
        assert settings.admin_key is None
        assert not settings.admin_ui_configured

    def test_environment_overrides(self) -> None:
        settings = load_settings(
            environ={
                "PORT": "8080",
                "ADMIN_KEY": "k",
                "ADMIN_UI_USER": "u",
                "ADMIN_UI_PASS": "p",
                "MELOMING_CHANNEL_ID": "other",
                "SONGBOOK_MAX_PAGES": "3",
            }
        )
        assert settings.port == 8080
        assert settings.admin_key == "k"
        assert settings.admin_ui_configured
        assert settings.songbook_channel_id == "other"
        assert settings.songbook_max_pages == 3

    def test_blank_secret_is_unset(self) -> None:
        assert load_settings(environ={"ADMIN_KEY": "  "}).admin_key is None

    def test_invalid_integer(self) -> None:
        with pytest.raises(ConfigError):
            load_settings(environ={"PORT": "eighty"})

    def test_custom_file(self, tmp_path: Path) -> None:
        path = tmp_path / "songqueue.toml"
        path.write_text('[server]\nport = 4000\n[stream]\nretry_ms = 1000\n')

        settings = load_settings(path, environ={})

        assert settings.port == 4000
        assert settings.stream_retry_ms == 1000
        assert settings.songbook_page_size == 100

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError):
            load_settings(tmp_path / "missing.toml", environ={})

    def test_invalid_toml(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.toml"
        path.write_text("[server\n")
        with pytest.raises(ConfigError):
            load_settings(path, environ={})


    @pytest.mark.parametrize(
        "stream_section",
        [
            "observer_buffer_size = 0",
            "observer_buffer_size = -3",
            "retry_ms = -1",
        ],
    )
    def test_invalid_stream_values(self, tmp_path: Path, stream_section: str) -> None:
        path = tmp_path / "songqueue.toml"
        path.write_text(f"[stream]\n{stream_section}\n")
        with pytest.raises(ConfigError):
            load_settings(path, environ={})

    def test_minimal_stream_values(self, tmp_path: Path) -> None:
        path = tmp_path / "songqueue.toml"
        path.write_text("[stream]\nobserver_buffer_size = 1\nretry_ms = 0\n")

        settings = load_settings(path, environ={})

        assert settings.observer_buffer_size == 1
        assert settings.stream_retry_ms == 0


class TestSettings:
    def test_admin_ui_needs_both_credentials(self) -> None:
        assert not Settings(admin_ui_user="u").admin_ui_configured
        assert Settings(admin_ui_user="u", admin_ui_pass="p").admin_ui_configured
