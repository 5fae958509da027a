"""Test configuration loading"""

from pathlib import Path

import pytest

from release_radar.core.config import (
    DEFAULT_REDIRECT_URI,
    load_config,
    load_spotify_config,
)
from release_radar.core.exceptions import ConfigError


VALID_CONFIG = """
spotify:
  client_id: "id"
  client_secret: "secret"
  refresh_token: "refresh"

playlist:
  id: "https://open.spotify.com/playlist/37i9dQZF1DXcBWIGoYBM5M?si=abc"
  date_added_threshold: 10
"""


@pytest.fixture
def write_config(tmp_path):
    """Write a config.yaml and return its path"""
    def _write(content: str) -> Path:
        path = tmp_path / "config.yaml"
        path.write_text(content, encoding="utf-8")
        return path
    return _write


def load(path, environ=None):
    return load_config(path, environ=environ or {}, load_env_file=False)


class TestLoadConfig:
    """Test load_config"""

    def test_valid_file(self, write_config):
        """Test a complete file with defaults for optional sections"""
        config = load(write_config(VALID_CONFIG))

        assert config.spotify.client_id == "id"
        assert config.spotify.redirect_uri == DEFAULT_REDIRECT_URI
        assert config.spotify.refresh_token == "refresh"
        assert config.playlist.playlist_id == "37i9dQZF1DXcBWIGoYBM5M"
        assert config.playlist.date_added_threshold == 10
        assert config.pacing.page_delay == 0.35
        assert config.pacing.add_delay == 1.0
        assert config.pacing.requests_per_second == 3.0
        assert config.logging.directory is None
        assert config.logging.level == "INFO"

    def test_environment_overrides_file(self, write_config):
        """Test environment variables win over file values"""
        config = load(write_config(VALID_CONFIG), environ={
            "SPOTIFY_REFRESH_TOKEN": "from-env",
            "RELEASE_RADAR_PLAYLIST_ID": "spotify:playlist:envplaylist",
            "RELEASE_RADAR_DATE_ADDED_THRESHOLD": "3",
        })

        assert config.spotify.refresh_token == "from-env"
        assert config.playlist.playlist_id == "envplaylist"
        assert config.playlist.date_added_threshold == 3

    def test_environment_only(self, tmp_path, monkeypatch):
        """Test a missing default file is fine when the environment has everything"""
        monkeypatch.chdir(tmp_path)

        config = load_config(environ={
            "SPOTIFY_CLIENT_ID": "id",
            "SPOTIFY_CLIENT_SECRET": "secret",
            "RELEASE_RADAR_PLAYLIST_ID": "abc",
        }, load_env_file=False)

        assert config.playlist.playlist_id == "abc"
        assert config.playlist.date_added_threshold == 7
        assert config.spotify.refresh_token is None

    def test_missing_explicit_file(self, tmp_path):
        """Test an explicit path that does not exist"""
        with pytest.raises(ConfigError, match="not found"):
            load(tmp_path / "missing.yaml")

    def test_invalid_yaml(self, write_config):
        """Test YAML syntax errors"""
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load(write_config("spotify: [unclosed"))

    def test_missing_client_id(self, write_config):
        """Test required credentials"""
        with pytest.raises(ConfigError, match="spotify.client_id") as exc_info:
            load(write_config("spotify:\n  client_secret: s\nplaylist:\n  id: abc\n"))

        assert exc_info.value.details["field"] == "spotify.client_id"

    def test_missing_playlist(self, write_config):
        """Test the playlist id is required"""
        with pytest.raises(ConfigError, match="playlist.id"):
            load(write_config("spotify:\n  client_id: i\n  client_secret: s\n"))

    def test_non_playlist_url(self, write_config):
        """Test an album URL is not accepted as playlist"""
        content = VALID_CONFIG.replace(
            "https://open.spotify.com/playlist/37i9dQZF1DXcBWIGoYBM5M?si=abc",
            "https://open.spotify.com/album/xyz"
        )
        with pytest.raises(ConfigError, match="not a valid playlist"):
            load(write_config(content))

    @pytest.mark.parametrize("value", ["-1", "seven", "true"])
    def test_invalid_threshold(self, write_config, value):
        """Test negative and non-integer thresholds"""
        content = VALID_CONFIG.replace("date_added_threshold: 10", f"date_added_threshold: {value}")
        with pytest.raises(ConfigError, match="date_added_threshold"):
            load(write_config(content))

    def test_pacing_section(self, write_config):
        """Test pacing values are read and validated"""
        config = load(write_config(VALID_CONFIG + "pacing:\n  add_delay: 2\n"))
        assert config.pacing.add_delay == 2.0

        with pytest.raises(ConfigError, match="requests_per_second"):
            load(write_config(VALID_CONFIG + "pacing:\n  requests_per_second: 0\n"))

        with pytest.raises(ConfigError, match="page_delay"):
            load(write_config(VALID_CONFIG + "pacing:\n  page_delay: -1\n"))

    def test_logging_section(self, write_config, tmp_path):
        """Test log directory and level"""
        logs = tmp_path / "logs"
        config = load(write_config(VALID_CONFIG + f"logging:\n  directory: \"{logs}\"\n  level: debug\n"))

        assert config.logging.directory == logs.resolve()
        assert config.logging.level == "DEBUG"

        with pytest.raises(ConfigError, match="logging.level"):
            load(write_config(VALID_CONFIG + "logging:\n  level: LOUD\n"))

    def test_section_must_be_mapping(self, write_config):
        """Test non-dictionary sections"""
        with pytest.raises(ConfigError, match="Section 'playlist'"):
            load(write_config("playlist: abc\n"))


class TestLoadSpotifyConfig:
    """Test load_spotify_config"""

    def test_no_playlist_needed(self, write_config):
        """Test the auth command only needs credentials"""
        spotify = load_spotify_config(
            write_config("spotify:\n  client_id: i\n  client_secret: s\n"),
            environ={},
            load_env_file=False
        )

        assert spotify.client_id == "i"
        assert spotify.refresh_token is None
