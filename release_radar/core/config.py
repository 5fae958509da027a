"""
Configuration management for release-radar.

This module loads, validates and exposes the application configuration.
Values come from config.yaml and can be overridden by environment variables
(a .env file in the working directory is loaded first), so that secrets such
as the refresh token do not have to live in the YAML file.

The configuration is loaded once at process start and never re-read during
a run.

Example config.yaml:
    spotify:
      client_id: "your_client_id_here"
      client_secret: "your_client_secret_here"
      redirect_uri: "http://127.0.0.1:8888/callback"
      refresh_token: "your_refresh_token"   # optional

    playlist:
      id: "37i9dQZF1DXcBWIGoYBM5M"           # ID, URI or URL
      date_added_threshold: 7                 # days

    pacing:                                   # optional
      page_delay: 0.35
      add_delay: 1.0
      requests_per_second: 3

    logging:                                  # optional
      directory: "~/.local/state/release-radar"
      level: INFO

Environment Overrides:
    SPOTIFY_CLIENT_ID, SPOTIFY_CLIENT_SECRET, SPOTIFY_REDIRECT_URI,
    SPOTIFY_REFRESH_TOKEN, RELEASE_RADAR_PLAYLIST_ID,
    RELEASE_RADAR_DATE_ADDED_THRESHOLD
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from release_radar.core.exceptions import ConfigError
from release_radar.utils import extract_playlist_id


# Default configuration file name (looked up in current working directory)
CONFIG_FILENAME = "config.yaml"

DEFAULT_REDIRECT_URI = "http://127.0.0.1:8888/callback"
DEFAULT_DATE_ADDED_THRESHOLD = 7
DEFAULT_PAGE_DELAY = 0.35
DEFAULT_ADD_DELAY = 1.0
DEFAULT_REQUESTS_PER_SECOND = 3.0

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# env var -> (section, key)
ENV_OVERRIDES = {
    "SPOTIFY_CLIENT_ID": ("spotify", "client_id"),
    "SPOTIFY_CLIENT_SECRET": ("spotify", "client_secret"),
    "SPOTIFY_REDIRECT_URI": ("spotify", "redirect_uri"),
    "SPOTIFY_REFRESH_TOKEN": ("spotify", "refresh_token"),
    "RELEASE_RADAR_PLAYLIST_ID": ("playlist", "id"),
    "RELEASE_RADAR_DATE_ADDED_THRESHOLD": ("playlist", "date_added_threshold"),
}


@dataclass(frozen=True)
class SpotifyConfig:
    """
    Spotify application credentials.

    Attributes:
        client_id: Application client ID from the Spotify Developer Dashboard.
        client_secret: Application client secret.
        redirect_uri: Redirect URI registered for the application. Used by
                      the interactive authorization-code flow.
        refresh_token: Long-lived refresh token. When None, the interactive
                       flow is used at startup.
    """
    client_id: str
    client_secret: str
    redirect_uri: str
    refresh_token: str | None


@dataclass(frozen=True)
class PlaylistConfig:
    """
    Target playlist settings.

    Attributes:
        playlist_id: Bare Spotify ID of the playlist to maintain.
        date_added_threshold: Entries added more than this many days ago
                              are evicted at the start of each run.
    """
    playlist_id: str
    date_added_threshold: int


@dataclass(frozen=True)
class PacingConfig:
    """Self-imposed request pacing."""
    page_delay: float = DEFAULT_PAGE_DELAY
    add_delay: float = DEFAULT_ADD_DELAY
    requests_per_second: float = DEFAULT_REQUESTS_PER_SECOND


@dataclass(frozen=True)
class LoggingConfig:
    """Log file directory (None = console only) and console level."""
    directory: Path | None = None
    level: str = "INFO"


@dataclass(frozen=True)
class Config:
    """
    Complete application configuration.

    Created by load_config() and treated as immutable.

    Example:
        config = load_config()
        print(f"Maintaining playlist {config.playlist.playlist_id}")
        print(f"Evicting after {config.playlist.date_added_threshold} days")
    """
    spotify: SpotifyConfig
    playlist: PlaylistConfig
    pacing: PacingConfig
    logging: LoggingConfig


def load_config(
    config_path: Path | None = None,
    environ: dict[str, str] | None = None,
    load_env_file: bool = True
) -> Config:
    """
    Load and validate configuration from config.yaml and the environment.

    Args:
        config_path: Optional explicit path to the config file. If None,
                     config.yaml in the current working directory is used
                     when present; a missing default file is not an error as
                     long as the environment supplies the required values.
        environ: Environment mapping to read overrides from. Defaults to
                 os.environ.
        load_env_file: Whether to load a .env file into os.environ first.

    Returns:
        Config: A frozen dataclass containing all configuration values.

    Raises:
        ConfigError: If an explicit config file is missing, the YAML is
                     invalid, or required values are missing or invalid.
    """
    if load_env_file:
        load_dotenv()
    if environ is None:
        environ = dict(os.environ)

    raw_config = _read_config_file(config_path)
    _apply_env_overrides(raw_config, environ)

    return Config(
        spotify=_parse_spotify_config(raw_config.get("spotify") or {}),
        playlist=_parse_playlist_config(raw_config.get("playlist") or {}),
        pacing=_parse_pacing_config(raw_config.get("pacing")),
        logging=_parse_logging_config(raw_config.get("logging")),
    )


def load_spotify_config(
    config_path: Path | None = None,
    environ: dict[str, str] | None = None,
    load_env_file: bool = True
) -> SpotifyConfig:
    """
    Load only the spotify section.

    Used by the auth command, which must work before a playlist has been
    configured. Same sources and overrides as load_config().
    """
    if load_env_file:
        load_dotenv()
    if environ is None:
        environ = dict(os.environ)

    raw_config = _read_config_file(config_path)
    _apply_env_overrides(raw_config, environ)
    return _parse_spotify_config(raw_config.get("spotify") or {})


def _read_config_file(config_path: Path | None) -> dict[str, Any]:
    explicit = config_path is not None
    if config_path is None:
        config_path = Path.cwd() / CONFIG_FILENAME

    if not config_path.exists():
        if explicit:
            raise ConfigError(
                f"Configuration file not found: {config_path}",
                details={"file_path": str(config_path)}
            )
        return {}

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            content = f.read()
    except IOError as e:
        raise ConfigError(
            f"Failed to read configuration file: {e}",
            details={"file_path": str(config_path), "original_error": str(e)}
        ) from e

    try:
        raw_config = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigError(
            f"Invalid YAML syntax in configuration file: {e}",
            details={"file_path": str(config_path), "original_error": str(e)}
        ) from e

    if raw_config is None:
        return {}

    if not isinstance(raw_config, dict):
        raise ConfigError(
            "Configuration file must contain a YAML dictionary",
            details={"file_path": str(config_path)}
        )

    for section in ("spotify", "playlist", "pacing", "logging"):
        value = raw_config.get(section)
        if value is not None and not isinstance(value, dict):
            raise ConfigError(
                f"Section '{section}' must be a dictionary",
                details={"section": section}
            )

    return raw_config


def _apply_env_overrides(raw_config: dict[str, Any], environ: dict[str, str]) -> None:
    for env_var, (section, key) in ENV_OVERRIDES.items():
        value = environ.get(env_var)
        if value:
            if raw_config.get(section) is None:
                raw_config[section] = {}
            raw_config[section][key] = value


def _require_string(section: dict[str, Any], key: str, field_name: str) -> str:
    value = section.get(key, "")
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(
            f"'{field_name}' must be a non-empty string",
            details={"field": field_name}
        )
    return value.strip()


def _parse_spotify_config(spotify_section: dict[str, Any]) -> SpotifyConfig:
    client_id = _require_string(spotify_section, "client_id", "spotify.client_id")
    client_secret = _require_string(spotify_section, "client_secret", "spotify.client_secret")

    redirect_uri = spotify_section.get("redirect_uri") or DEFAULT_REDIRECT_URI
    if not isinstance(redirect_uri, str):
        raise ConfigError(
            "'spotify.redirect_uri' must be a string",
            details={"field": "spotify.redirect_uri"}
        )

    refresh_token = spotify_section.get("refresh_token")
    if refresh_token is not None:
        if not isinstance(refresh_token, str):
            raise ConfigError(
                "'spotify.refresh_token' must be a string or null",
                details={"field": "spotify.refresh_token"}
            )
        refresh_token = refresh_token.strip() or None

    return SpotifyConfig(
        client_id=client_id,
        client_secret=client_secret,
        redirect_uri=redirect_uri.strip(),
        refresh_token=refresh_token
    )


def _parse_playlist_config(playlist_section: dict[str, Any]) -> PlaylistConfig:
    """
    Parse the playlist section.

    The playlist id may be given as a bare ID, a spotify: URI or an
    open.spotify.com URL; it is normalized to the bare ID.
    """
    raw_id = _require_string(playlist_section, "id", "playlist.id")
    try:
        playlist_id = extract_playlist_id(raw_id)
    except ValueError as e:
        raise ConfigError(
            f"'playlist.id' is not a valid playlist reference: {raw_id}",
            details={"field": "playlist.id", "value": raw_id}
        ) from e

    raw_threshold = playlist_section.get("date_added_threshold", DEFAULT_DATE_ADDED_THRESHOLD)
    # Environment values arrive as strings
    if isinstance(raw_threshold, str):
        try:
            raw_threshold = int(raw_threshold.strip())
        except ValueError:
            pass

    if isinstance(raw_threshold, bool) or not isinstance(raw_threshold, int) or raw_threshold < 0:
        raise ConfigError(
            "'playlist.date_added_threshold' must be a non-negative integer",
            details={"field": "playlist.date_added_threshold", "value": raw_threshold}
        )

    return PlaylistConfig(playlist_id=playlist_id, date_added_threshold=raw_threshold)


def _parse_pacing_config(pacing_section: dict[str, Any] | None) -> PacingConfig:
    if pacing_section is None:
        return PacingConfig()

    values: dict[str, float] = {}
    defaults = PacingConfig()

    for key in ("page_delay", "add_delay", "requests_per_second"):
        raw = pacing_section.get(key)
        if raw is None:
            values[key] = getattr(defaults, key)
            continue
        if isinstance(raw, bool) or not isinstance(raw, (int, float)) or raw < 0:
            raise ConfigError(
                f"'pacing.{key}' must be a non-negative number",
                details={"field": f"pacing.{key}", "value": raw}
            )
        values[key] = float(raw)

    if values["requests_per_second"] == 0:
        raise ConfigError(
            "'pacing.requests_per_second' must be greater than zero",
            details={"field": "pacing.requests_per_second"}
        )

    return PacingConfig(**values)


def _parse_logging_config(logging_section: dict[str, Any] | None) -> LoggingConfig:
    if logging_section is None:
        return LoggingConfig()

    directory = None
    raw_directory = logging_section.get("directory")
    if raw_directory is not None:
        if not isinstance(raw_directory, str) or not raw_directory.strip():
            raise ConfigError(
                "'logging.directory' must be a non-empty string or null",
                details={"field": "logging.directory"}
            )
        directory = Path(raw_directory.strip()).expanduser().resolve()

    level = str(logging_section.get("level", "INFO")).upper()
    if level not in LOG_LEVELS:
        raise ConfigError(
            f"'logging.level' must be one of {', '.join(LOG_LEVELS)}",
            details={"field": "logging.level", "value": level}
        )

    return LoggingConfig(directory=directory, level=level)
