"""
release-radar: keep a Spotify playlist filled with today's releases.

Every run synchronizes one playlist against the catalog of the artists the
user follows:

    EVICT:    Remove playlist tracks added more than N days ago (default 7)

    DISCOVER: For each followed artist, look at the latest album and the
              latest single; if either was released today (UTC), collect
              its tracks, deduplicated by ISRC

    MERGE:    Append every collected track the playlist does not already
              contain, one request at a time

All requests are paced to stay well below Spotify's rate limit
(about 3 requests per second).

Modules:
    core/       - Configuration, logging, exceptions, request pacing
    spotify/    - Spotify API client, authentication and data models
    sync/       - Scanner, deduplication, pagination and the sync cycle
    utils.py    - Spotify ID and timestamp helpers
    cli.py      - Command-line interface

Usage:
    Command Line:
        release-radar auth                # once, prints a refresh token
        release-radar                     # daily, e.g. from cron
        release-radar --dry-run --days 14

    Python API:
        from release_radar.core import RateLimiter, load_config, setup_logging
        from release_radar.spotify import authenticate, create_client
        from release_radar.sync import PlaylistSynchronizer

        config = load_config()
        setup_logging(config.logging.directory)

        oauth, _ = authenticate(config.spotify)
        client = create_client(oauth)
        limiter = RateLimiter(requests_per_window=config.pacing.requests_per_second)

        report = PlaylistSynchronizer(client, config.playlist, config.pacing, limiter).run()

Configuration:
    Requires a config.yaml file in the current directory (or --config):

        spotify:
          client_id: "your_client_id"
          client_secret: "your_client_secret"
          refresh_token: "from release-radar auth"

        playlist:
          id: "https://open.spotify.com/playlist/..."
          date_added_threshold: 7

Dependencies:
    - spotipy: Spotify API client and OAuth
    - rich-click: CLI colors
    - tqdm: Progress bars
    - pyyaml: Configuration file parsing
    - python-dotenv: .env support for credentials
"""

__version__ = "0.1.0"
__author__ = "release-radar"
__license__ = "MIT"

# Convenience imports for common usage
from release_radar.core import (
    Config,
    ConfigError,
    RateLimiter,
    ReleaseRadarError,
    SpotifyError,
    get_logger,
    load_config,
    setup_logging,
)
from release_radar.spotify import SpotifyClient, Track
from release_radar.sync import PlaylistSynchronizer, SyncReport

__all__ = [
    # Version
    "__version__",
    # Core
    "Config",
    "load_config",
    "RateLimiter",
    "setup_logging",
    "get_logger",
    # Exceptions
    "ReleaseRadarError",
    "ConfigError",
    "SpotifyError",
    # Spotify
    "SpotifyClient",
    "Track",
    # Sync
    "PlaylistSynchronizer",
    "SyncReport",
]
