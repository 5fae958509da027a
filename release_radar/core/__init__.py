"""
Core module for release-radar.

Foundational components used throughout the application:
    - exceptions: Custom exception classes for error handling
    - config: Configuration loading and validation
    - logger: Logging system with console and file outputs
    - pacing: Clock abstraction and request rate limiting

Usage:
    from release_radar.core import (
        Config, load_config,
        setup_logging, get_logger,
        RateLimiter,
        ReleaseRadarError, ConfigError, SpotifyError
    )
"""

from release_radar.core.config import (
    Config,
    LoggingConfig,
    PacingConfig,
    PlaylistConfig,
    SpotifyConfig,
    load_config,
    load_spotify_config,
)
from release_radar.core.exceptions import (
    ConfigError,
    ReleaseRadarError,
    SpotifyError,
)
from release_radar.core.logger import (
    get_logger,
    setup_logging,
    shutdown_logging,
)
from release_radar.core.pacing import (
    Clock,
    RateLimiter,
    RequestWindow,
    SystemClock,
    compute_idle_time,
)

__all__ = [
    # Config
    "Config",
    "SpotifyConfig",
    "PlaylistConfig",
    "PacingConfig",
    "LoggingConfig",
    "load_config",
    "load_spotify_config",
    # Exceptions
    "ReleaseRadarError",
    "ConfigError",
    "SpotifyError",
    # Logger
    "setup_logging",
    "get_logger",
    "shutdown_logging",
    # Pacing
    "Clock",
    "SystemClock",
    "RateLimiter",
    "RequestWindow",
    "compute_idle_time",
]
