"""
Exception classes for release-radar.

Exception Hierarchy:
    ReleaseRadarError (base)
        ConfigError - Configuration file / environment issues
        SpotifyError - Spotify API and authentication issues

Unparsable release dates are NOT errors: they are expected heterogeneity in
catalog data and are silently excluded from release selection.
"""


class ReleaseRadarError(Exception):
    """
    Base exception for all release-radar errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional context (artist id,
                 playlist id, original error text...).

    Example:
        try:
            synchronizer.run()
        except ReleaseRadarError as e:
            logger.error(f"Run failed: {e.message}")
            if e.details:
                logger.debug(f"Details: {e.details}")
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return self.message


class ConfigError(ReleaseRadarError):
    """
    Raised when the configuration is missing or invalid.

    This is a CRITICAL error: the run cannot start without a valid
    configuration.

    Common causes:
        - config.yaml not found at an explicitly given path
        - Invalid YAML syntax
        - Missing client_id / client_secret / playlist id
        - Negative date_added_threshold

    Example:
        raise ConfigError(
            "'playlist.id' must be a non-empty string",
            details={'field': 'playlist.id'}
        )
    """
    pass


class SpotifyError(ReleaseRadarError):
    """
    Raised when a Spotify API call or authentication step fails.

    Can be CRITICAL (auth failure) or NON-CRITICAL (one artist's albums
    could not be fetched). The synchronizer catches it at the smallest unit
    of work that can continue without it.

    Attributes:
        is_auth_error: True if this is an authentication error (CRITICAL).
        is_rate_limit: True if the service answered 429.

    Example:
        raise SpotifyError(
            "Failed to fetch releases: artist not found",
            details={'artist_id': artist_id, 'http_status': 404}
        )
    """

    def __init__(
        self,
        message: str,
        details: dict | None = None,
        is_auth_error: bool = False,
        is_rate_limit: bool = False
    ) -> None:
        super().__init__(message, details)
        self.is_auth_error = is_auth_error
        self.is_rate_limit = is_rate_limit
