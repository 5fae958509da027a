"""
Spotify authentication for release-radar.

Two ways to obtain a user access token, tried in order:

    1. Refresh token: the configured refresh token is exchanged for an access
       token. No user interaction; this is the normal scheduled-run path.
    2. Authorization code: when no refresh token is configured or the
       exchange fails, the user opens the authorize URL, logs in and pastes
       back the redirect URL (or just the code). The resulting refresh token
       should be stored in the configuration for the next runs.

Tokens are kept in memory only (spotipy MemoryCacheHandler); spotipy
refreshes the access token on its own when it expires mid-run.

Usage:
    oauth, credentials = authenticate(config.spotify, prompt=ask_for_code)
    client = create_client(oauth)
"""

from dataclasses import dataclass
from typing import Callable

import requests
import spotipy
from spotipy.cache_handler import MemoryCacheHandler
from spotipy.oauth2 import SpotifyOAuth, SpotifyOauthError

from release_radar.core.config import SpotifyConfig
from release_radar.core.exceptions import SpotifyError
from release_radar.core.logger import get_logger
from release_radar.spotify.client import SpotifyClient


logger = get_logger(__name__)

SCOPES = (
    "user-follow-read",
    "user-read-private",
    "playlist-read-private",
    "playlist-modify-private",
    "playlist-modify-public",
)

# Prompt receives the authorize URL and returns the redirect URL or code
CodePrompt = Callable[[str], str]


@dataclass(frozen=True)
class Credentials:
    """
    Outcome of authentication.

    Attributes:
        access_token: Bearer token for API requests.
        refresh_token: Refresh token to store for later runs.
        interactive: True if the authorization-code flow had to be used,
                     meaning the stored refresh token is missing or stale.
    """
    access_token: str
    refresh_token: str | None
    interactive: bool


def build_oauth(config: SpotifyConfig) -> SpotifyOAuth:
    """Create the spotipy OAuth manager with an in-memory token cache."""
    return SpotifyOAuth(
        client_id=config.client_id,
        client_secret=config.client_secret,
        redirect_uri=config.redirect_uri,
        scope=" ".join(SCOPES),
        cache_handler=MemoryCacheHandler(),
        open_browser=False
    )


def authenticate(
    config: SpotifyConfig,
    prompt: CodePrompt | None = None,
    oauth: SpotifyOAuth | None = None
) -> tuple[SpotifyOAuth, Credentials]:
    """
    Obtain an access token, falling back to the interactive flow.

    Args:
        config: Spotify credentials from the configuration.
        prompt: Callable used for the interactive flow. None means the
                process cannot interact with a user (scheduled run), so a
                failed refresh is fatal.
        oauth: Pre-built OAuth manager (tests); built from config if None.

    Returns:
        Tuple of (oauth manager holding the token, Credentials).

    Raises:
        SpotifyError: With is_auth_error=True if no token could be obtained.
    """
    oauth = oauth or build_oauth(config)

    if config.refresh_token:
        logger.info("[AUTH] Trying to login via refresh token...")
        try:
            token_info = oauth.refresh_access_token(config.refresh_token)
            logger.info("[AUTH] Logged in via refresh token")
            return oauth, Credentials(
                access_token=token_info["access_token"],
                refresh_token=token_info.get("refresh_token") or config.refresh_token,
                interactive=False
            )
        except (SpotifyOauthError, requests.exceptions.RequestException) as e:
            logger.warning(f"[AUTH] Refresh token exchange failed: {e}")
    else:
        logger.info("[AUTH] No refresh token configured")

    if prompt is None:
        raise SpotifyError(
            "Could not authenticate with the refresh token and no interactive "
            "login is possible. Run 'release-radar auth' to obtain a new one.",
            is_auth_error=True
        )

    logger.info("[AUTH] Trying to login via new request...")
    return oauth, authorize_interactively(oauth, prompt)


def authorize_interactively(oauth: SpotifyOAuth, prompt: CodePrompt) -> Credentials:
    """
    Run the authorization-code flow.

    Raises:
        SpotifyError: With is_auth_error=True if the code exchange fails.
    """
    authorize_url = oauth.get_authorize_url()
    response = prompt(authorize_url).strip()

    try:
        code = oauth.parse_response_code(response)
        oauth.get_access_token(code, as_dict=False, check_cache=False)
    except (SpotifyOauthError, requests.exceptions.RequestException) as e:
        raise SpotifyError(
            f"Authorization code exchange failed: {e}",
            details={"original_error": str(e)},
            is_auth_error=True
        ) from e

    token_info = oauth.cache_handler.get_cached_token() or {}
    if not token_info.get("access_token"):
        raise SpotifyError("Authorization returned no access token", is_auth_error=True)

    logger.info("[AUTH] Logged in via authorization code")
    return Credentials(
        access_token=token_info["access_token"],
        refresh_token=token_info.get("refresh_token"),
        interactive=True
    )


def create_client(oauth: SpotifyOAuth, requests_timeout: int = 30) -> SpotifyClient:
    """Build the run's SpotifyClient session from an authenticated manager."""
    spotify_instance = spotipy.Spotify(auth_manager=oauth, requests_timeout=requests_timeout)
    return SpotifyClient(spotify_instance)
