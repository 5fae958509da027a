"""Test Spotify authentication"""

from unittest.mock import Mock, patch

import pytest
from spotipy.oauth2 import SpotifyOauthError

from release_radar.core.config import SpotifyConfig
from release_radar.core.exceptions import SpotifyError
from release_radar.spotify.auth import SCOPES, authenticate, build_oauth, create_client
from release_radar.spotify.client import SpotifyClient


def spotify_config(refresh_token="refresh"):
    return SpotifyConfig(
        client_id="id",
        client_secret="secret",
        redirect_uri="http://127.0.0.1:8888/callback",
        refresh_token=refresh_token
    )


@pytest.fixture
def oauth():
    """OAuth manager whose interactive flow yields a fresh token"""
    oauth = Mock()
    oauth.refresh_access_token.return_value = {"access_token": "access", "refresh_token": "rotated"}
    oauth.get_authorize_url.return_value = "https://accounts.spotify.com/authorize?client_id=id"
    oauth.parse_response_code.return_value = "code"
    oauth.cache_handler.get_cached_token.return_value = {
        "access_token": "interactive-access",
        "refresh_token": "new-refresh",
    }
    return oauth


class TestAuthenticate:
    """Test authenticate"""

    def test_refresh_token_success(self, oauth):
        """Test a valid refresh token skips the interactive flow"""
        prompt = Mock()

        _, credentials = authenticate(spotify_config(), prompt=prompt, oauth=oauth)

        oauth.refresh_access_token.assert_called_once_with("refresh")
        prompt.assert_not_called()
        assert credentials.access_token == "access"
        assert credentials.refresh_token == "rotated"
        assert not credentials.interactive

    def test_refresh_failure_falls_back(self, oauth):
        """Test a rejected refresh token falls back to the interactive flow"""
        oauth.refresh_access_token.side_effect = SpotifyOauthError("invalid_grant")
        prompt = Mock(return_value="http://127.0.0.1:8888/callback?code=code")

        _, credentials = authenticate(spotify_config(), prompt=prompt, oauth=oauth)

        prompt.assert_called_once_with("https://accounts.spotify.com/authorize?client_id=id")
        oauth.parse_response_code.assert_called_once_with("http://127.0.0.1:8888/callback?code=code")
        oauth.get_access_token.assert_called_once_with("code", as_dict=False, check_cache=False)
        assert credentials.interactive
        assert credentials.refresh_token == "new-refresh"

    def test_no_refresh_token_goes_interactive(self, oauth):
        """Test a missing refresh token goes straight to the interactive flow"""
        _, credentials = authenticate(spotify_config(refresh_token=None), prompt=Mock(return_value="code"), oauth=oauth)

        oauth.refresh_access_token.assert_not_called()
        assert credentials.access_token == "interactive-access"

    def test_non_interactive_failure(self, oauth):
        """Test a failed refresh without prompt is an auth error"""
        oauth.refresh_access_token.side_effect = SpotifyOauthError("invalid_grant")

        with pytest.raises(SpotifyError) as exc_info:
            authenticate(spotify_config(), prompt=None, oauth=oauth)

        assert exc_info.value.is_auth_error

    def test_code_exchange_failure(self, oauth):
        """Test a rejected authorization code is an auth error"""
        oauth.get_access_token.side_effect = SpotifyOauthError("invalid code")

        with pytest.raises(SpotifyError) as exc_info:
            authenticate(spotify_config(refresh_token=None), prompt=Mock(return_value="code"), oauth=oauth)

        assert exc_info.value.is_auth_error

    def test_no_token_after_exchange(self, oauth):
        """Test an exchange that leaves no token is an auth error"""
        oauth.cache_handler.get_cached_token.return_value = None

        with pytest.raises(SpotifyError, match="no access token"):
            authenticate(spotify_config(refresh_token=None), prompt=Mock(return_value="code"), oauth=oauth)


class TestBuildOauth:
    """Test OAuth manager and session construction"""

    @patch("release_radar.spotify.auth.SpotifyOAuth")
    def test_scopes_and_cache(self, mock_oauth):
        """Test all required scopes are requested and no browser is opened"""
        build_oauth(spotify_config())

        kwargs = mock_oauth.call_args.kwargs
        assert kwargs["scope"].split() == list(SCOPES)
        assert kwargs["open_browser"] is False
        assert kwargs["redirect_uri"] == "http://127.0.0.1:8888/callback"

    @patch("release_radar.spotify.auth.spotipy.Spotify")
    def test_create_client(self, mock_spotify):
        """Test the session wraps a spotipy instance using the OAuth manager"""
        oauth = Mock()

        client = create_client(oauth)

        assert isinstance(client, SpotifyClient)
        mock_spotify.assert_called_once_with(auth_manager=oauth, requests_timeout=30)
