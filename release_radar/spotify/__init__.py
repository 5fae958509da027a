"""
Spotify integration module for release-radar.

    - SpotifyClient: explicit API session wrapping spotipy
    - authenticate / create_client: refresh-token login with interactive fallback
    - Artist, Release, TrackRef, Track, PlaylistEntry, Page: data models

Usage:
    from release_radar.spotify import authenticate, create_client

    oauth, credentials = authenticate(config.spotify)
    client = create_client(oauth)
"""

from release_radar.spotify.auth import (
    Credentials,
    authenticate,
    authorize_interactively,
    build_oauth,
    create_client,
)
from release_radar.spotify.client import SpotifyClient
from release_radar.spotify.models import (
    ALBUM,
    SINGLE,
    Artist,
    Page,
    PlaylistEntry,
    Release,
    Track,
    TrackRef,
)

__all__ = [
    # Client
    "SpotifyClient",
    # Auth
    "Credentials",
    "authenticate",
    "authorize_interactively",
    "build_oauth",
    "create_client",
    # Models
    "ALBUM",
    "SINGLE",
    "Artist",
    "Page",
    "PlaylistEntry",
    "Release",
    "Track",
    "TrackRef",
]
