"""
Spotify API session for release-radar.

SpotifyClient wraps one authenticated spotipy.Spotify instance. It is
created once per run (see release_radar.spotify.auth.create_client) and
passed explicitly to every component; nothing in the package reaches for a
module-level client.

Every method issues exactly ONE request, so callers can count requests for
pacing. Payloads are converted into release_radar.spotify.models objects,
and spotipy / requests failures are converted into SpotifyError.

Usage:
    oauth, _ = authenticate(config.spotify)
    client = create_client(oauth)

    page = client.playlist_items_page(playlist_id, offset=0, limit=100)
    for entry in page.items:
        print(entry.added_at, entry.track.name if entry.track else "-")
"""

from typing import Any, Callable, TypeVar

import requests
import spotipy
from spotipy.oauth2 import SpotifyOauthError

from release_radar.core.exceptions import SpotifyError
from release_radar.spotify.models import (
    Artist,
    Page,
    PlaylistEntry,
    Release,
    Track,
)


R = TypeVar("R")

# Spotify API per-request limits
MAX_FOLLOWED_ARTISTS_PAGE = 50
MAX_PLAYLIST_ITEMS_PAGE = 100
MAX_ITEMS_PER_WRITE = 100
MAX_ARTIST_ALBUMS_PAGE = 50


class SpotifyClient:
    """
    Explicit Spotify session.

    Attributes:
        _spotify: The underlying spotipy.Spotify instance.

    Rate Limiting:
        spotipy retries 429 responses on its own (honouring Retry-After).
        A 429 that still escapes is reported as SpotifyError with
        is_rate_limit=True. Self-imposed pacing lives in
        release_radar.core.pacing, not here.
    """

    def __init__(self, spotify_instance: spotipy.Spotify) -> None:
        self._spotify = spotify_instance

    # =========================================================================
    # Error translation
    # =========================================================================

    def _call(
        self,
        action: str,
        details: dict[str, Any],
        func: Callable[..., R],
        *args,
        allow_empty: bool = False,
        **kwargs
    ) -> R:
        """
        Run one spotipy call and translate its failures.

        Args:
            action: Human-readable description used in the error message,
                    e.g. "fetch track".
            details: Context stored on the raised SpotifyError.
            func: Bound spotipy method.
            allow_empty: Accept a None result (write endpoints).

        Raises:
            SpotifyError: On any API, OAuth or transport failure, or when
                          the API returned nothing.
        """
        try:
            result = func(*args, **kwargs)
        except spotipy.SpotifyException as e:
            status = e.http_status
            if status == 429:
                raise SpotifyError(
                    f"Rate limited while trying to {action}",
                    details={**details, "http_status": 429},
                    is_rate_limit=True
                ) from e
            if status == 401:
                raise SpotifyError(
                    f"Authentication expired or invalid while trying to {action}",
                    details={**details, "http_status": 401},
                    is_auth_error=True
                ) from e
            raise SpotifyError(
                f"Failed to {action}: {e.msg}",
                details={**details, "http_status": status, "original_error": str(e)}
            ) from e
        except SpotifyOauthError as e:
            raise SpotifyError(
                f"Authentication failed while trying to {action}: {e}",
                details={**details, "original_error": str(e)},
                is_auth_error=True
            ) from e
        except requests.exceptions.RequestException as e:
            raise SpotifyError(
                f"Network error while trying to {action}: {e}",
                details={**details, "original_error": str(e)}
            ) from e

        if result is None and not allow_empty:
            raise SpotifyError(f"Empty response while trying to {action}", details=details)
        return result

    # =========================================================================
    # Reads
    # =========================================================================

    def followed_artists_page(
        self,
        after: str | None = None,
        limit: int = MAX_FOLLOWED_ARTISTS_PAGE
    ) -> Page[Artist, str]:
        """
        Get one page of the current user's followed artists.

        Args:
            after: Cursor returned by the previous page, None for the first.
            limit: Page size (max 50).

        Returns:
            Page whose next_cursor is the "after" cursor of the next page,
            or None once the listing is exhausted.
        """
        response = self._call(
            "list followed artists",
            {"after": after},
            self._spotify.current_user_followed_artists,
            limit=min(limit, MAX_FOLLOWED_ARTISTS_PAGE),
            after=after
        )
        artists = response.get("artists") or {}
        items = tuple(
            Artist.from_spotify_api(a) for a in artists.get("items") or [] if a and a.get("id")
        )
        next_cursor = None
        if artists.get("next"):
            next_cursor = (artists.get("cursors") or {}).get("after")
        return Page(items=items, next_cursor=next_cursor)

    def artist_releases(
        self,
        artist_id: str,
        release_group: str,
        limit: int = 10
    ) -> list[Release]:
        """
        Get an artist's most recent releases of one group.

        Args:
            artist_id: Spotify artist ID.
            release_group: "album" or "single".
            limit: Number of releases to return (max 50).

        Returns:
            Releases without track listings, in service order.
        """
        response = self._call(
            f"list {release_group}s of artist {artist_id}",
            {"artist_id": artist_id, "release_group": release_group},
            self._spotify.artist_albums,
            artist_id,
            include_groups=release_group,
            limit=min(limit, MAX_ARTIST_ALBUMS_PAGE)
        )
        return [
            Release.from_spotify_api(item, release_group=release_group)
            for item in response.get("items") or []
            if item and item.get("id")
        ]

    def release(self, release_id: str, release_group: str | None = None) -> Release:
        """
        Get a full release with its track listing (first page of tracks,
        up to 50, as returned with the album object).
        """
        response = self._call(
            f"fetch release {release_id}",
            {"release_id": release_id},
            self._spotify.album,
            release_id
        )
        return Release.from_spotify_api(response, release_group=release_group)

    def track(self, track_id: str) -> Track:
        """Get full track detail, including external identifiers."""
        response = self._call(
            f"fetch track {track_id}",
            {"track_id": track_id},
            self._spotify.track,
            track_id
        )
        return Track.from_spotify_api(response)

    def playlist_items_page(
        self,
        playlist_id: str,
        offset: int | None = None,
        limit: int = MAX_PLAYLIST_ITEMS_PAGE
    ) -> Page[PlaylistEntry, int]:
        """
        Get one page of playlist rows.

        Args:
            playlist_id: Spotify playlist ID.
            offset: Index of the first row, None for 0.
            limit: Page size (max 100).

        Returns:
            Page whose next_cursor is the offset of the next page, or None
            when the service reports no "next" page.
        """
        offset = offset or 0
        limit = min(limit, MAX_PLAYLIST_ITEMS_PAGE)
        response = self._call(
            "list playlist items",
            {"playlist_id": playlist_id, "offset": offset},
            self._spotify.playlist_items,
            playlist_id,
            limit=limit,
            offset=offset,
            additional_types=("track", "episode")
        )
        items = tuple(
            PlaylistEntry.from_spotify_api(item) for item in response.get("items") or [] if item
        )
        next_cursor = offset + limit if response.get("next") else None
        return Page(items=items, next_cursor=next_cursor)

    # =========================================================================
    # Writes
    # =========================================================================

    def add_playlist_items(self, playlist_id: str, uris: list[str]) -> None:
        """Append tracks to the end of the playlist, in the given order."""
        self._check_write_size(uris)
        self._call(
            "add playlist items",
            {"playlist_id": playlist_id, "count": len(uris)},
            self._spotify.playlist_add_items,
            playlist_id,
            uris,
            allow_empty=True
        )

    def remove_playlist_items(self, playlist_id: str, uris: list[str]) -> None:
        """Remove every occurrence of the given track URIs (max 100)."""
        self._check_write_size(uris)
        self._call(
            "remove playlist items",
            {"playlist_id": playlist_id, "count": len(uris)},
            self._spotify.playlist_remove_all_occurrences_of_items,
            playlist_id,
            uris,
            allow_empty=True
        )

    @staticmethod
    def _check_write_size(uris: list[str]) -> None:
        if len(uris) > MAX_ITEMS_PER_WRITE:
            raise ValueError(
                f"At most {MAX_ITEMS_PER_WRITE} items per request, got {len(uris)}"
            )
