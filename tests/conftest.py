"""Test configuration and fixtures"""

from datetime import datetime, timedelta, timezone
from typing import Callable

import pytest
from spotipy import SpotifyException

from release_radar.core.config import PacingConfig, PlaylistConfig
from release_radar.core.pacing import RateLimiter
from release_radar.spotify.client import SpotifyClient


# Midday so that "today" is unambiguous whatever the test does with time
NOW = datetime(2024, 5, 17, 12, 0, 0, tzinfo=timezone.utc)
TODAY = "2024-05-17"


class FakeClock:
    """Clock whose time only moves on sleep() or advance()"""

    def __init__(self, start: datetime = NOW) -> None:
        self.start = start
        self.elapsed = 0.0
        self.sleeps: list[float] = []

    def monotonic(self) -> float:
        return self.elapsed

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.elapsed += seconds

    def now(self) -> datetime:
        return self.start + timedelta(seconds=self.elapsed)

    def advance(self, seconds: float) -> None:
        self.elapsed += seconds


class FakeSpotify:
    """
    In-memory stand-in for spotipy.Spotify.

    Implements the endpoints SpotifyClient uses with the same payload
    shapes, records every call, and can be told to fail.
    """

    def __init__(self, clock: FakeClock, request_time: float = 0.0) -> None:
        self.clock = clock
        self.request_time = request_time
        self.calls: list[tuple[str, tuple, dict]] = []

        self.followed: list[dict] = []
        self.releases: dict[tuple[str, str], list[dict]] = {}
        self.albums: dict[str, dict] = {}
        self.tracks: dict[str, dict] = {}
        self.playlist: list[dict] = []

        self._failures: dict[str, tuple[Exception, Callable[..., bool]]] = {}

    def fail(self, method: str, error: Exception | None = None, when: Callable[..., bool] | None = None) -> None:
        """Make `method` raise `error` for calls matching `when`"""
        error = error or SpotifyException(500, -1, "Internal server error")
        self._failures[method] = (error, when or (lambda *args, **kwargs: True))

    def calls_to(self, method: str) -> list[tuple[tuple, dict]]:
        return [(args, kwargs) for name, args, kwargs in self.calls if name == method]

    def _record(self, method: str, *args, **kwargs) -> None:
        self.calls.append((method, args, kwargs))
        self.clock.advance(self.request_time)
        if method in self._failures:
            error, when = self._failures[method]
            if when(*args, **kwargs):
                raise error

    # Reads

    def current_user_followed_artists(self, limit=20, after=None):
        self._record("current_user_followed_artists", limit=limit, after=after)
        start = 0
        if after is not None:
            ids = [a["id"] for a in self.followed]
            start = ids.index(after) + 1
        items = self.followed[start:start + limit]
        has_more = start + limit < len(self.followed)
        return {
            "artists": {
                "items": items,
                "next": "https://api.spotify.com/v1/me/following?next" if has_more else None,
                "cursors": {"after": items[-1]["id"] if has_more else None},
                "total": len(self.followed),
            }
        }

    def artist_albums(self, artist_id, album_type=None, include_groups=None, country=None, limit=20, offset=0):
        self._record("artist_albums", artist_id, include_groups=include_groups, limit=limit)
        return {"items": self.releases.get((artist_id, include_groups), [])[:limit]}

    def album(self, album_id, market=None):
        self._record("album", album_id)
        return self.albums[album_id]

    def track(self, track_id, market=None):
        self._record("track", track_id)
        return self.tracks[track_id]

    def playlist_items(self, playlist_id, fields=None, limit=100, offset=0, market=None, additional_types=("track", "episode")):
        self._record("playlist_items", playlist_id, limit=limit, offset=offset)
        items = self.playlist[offset:offset + limit]
        has_more = offset + limit < len(self.playlist)
        return {
            "items": items,
            "next": "https://api.spotify.com/v1/playlists/next" if has_more else None,
            "total": len(self.playlist),
        }

    # Writes

    def playlist_add_items(self, playlist_id, items, position=None):
        self._record("playlist_add_items", playlist_id, list(items))
        added_at = self.clock.now().strftime("%Y-%m-%dT%H:%M:%SZ")
        for uri in items:
            track_data = next(t for t in self.tracks.values() if t["uri"] == uri)
            self.playlist.append({"added_at": added_at, "track": track_data})
        return {"snapshot_id": "snapshot"}

    def playlist_remove_all_occurrences_of_items(self, playlist_id, items, snapshot_id=None):
        self._record("playlist_remove_all_occurrences_of_items", playlist_id, list(items))
        removed = set(items)
        self.playlist = [
            item for item in self.playlist
            if not (item.get("track") and item["track"].get("uri") in removed)
        ]
        return {"snapshot_id": "snapshot"}


class SpotifyData:
    """Factories for Spotify API payloads"""

    @staticmethod
    def artist(artist_id: str, name: str | None = None) -> dict:
        return {"id": artist_id, "name": name or f"Artist {artist_id}", "type": "artist"}

    @staticmethod
    def track(
        track_id: str,
        isrc: str | None = "auto",
        name: str | None = None,
        artists: list[dict] | None = None,
        track_number: int = 1
    ) -> dict:
        external_ids = {}
        if isrc == "auto":
            external_ids = {"isrc": f"ISRC{track_id.upper()}"}
        elif isrc is not None:
            external_ids = {"isrc": isrc}
        return {
            "id": track_id,
            "uri": f"spotify:track:{track_id}",
            "name": name or f"Track {track_id}",
            "type": "track",
            "artists": artists or [SpotifyData.artist("a1", "Test Artist")],
            "external_ids": external_ids,
            "track_number": track_number,
        }

    @staticmethod
    def release(
        album_id: str,
        release_date: str = TODAY,
        group: str = "album",
        tracks: list[dict] | None = None,
        name: str | None = None
    ) -> dict:
        data = {
            "id": album_id,
            "name": name or f"Release {album_id}",
            "album_group": group,
            "album_type": group,
            "release_date": release_date,
            "release_date_precision": "day" if len(release_date) == 10 else "year",
        }
        if tracks is not None:
            data["tracks"] = {
                "items": [
                    {k: t[k] for k in ("id", "uri", "name", "type", "artists", "track_number")}
                    for t in tracks
                ],
                "next": None,
            }
        return data

    @staticmethod
    def playlist_item(track_data: dict | None, added_at: datetime | None) -> dict:
        return {
            "added_at": added_at.strftime("%Y-%m-%dT%H:%M:%SZ") if added_at else None,
            "is_local": False,
            "track": track_data,
        }

    @staticmethod
    def episode(episode_id: str) -> dict:
        return {
            "id": episode_id,
            "uri": f"spotify:episode:{episode_id}",
            "name": f"Episode {episode_id}",
            "type": "episode",
        }


def publish(backend: FakeSpotify, artist_id: str, group: str, release: dict, tracks: list[dict]) -> None:
    """Register a release of an artist along with its full track details"""
    backend.releases.setdefault((artist_id, group), []).append(
        {k: v for k, v in release.items() if k != "tracks"}
    )
    backend.albums[release["id"]] = release
    for track_data in tracks:
        backend.tracks[track_data["id"]] = track_data


@pytest.fixture
def clock():
    """Fake clock starting at 2024-05-17 12:00 UTC"""
    return FakeClock()


@pytest.fixture
def rate_limiter(clock):
    """Rate limiter on the fake clock, 3 requests per second"""
    return RateLimiter(clock=clock)


@pytest.fixture
def fake_spotify(clock):
    """Empty fake Spotify backend"""
    return FakeSpotify(clock)


@pytest.fixture
def client(fake_spotify):
    """SpotifyClient session over the fake backend"""
    return SpotifyClient(fake_spotify)


@pytest.fixture
def data():
    """Spotify payload factories"""
    return SpotifyData


@pytest.fixture
def playlist_config():
    return PlaylistConfig(playlist_id="pl1", date_added_threshold=7)


@pytest.fixture
def pacing_config():
    return PacingConfig()


@pytest.fixture
def publish_release(fake_spotify):
    """Register a release on the fake backend: publish_release(artist_id, group, release, tracks)"""
    def _publish(artist_id, group, release, tracks):
        publish(fake_spotify, artist_id, group, release, tracks)
    return _publish
