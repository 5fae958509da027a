"""
Data models for Spotify entities.

Immutable dataclasses for the objects a synchronization cycle reads from
Spotify. They are snapshots: fetched fresh every run, never cached.

Design Decisions:
    - All dataclasses are frozen (immutable)
    - Sequences are tuples so instances stay hashable
    - Factory methods (from_spotify_api) hold all knowledge of the API
      payload layout; the rest of the package only sees these models

Usage:
    from release_radar.spotify.models import Track, PlaylistEntry

    track = Track.from_spotify_api(client.track("4cOdK2wGLETKBW3PvgPWqT"))
    print(track.external_id)  # "GBUM71029604"
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Generic, TypeVar

from release_radar.utils import parse_timestamp


T = TypeVar("T")
C = TypeVar("C")

ALBUM = "album"
SINGLE = "single"


@dataclass(frozen=True)
class Artist:
    """
    A followed (or credited) artist. Identity is the Spotify ID.

    Attributes:
        id: Spotify artist ID.
        name: Display name.
    """
    id: str
    name: str

    @classmethod
    def from_spotify_api(cls, data: dict[str, Any]) -> "Artist":
        return cls(id=data.get("id") or "", name=data.get("name", ""))


def _artists_from(data: dict[str, Any]) -> tuple[Artist, ...]:
    return tuple(Artist.from_spotify_api(a) for a in data.get("artists") or [])


@dataclass(frozen=True)
class TrackRef:
    """
    Simplified track as listed inside a release.

    It carries no external identifier: a full Track must be fetched for
    deduplication.
    """
    id: str
    uri: str
    name: str
    artists: tuple[Artist, ...]
    track_number: int

    @classmethod
    def from_spotify_api(cls, data: dict[str, Any]) -> "TrackRef":
        return cls(
            id=data["id"],
            uri=data.get("uri") or f"spotify:track:{data['id']}",
            name=data.get("name", ""),
            artists=_artists_from(data),
            track_number=data.get("track_number", 0),
        )

    @property
    def artist_names(self) -> tuple[str, ...]:
        return tuple(a.name for a in self.artists)


@dataclass(frozen=True)
class Release:
    """
    An album or single in an artist's catalog.

    Attributes:
        id: Spotify album ID.
        name: Release title.
        release_date_raw: Date string exactly as reported. Usually
                          "yyyy-MM-dd" but may be "yyyy-MM" or "yyyy"
                          depending on release_date_precision.
        release_group: "album" or "single" (singles include EPs).
        tracks: Track listing; empty when the release comes from an
                artist's album list rather than a full album request.
    """
    id: str
    name: str
    release_date_raw: str
    release_group: str
    tracks: tuple[TrackRef, ...] = ()

    @classmethod
    def from_spotify_api(cls, data: dict[str, Any], release_group: str | None = None) -> "Release":
        """
        Create a Release from an album object.

        Args:
            data: Simplified album (from artist_albums) or full album
                  (from album). Only the full album has a track listing.
            release_group: Group the release was requested under. Falls
                           back to album_group / album_type from the payload.
        """
        group = release_group or data.get("album_group") or data.get("album_type") or ""
        track_items = (data.get("tracks") or {}).get("items") or []
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            release_date_raw=data.get("release_date") or "",
            release_group=group,
            tracks=tuple(TrackRef.from_spotify_api(t) for t in track_items if t and t.get("id")),
        )


@dataclass(frozen=True)
class Track:
    """
    Full track detail.

    Attributes:
        id: Spotify track ID.
        uri: Spotify URI, used for playlist add/remove requests.
        name: Track title.
        artists: Credited artists in order.
        external_id: Catalog-wide identifier used as the deduplication key.
                     The ISRC when present, otherwise the first external
                     identifier reported, otherwise None.
        track_number: Position within its release.
    """
    id: str
    uri: str
    name: str
    artists: tuple[Artist, ...]
    external_id: str | None
    track_number: int = 0

    @classmethod
    def from_spotify_api(cls, data: dict[str, Any]) -> "Track":
        external_ids = data.get("external_ids") or {}
        external_id = external_ids.get("isrc")
        if not external_id and external_ids:
            external_id = next(iter(external_ids.values()), None)

        return cls(
            id=data["id"],
            uri=data.get("uri") or f"spotify:track:{data['id']}",
            name=data.get("name", ""),
            artists=_artists_from(data),
            external_id=external_id or None,
            track_number=data.get("track_number", 0),
        )

    @property
    def artist_names(self) -> tuple[str, ...]:
        return tuple(a.name for a in self.artists)


@dataclass(frozen=True)
class PlaylistEntry:
    """
    One row of the target playlist.

    Attributes:
        track: The track, or None when the row is not a usable track
               (podcast episode, local file, track removed from catalog).
        added_at: When the row was inserted (aware UTC), None if unknown.
        item_type: Payload type ("track", "episode", "local", "unknown").
    """
    track: Track | None
    added_at: datetime | None
    item_type: str = "track"

    @classmethod
    def from_spotify_api(cls, item: dict[str, Any]) -> "PlaylistEntry":
        added_at = parse_timestamp(item.get("added_at"))
        track_data = item.get("track")

        if not track_data:
            return cls(track=None, added_at=added_at, item_type="unknown")
        if item.get("is_local") or track_data.get("is_local"):
            return cls(track=None, added_at=added_at, item_type="local")

        item_type = track_data.get("type", "track")
        if item_type != "track" or not track_data.get("id"):
            return cls(track=None, added_at=added_at, item_type=item_type)

        return cls(
            track=Track.from_spotify_api(track_data),
            added_at=added_at,
            item_type="track"
        )

    @property
    def is_track(self) -> bool:
        return self.track is not None


@dataclass(frozen=True)
class Page(Generic[T, C]):
    """
    One page of a paginated listing.

    Attributes:
        items: Items of this page, in service order.
        next_cursor: Cursor (offset or opaque "after" token) of the next
                     page, None when the service reports no further page.
    """
    items: tuple[T, ...]
    next_cursor: C | None = None
