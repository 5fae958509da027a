"""
Track deduplication by external identifier.

The same recording shows up under different Spotify IDs, URIs and even
names (regional variants, re-uploads, single vs. album version). The
catalog-wide external identifier (ISRC) is stable across all of them, so it
is the ONLY identity key used here.
"""

from typing import Iterable, Iterator

from release_radar.spotify.models import PlaylistEntry, Track


def is_duplicate(a: Track, b: Track) -> bool:
    """True iff both tracks have an external_id and they are equal."""
    return a.external_id is not None and a.external_id == b.external_id


def playlist_external_ids(entries: Iterable[PlaylistEntry]) -> set[str]:
    """
    External ids of the track rows of a playlist.

    Non-track rows (episodes, local files) have no external id and are
    ignored, as are tracks the catalog gives no identifier for.
    """
    return {
        entry.track.external_id
        for entry in entries
        if entry.track is not None and entry.track.external_id
    }


class CandidateSet:
    """
    Ordered, deduplicated collection of tracks discovered in one cycle.

    Invariant: no two members share an external_id. Tracks without an
    external_id cannot be compared and are never admitted.

    Example:
        candidates = CandidateSet()
        candidates.add(track)          # True
        candidates.add(regional_copy)  # False, same ISRC
        list(candidates)               # [track]
    """

    def __init__(self, tracks: Iterable[Track] = ()) -> None:
        self._tracks: list[Track] = []
        self._external_ids: set[str] = set()
        for track in tracks:
            self.add(track)

    def add(self, track: Track) -> bool:
        """Append the track unless an equal one is present. Returns True if added."""
        if track.external_id is None or track.external_id in self._external_ids:
            return False
        self._tracks.append(track)
        self._external_ids.add(track.external_id)
        return True

    def __contains__(self, track: object) -> bool:
        if not isinstance(track, Track) or track.external_id is None:
            return False
        return track.external_id in self._external_ids

    def __iter__(self) -> Iterator[Track]:
        return iter(self._tracks)

    def __len__(self) -> int:
        return len(self._tracks)

    def __repr__(self) -> str:
        return f"CandidateSet({len(self._tracks)} tracks)"
