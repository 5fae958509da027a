"""
Release discovery for followed artists.

For each artist and each release group (album, then single) the scanner:

    1. Lists the artist's 10 most recent releases of that group
    2. Keeps those whose release date parses as yyyy-MM-dd
    3. Picks the latest one (first in listing order on ties)
    4. Stops there unless it was released today (UTC)
    5. Otherwise fetches the full release and every track's detail, and
       adds each track to the candidate set unless its ISRC is already there

Singles often carry an "- Extended Mix" bonus track next to the radio edit;
those tracks are skipped without being fetched.

Request pacing is budgeted per artist: after an artist's two groups, the
scanner sleeps until requests / 3 seconds have passed since the artist
started.

Usage:
    scanner = ReleaseScanner(client, rate_limiter)
    scan = scanner.scan_all(artists)
    for track in scan.candidates:
        print(track.name)
"""

import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Iterable

from tqdm import tqdm

from release_radar.core.exceptions import SpotifyError
from release_radar.core.logger import (
    format_added_message,
    format_release_message,
    format_skipped_message,
    format_track_line,
    get_logger,
)
from release_radar.core.pacing import RateLimiter, RequestWindow
from release_radar.spotify.client import SpotifyClient
from release_radar.spotify.models import ALBUM, SINGLE, Artist, Release, TrackRef
from release_radar.sync.dedup import CandidateSet


logger = get_logger(__name__)

RELEASE_GROUPS = (ALBUM, SINGLE)
RELEASES_PER_GROUP = 10
RELEASE_DATE_FORMAT = "%Y-%m-%d"
EXTENDED_MIX_MARKER = "- Extended"

_FULL_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


# =========================================================================
# Release selection
# =========================================================================

def parse_release_date(raw: str | None) -> date | None:
    """
    Parse a release date in strict yyyy-MM-dd form.

    Partial-precision dates ("2024", "2024-05") and anything malformed
    yield None.
    """
    if not raw or not _FULL_DATE_PATTERN.match(raw):
        return None
    try:
        return datetime.strptime(raw, RELEASE_DATE_FORMAT).date()
    except ValueError:
        return None


def dated_releases(releases: Iterable[Release]) -> list[tuple[Release, date]]:
    """Pair each release with its parsed date, dropping unparsable ones."""
    dated = []
    for release in releases:
        released_on = parse_release_date(release.release_date_raw)
        if released_on is None:
            logger.debug(f"  Ignoring release with date '{release.release_date_raw}': {release.name}")
            continue
        dated.append((release, released_on))
    return dated


def select_latest(dated: Iterable[tuple[Release, date]]) -> tuple[Release, date] | None:
    """
    Pick the release with the latest date.

    Ties keep the first one in listing order. Returns None for no input.
    """
    latest = None
    for candidate in dated:
        if latest is None or candidate[1] > latest[1]:
            latest = candidate
    return latest


def is_extended_mix(track_name: str) -> bool:
    return EXTENDED_MIX_MARKER in track_name


# =========================================================================
# Scan results
# =========================================================================

@dataclass
class ArtistScanResult:
    """
    What one artist contributed to a scan.

    Attributes:
        artist: The artist scanned.
        added: Tracks that joined the candidate set, in discovery order.
        skipped: Tracks of today's releases that were not added (extended
                 mixes, duplicates, tracks without external id).
        errors: (release group, error) for every group that failed.
        requests: Requests issued for this artist.
        waited: Seconds slept afterwards to respect the request budget.
    """
    artist: Artist
    added: list = field(default_factory=list)
    skipped: list[TrackRef] = field(default_factory=list)
    errors: list[tuple[str, SpotifyError]] = field(default_factory=list)
    requests: int = 0
    waited: float = 0.0


@dataclass
class ScanResult:
    """Candidate set of a whole scan plus per-artist results."""
    candidates: CandidateSet = field(default_factory=CandidateSet)
    artists: list[ArtistScanResult] = field(default_factory=list)

    @property
    def errors(self) -> list[tuple[Artist, str, SpotifyError]]:
        return [
            (result.artist, group, error)
            for result in self.artists
            for group, error in result.errors
        ]


# =========================================================================
# Scanner
# =========================================================================

class ReleaseScanner:
    """
    Discovers today's releases of a list of artists.

    Attributes:
        _client: Spotify session.
        _rate_limiter: Pacer whose clock also defines "today".
        _show_progress: Whether to draw a tqdm progress bar over artists.
    """

    def __init__(
        self,
        client: SpotifyClient,
        rate_limiter: RateLimiter,
        releases_per_group: int = RELEASES_PER_GROUP,
        show_progress: bool = False
    ) -> None:
        self._client = client
        self._rate_limiter = rate_limiter
        self._releases_per_group = releases_per_group
        self._show_progress = show_progress

    def scan_all(self, artists: list[Artist], today: date | None = None) -> ScanResult:
        """
        Scan every artist, accumulating one shared candidate set.

        Args:
            artists: Artists to scan, in order.
            today: The UTC date releases must match. Defaults to the
                   clock's current UTC date, read once for the whole scan.

        Returns:
            ScanResult; failures are recorded per artist, never raised.
        """
        if today is None:
            today = self._rate_limiter.clock.now().date()

        result = ScanResult()
        total = len(artists)

        progress = tqdm(
            artists,
            desc="Scanning artists",
            unit="artist",
            disable=not self._show_progress,
            leave=False
        )
        for index, artist in enumerate(progress, start=1):
            logger.info(f"[{index}/{total}] [{artist.id}] {artist.name}:")
            result.artists.append(self.scan_artist(artist, result.candidates, today))

        logger.info(
            f"Scanned {total} artists, found {len(result.candidates)} new tracks"
            + (f" ({len(result.errors)} errors)" if result.errors else "")
        )
        return result

    def scan_artist(self, artist: Artist, candidates: CandidateSet, today: date) -> ArtistScanResult:
        """
        Scan both release groups of one artist, then pace.

        The request window starts here, so the budget is measured per
        artist and not across the whole run.
        """
        result = ArtistScanResult(artist=artist)
        window = self._rate_limiter.window()

        for group in RELEASE_GROUPS:
            try:
                self._scan_group(artist, group, candidates, today, window, result)
            except SpotifyError as e:
                logger.error(f"  Error while scanning {group}s of {artist.name}: {e.message}")
                result.errors.append((group, e))

        result.requests = window.requests
        result.waited = window.throttle()
        return result

    def _scan_group(
        self,
        artist: Artist,
        group: str,
        candidates: CandidateSet,
        today: date,
        window: RequestWindow,
        result: ArtistScanResult
    ) -> None:
        releases = self._client.artist_releases(artist.id, group, limit=self._releases_per_group)
        window.record()

        latest = select_latest(dated_releases(releases))
        if latest is None:
            logger.info(f"  No {group}s found for artist.")
            return

        release, released_on = latest
        is_today = released_on == today
        logger.info("  " + format_release_message(group, released_on.isoformat(), release.name, is_today))
        if not is_today:
            return

        full_release = self._client.release(release.id, release_group=group)
        window.record()

        for ref in full_release.tracks:
            line = format_track_line(ref.track_number, ref.artist_names, ref.name)

            if group == SINGLE and is_extended_mix(ref.name):
                result.skipped.append(ref)
                logger.info("    " + format_skipped_message(line))
                continue

            track = self._client.track(ref.id)
            window.record()

            if track.external_id is None:
                result.skipped.append(ref)
                logger.warning(f"    No external id, cannot deduplicate: {line}")
            elif candidates.add(track):
                result.added.append(track)
                logger.info("    " + format_added_message(line))
            else:
                result.skipped.append(ref)
                logger.info("    " + format_skipped_message(line))
