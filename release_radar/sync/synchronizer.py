"""
Daily synchronization cycle.

One run of PlaylistSynchronizer.run():

    1. Fetch the whole target playlist
    2. Evict track rows added more than `date_added_threshold` days ago
    3. Fetch the user's followed artists
    4. Scan every artist for releases dated today
    5. Fetch the playlist again (it changed in step 2)
    6. Append each candidate not already in the playlist, one request each

Stages never roll back earlier ones: if the follow list cannot be read,
the evictions already made stand.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Iterable

from release_radar.core.config import PacingConfig, PlaylistConfig
from release_radar.core.exceptions import SpotifyError
from release_radar.core.logger import (
    format_added_message,
    format_skipped_message,
    format_track_line,
    get_logger,
)
from release_radar.core.pacing import RateLimiter
from release_radar.spotify.client import (
    MAX_FOLLOWED_ARTISTS_PAGE,
    MAX_PLAYLIST_ITEMS_PAGE,
    SpotifyClient,
)
from release_radar.spotify.models import PlaylistEntry, Track
from release_radar.sync.dedup import playlist_external_ids
from release_radar.sync.paginator import FetchResult, Paginator
from release_radar.sync.remover import BatchRemover, RemovalResult
from release_radar.sync.scanner import ReleaseScanner, ScanResult


logger = get_logger(__name__)


def select_expired(entries: Iterable[PlaylistEntry], threshold: datetime) -> list[PlaylistEntry]:
    """
    Track rows added strictly before the threshold.

    Rows that are not tracks, or whose insertion time is unknown, are never
    selected.
    """
    return [
        entry for entry in entries
        if entry.track is not None
        and entry.added_at is not None
        and entry.added_at < threshold
    ]


def removable_uris(entries: list[PlaylistEntry], expired: list[PlaylistEntry]) -> list[str]:
    """
    URIs of the expired rows that can be removed without touching other rows.

    Removal deletes every occurrence of a URI, so a URI that also has a
    row which has not expired is left alone until that row expires too.
    Each URI is listed once, in playlist order.
    """
    expired_rows = {id(entry) for entry in expired}
    fresh = {
        entry.track.uri for entry in entries
        if entry.track is not None and id(entry) not in expired_rows
    }

    uris: list[str] = []
    for entry in expired:
        uri = entry.track.uri
        if uri not in fresh and uri not in uris:
            uris.append(uri)
    return uris


@dataclass
class AdditionResult:
    """
    Outcome of the merge stage.

    Attributes:
        added: Tracks appended to the playlist (or that would be, in dry run).
        already_present: Candidates skipped because the playlist had them.
        error: The failure that stopped the additions, if any.
        aborted: Candidates never attempted because of that failure.
    """
    added: list[Track] = field(default_factory=list)
    already_present: list[Track] = field(default_factory=list)
    error: SpotifyError | None = None
    aborted: list[Track] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.error is None


@dataclass
class SyncReport:
    """Everything a run did, stage by stage."""
    playlist_id: str
    dry_run: bool = False
    initial_playlist: FetchResult | None = None
    removal: RemovalResult | None = None
    followed: FetchResult | None = None
    scan: ScanResult | None = None
    final_playlist: FetchResult | None = None
    addition: AdditionResult | None = None
    started_at: float = 0.0
    finished_at: float = 0.0

    @property
    def duration(self) -> float:
        return self.finished_at - self.started_at

    @property
    def removed_count(self) -> int:
        if self.removal is None:
            return 0
        return self.removal.requested if self.dry_run else self.removal.removed

    @property
    def added_count(self) -> int:
        return len(self.addition.added) if self.addition else 0

    @property
    def errors(self) -> list[SpotifyError]:
        errors = []
        for fetched in (self.initial_playlist, self.followed, self.final_playlist):
            if fetched is not None and fetched.error is not None:
                errors.append(fetched.error)
        if self.removal is not None:
            errors.extend(error for _, error in self.removal.errors)
        if self.scan is not None:
            errors.extend(error for _, _, error in self.scan.errors)
        if self.addition is not None and self.addition.error is not None:
            errors.append(self.addition.error)
        return errors

    @property
    def success(self) -> bool:
        return not self.errors


class PlaylistSynchronizer:
    """
    Orchestrates evict → discover → merge against one playlist.

    Every remote interaction goes through the given SpotifyClient and all
    waiting through the given RateLimiter, so a run is fully deterministic
    under a fake client and clock.

    Example:
        synchronizer = PlaylistSynchronizer(client, config.playlist, config.pacing, limiter)
        report = synchronizer.run()
        print(report.added_count, report.removed_count)
    """

    def __init__(
        self,
        client: SpotifyClient,
        playlist_config: PlaylistConfig,
        pacing_config: PacingConfig,
        rate_limiter: RateLimiter,
        dry_run: bool = False,
        show_progress: bool = False
    ) -> None:
        self._client = client
        self._playlist_id = playlist_config.playlist_id
        self._date_added_threshold = playlist_config.date_added_threshold
        self._pacing = pacing_config
        self._rate_limiter = rate_limiter
        self._dry_run = dry_run

        self._paginator = Paginator(rate_limiter, page_delay=pacing_config.page_delay)
        self._remover = BatchRemover(
            client,
            rate_limiter,
            batch_delay=pacing_config.page_delay,
            dry_run=dry_run
        )
        self._scanner = ReleaseScanner(client, rate_limiter, show_progress=show_progress)

    @property
    def playlist_id(self) -> str:
        return self._playlist_id

    def run(self) -> SyncReport:
        """
        Run one full cycle.

        Per-unit failures (a page, an artist group, a removal batch, an
        addition) are logged and recorded in the report; they do not raise.
        """
        report = SyncReport(playlist_id=self._playlist_id, dry_run=self._dry_run)
        report.started_at = self._rate_limiter.clock.monotonic()

        if self._dry_run:
            logger.info("Dry run: the playlist will not be modified")

        logger.info("Fetching playlist...")
        report.initial_playlist = self.fetch_playlist()
        report.removal = self.evict_old_entries(report.initial_playlist.items)

        logger.info("Fetching followed artists...")
        report.followed = self.fetch_followed_artists()
        logger.info(f"Found {len(report.followed.items)} followed artists")

        report.scan = self._scanner.scan_all(report.followed.items)

        logger.info("Fetching playlist again...")
        report.final_playlist = self.fetch_playlist()
        if not report.final_playlist.complete:
            logger.warning(
                f"Playlist read stopped after {len(report.final_playlist.items)} rows, "
                "tracks on the unread pages may be added again"
            )
        report.addition = self.add_unique_tracks(report.scan.candidates, report.final_playlist.items)

        report.finished_at = self._rate_limiter.clock.monotonic()
        return report

    # =========================================================================
    # Stages
    # =========================================================================

    def fetch_playlist(self) -> FetchResult:
        """Every row of the target playlist, 100 per page."""
        return self._paginator.fetch_all(
            lambda offset, limit: self._client.playlist_items_page(self._playlist_id, offset, limit),
            page_size=MAX_PLAYLIST_ITEMS_PAGE,
            what="playlist items"
        )

    def fetch_followed_artists(self) -> FetchResult:
        """Every followed artist, 50 per page."""
        return self._paginator.fetch_all(
            lambda after, limit: self._client.followed_artists_page(after, limit),
            page_size=MAX_FOLLOWED_ARTISTS_PAGE,
            what="followed artists"
        )

    def evict_old_entries(self, entries: list[PlaylistEntry]) -> RemovalResult:
        """
        Remove track rows older than the configured threshold.

        The threshold is computed from the clock at call time:
        now - date_added_threshold days.
        """
        threshold = self._rate_limiter.clock.now() - timedelta(days=self._date_added_threshold)
        expired = select_expired(entries, threshold)
        uris = removable_uris(entries, expired)

        kept = {entry.track.uri for entry in expired} - set(uris)
        if kept:
            logger.info(f"Keeping {len(kept)} expired tracks that were added again since")

        if not uris:
            logger.info("No tracks to remove.")
            return RemovalResult()

        logger.info(
            f"Removing {len(uris)} tracks added before {threshold:%Y-%m-%d %H:%M} UTC"
        )
        return self._remover.remove(self._playlist_id, uris)

    def add_unique_tracks(self, candidates: Iterable[Track], entries: list[PlaylistEntry]) -> AdditionResult:
        """
        Append candidates whose external id is not in the playlist.

        Candidates are added one per request, in discovery order, each after
        a flat delay. The first failure stops the stage; tracks added before
        it stay in the playlist.
        """
        result = AdditionResult()
        present = playlist_external_ids(entries)
        pending = list(candidates)

        for index, track in enumerate(pending):
            line = format_track_line(track.track_number, track.artist_names, track.name)

            if track.external_id in present:
                result.already_present.append(track)
                logger.info(format_skipped_message(line))
                continue

            if self._dry_run:
                result.added.append(track)
                logger.info(f"Would add: {line}")
                continue

            self._rate_limiter.wait(self._pacing.add_delay)
            try:
                self._client.add_playlist_items(self._playlist_id, [track.uri])
            except SpotifyError as e:
                logger.error(f"Error adding {line}: {e.message}")
                result.error = e
                result.aborted = pending[index + 1:]
                break

            result.added.append(track)
            present.add(track.external_id)
            logger.info(format_added_message(line))

        return result
