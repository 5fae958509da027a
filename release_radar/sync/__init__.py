"""
Synchronization module for release-radar.

    - PlaylistSynchronizer: evict → discover → merge cycle
    - ReleaseScanner: today's releases of followed artists
    - CandidateSet: ISRC-deduplicated discovery list
    - Paginator / BatchRemover: paced reads and batched removals

Usage:
    from release_radar.sync import PlaylistSynchronizer

    synchronizer = PlaylistSynchronizer(client, config.playlist, config.pacing, limiter)
    report = synchronizer.run()
"""

from release_radar.sync.dedup import CandidateSet, is_duplicate, playlist_external_ids
from release_radar.sync.paginator import FetchResult, Paginator
from release_radar.sync.remover import BatchRemover, RemovalResult, partition
from release_radar.sync.scanner import (
    ArtistScanResult,
    ReleaseScanner,
    ScanResult,
    dated_releases,
    is_extended_mix,
    parse_release_date,
    select_latest,
)
from release_radar.sync.synchronizer import (
    AdditionResult,
    PlaylistSynchronizer,
    SyncReport,
    removable_uris,
    select_expired,
)

__all__ = [
    # Deduplication
    "CandidateSet",
    "is_duplicate",
    "playlist_external_ids",
    # Pagination
    "FetchResult",
    "Paginator",
    # Removal
    "BatchRemover",
    "RemovalResult",
    "partition",
    # Scanning
    "ArtistScanResult",
    "ReleaseScanner",
    "ScanResult",
    "dated_releases",
    "is_extended_mix",
    "parse_release_date",
    "select_latest",
    # Synchronization
    "AdditionResult",
    "PlaylistSynchronizer",
    "SyncReport",
    "removable_uris",
    "select_expired",
]
