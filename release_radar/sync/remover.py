"""
Batched playlist item removal.

Spotify accepts at most 100 items per removal request, so the items to
evict are split into ordered batches of 100 and submitted one request at a
time, with a flat delay between requests (the write-side counterpart of the
Paginator's inter-page delay).
"""

from dataclasses import dataclass, field
from typing import Sequence, TypeVar

from release_radar.core.exceptions import SpotifyError
from release_radar.core.logger import get_logger
from release_radar.core.pacing import RateLimiter
from release_radar.spotify.client import MAX_ITEMS_PER_WRITE, SpotifyClient


logger = get_logger(__name__)

T = TypeVar("T")

DEFAULT_BATCH_DELAY = 0.35


def partition(items: Sequence[T], size: int = MAX_ITEMS_PER_WRITE) -> list[list[T]]:
    """
    Split items into consecutive chunks of at most `size`, preserving order.

    Example:
        [len(b) for b in partition(range(250))]  # [100, 100, 50]
    """
    if size < 1:
        raise ValueError("Batch size must be at least 1")
    return [list(items[i:i + size]) for i in range(0, len(items), size)]


@dataclass
class RemovalResult:
    """
    Outcome of a batched removal.

    Attributes:
        requested: Number of items asked to be removed.
        removed: Number of items in batches the service accepted.
        batches: Number of batches submitted (or logged, in dry run).
        errors: (batch index, error) for every failed batch.
    """
    requested: int = 0
    removed: int = 0
    batches: int = 0
    errors: list[tuple[int, SpotifyError]] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors


class BatchRemover:
    """
    Removes playlist items in batches of at most 100.

    A failed batch is logged and recorded; the remaining batches are still
    submitted, since each batch is independent of the others.
    """

    def __init__(
        self,
        client: SpotifyClient,
        rate_limiter: RateLimiter,
        batch_size: int = MAX_ITEMS_PER_WRITE,
        batch_delay: float = DEFAULT_BATCH_DELAY,
        dry_run: bool = False
    ) -> None:
        self._client = client
        self._rate_limiter = rate_limiter
        self._batch_size = min(batch_size, MAX_ITEMS_PER_WRITE)
        self._batch_delay = batch_delay
        self._dry_run = dry_run

    def remove(self, playlist_id: str, uris: Sequence[str]) -> RemovalResult:
        """
        Remove the given track URIs from the playlist.

        Returns:
            RemovalResult summarizing the batches.
        """
        result = RemovalResult(requested=len(uris))
        batches = partition(uris, self._batch_size)

        for index, batch in enumerate(batches):
            if index > 0 and not self._dry_run:
                self._rate_limiter.wait(self._batch_delay)

            result.batches += 1

            if self._dry_run:
                logger.info(f"Would remove {len(batch)} tracks from the playlist.")
                continue

            try:
                self._client.remove_playlist_items(playlist_id, batch)
            except SpotifyError as e:
                logger.error(f"Error removing batch {index + 1}/{len(batches)}: {e.message}")
                result.errors.append((index, e))
                continue

            result.removed += len(batch)
            logger.info(f"Removed {len(batch)} tracks from the playlist.")

        return result
