"""
Generic fetch-all loop over paginated Spotify listings.

Works for both offset pagination (playlist items) and cursor pagination
(followed artists): the page fetcher receives the cursor of the page to
fetch (None for the first page) and returns a Page carrying the cursor of
the next one.

Usage:
    paginator = Paginator(rate_limiter)
    result = paginator.fetch_all(
        lambda offset, limit: client.playlist_items_page(playlist_id, offset, limit),
        page_size=100,
        what="playlist items"
    )
    if result.error:
        logger.warning("working with a partial playlist")
"""

from dataclasses import dataclass, field
from typing import Callable, Generic, Optional, TypeVar

from release_radar.core.exceptions import SpotifyError
from release_radar.core.logger import get_logger
from release_radar.core.pacing import RateLimiter
from release_radar.spotify.models import Page


logger = get_logger(__name__)

T = TypeVar("T")
C = TypeVar("C")

DEFAULT_PAGE_DELAY = 0.35

PageFetcher = Callable[[Optional[C], int], Page[T, C]]


@dataclass
class FetchResult(Generic[T]):
    """
    Items accumulated by a fetch-all loop.

    Attributes:
        items: All items, in service order. Partial if error is set.
        pages: Number of pages successfully fetched.
        error: The failure that stopped the loop, if any.
    """
    items: list[T] = field(default_factory=list)
    pages: int = 0
    error: SpotifyError | None = None

    @property
    def complete(self) -> bool:
        return self.error is None


class Paginator:
    """
    Accumulates every page of a listing into one list.

    Between two page requests it waits a flat page_delay, whatever the
    request budget would allow; the first page is requested immediately.
    """

    def __init__(self, rate_limiter: RateLimiter, page_delay: float = DEFAULT_PAGE_DELAY) -> None:
        self._rate_limiter = rate_limiter
        self._page_delay = page_delay

    def fetch_all(
        self,
        fetch_page: PageFetcher,
        page_size: int,
        what: str = "items"
    ) -> FetchResult:
        """
        Fetch pages until the service reports no further page.

        Args:
            fetch_page: Called as fetch_page(cursor, page_size).
            page_size: Items per request.
            what: Listing name for log messages.

        Returns:
            FetchResult. A failing page stops the loop: the error is logged
            and returned together with the items fetched before it.
        """
        result: FetchResult = FetchResult()
        cursor = None

        while True:
            try:
                page = fetch_page(cursor, page_size)
            except SpotifyError as e:
                logger.error(f"Error while fetching {what}: {e.message}")
                result.error = e
                break

            result.items.extend(page.items)
            result.pages += 1

            if page.next_cursor is None:
                break
            cursor = page.next_cursor

            self._rate_limiter.wait(self._page_delay)

        logger.debug(f"Fetched {len(result.items)} {what} in {result.pages} page(s)")
        return result
