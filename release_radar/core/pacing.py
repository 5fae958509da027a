"""
Request pacing for release-radar.

Spotify does not publish an exact rate ceiling, so every run keeps itself
well below it by blocking the (single) thread of control:

    - Flat delays between pages, removal batches and additions
      (RateLimiter.wait).
    - A budgeted window per artist: after an artist has been scanned, the
      run sleeps until `requests / requests_per_window * window_seconds`
      has elapsed since the artist started (RequestWindow.throttle).

Time is read through an injectable Clock so tests can advance time without
real delays.

Usage:
    limiter = RateLimiter(requests_per_window=3, window_seconds=1.0)

    window = limiter.window()
    client.artist_releases(...)
    window.record()
    window.throttle()

    limiter.wait(0.35)
"""

import time
from datetime import datetime, timezone
from typing import Protocol

from release_radar.core.logger import get_logger
from release_radar.utils import format_milliseconds


logger = get_logger(__name__)


class Clock(Protocol):
    """Source of time and blocking sleep."""

    def monotonic(self) -> float: ...

    def sleep(self, seconds: float) -> None: ...

    def now(self) -> datetime: ...


class SystemClock:
    """Clock backed by the time module; now() is aware UTC."""

    def monotonic(self) -> float:
        return time.monotonic()

    def sleep(self, seconds: float) -> None:
        time.sleep(seconds)

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


def compute_idle_time(
    request_count: int,
    elapsed: float,
    requests_per_window: float,
    window_seconds: float
) -> float:
    """
    Time still to wait so that `request_count` requests fit the budget.

    Args:
        request_count: Requests issued since the window started.
        elapsed: Seconds elapsed since the window started.
        requests_per_window: N in "N requests per T seconds".
        window_seconds: T in "N requests per T seconds".

    Returns:
        max(0, (request_count / N) * T - elapsed). Never negative: if the
        work already took longer than its budget, nothing is slept.
    """
    budget = (request_count / requests_per_window) * window_seconds
    return max(0.0, budget - elapsed)


class RequestWindow:
    """
    Request counter for one logical unit of work (one artist).

    Opened by RateLimiter.window(); the clock reading at creation is the
    start of the window.
    """

    def __init__(self, limiter: "RateLimiter") -> None:
        self._limiter = limiter
        self._started = limiter.clock.monotonic()
        self.requests = 0

    def record(self, count: int = 1) -> None:
        self.requests += count

    @property
    def elapsed(self) -> float:
        return self._limiter.clock.monotonic() - self._started

    def throttle(self) -> float:
        """
        Sleep the shortfall between the request budget and elapsed time.

        Returns:
            Seconds slept (0.0 when the budget was already used up).
        """
        idle = compute_idle_time(
            self.requests,
            self.elapsed,
            self._limiter.requests_per_window,
            self._limiter.window_seconds
        )
        if idle > 0:
            logger.debug(f"  Waiting {format_milliseconds(idle)} to not hit rate limit...")
            self._limiter.clock.sleep(idle)
        return idle


class RateLimiter:
    """
    Blocking pacer shared by every component of a run.

    Attributes:
        clock: Time source (SystemClock unless injected).
        requests_per_window: Request budget per window (default 3).
        window_seconds: Window length in seconds (default 1.0).
    """

    def __init__(
        self,
        clock: Clock | None = None,
        requests_per_window: float = 3.0,
        window_seconds: float = 1.0
    ) -> None:
        if requests_per_window <= 0:
            raise ValueError("requests_per_window must be positive")
        self.clock = clock or SystemClock()
        self.requests_per_window = requests_per_window
        self.window_seconds = window_seconds

    def window(self) -> RequestWindow:
        """Start measuring a new unit of work."""
        return RequestWindow(self)

    def wait(self, seconds: float) -> None:
        """Flat delay, independent of any budget."""
        if seconds <= 0:
            return
        logger.debug(f"Waiting {format_milliseconds(seconds)} to not hit rate limit...")
        self.clock.sleep(seconds)
