"""Page through repository search results while honoring the API rate limit."""

from __future__ import annotations

import sys
import time
from typing import Callable, Iterator, Optional, Protocol, Tuple

from .errors import APIError, DiscoveryError
from .models import RateLimitSignal, SearchPage


class SearchClient(Protocol):
    def search_repositories(self, query: str, page: int) -> Tuple[SearchPage, RateLimitSignal]:
        ...


def rate_limit_delay(signal: RateLimitSignal, now: float) -> float:
    """Seconds to sleep before the next call; 0 while quota remains.

    A reset time already in the past (clock skew) is sign-corrected rather
    than treated as zero.
    """
    if not signal.exhausted:
        return 0.0
    return abs(signal.reset_at_epoch_seconds - now)


def wait_for_rate_limit(
    signal: Optional[RateLimitSignal],
    now: Callable[[], float] = time.time,
    sleep: Callable[[float], None] = time.sleep,
) -> float:
    """Block until the quota resets when the previous response left <= 1 call."""
    if signal is None:
        return 0.0
    delay = rate_limit_delay(signal, now())
    if delay > 0:
        print(f"[rate-limit] {signal.remaining_calls} search calls left; sleeping {delay:.0f}s")
        sleep(delay)
    return delay


def iter_pages(
    client: SearchClient,
    query: str,
    now: Callable[[], float] = time.time,
    sleep: Callable[[float], None] = time.sleep,
) -> Iterator[SearchPage]:
    """Yield search pages from 1 until the last page reported by the API."""
    page = 1
    last_page = sys.maxsize
    signal: Optional[RateLimitSignal] = None

    while page <= last_page:
        wait_for_rate_limit(signal, now=now, sleep=sleep)
        try:
            result, signal = client.search_repositories(query, page)
        except APIError as exc:
            raise DiscoveryError(f"FindRepos: {exc}") from exc
        last_page = result.last_page
        yield result
        page += 1


__all__ = ["SearchClient", "rate_limit_delay", "wait_for_rate_limit", "iter_pages"]
