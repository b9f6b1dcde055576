"""
API Rate Limit Tracking

Parses the rate limit headers returned on every response and keeps the
most recent snapshot. Snapshots are immutable; the tracker swaps the whole
snapshot under a lock so concurrent responses never interleave.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Mapping, Optional

import httpx

logger = logging.getLogger(__name__)

RATE_LIMIT_HEADER = "X-Rate-Limit"
RATE_LIMIT_REMAINING_HEADER = "X-Rate-Limit-Remaining"
RATE_LIMIT_RESET_HEADER = "X-Rate-Limit-Reset"


def _first_value(headers: Any, name: str) -> Any:
    """First value of a header, matched case-insensitively."""
    if isinstance(headers, httpx.Headers):
        values = headers.get_list(name)
        return values[0] if values else None

    wanted = name.lower()
    for key, value in headers.items():
        if key.lower() != wanted:
            continue
        if isinstance(value, (list, tuple)):
            return value[0] if value else None
        return value
    return None


def _as_int(headers: Any, name: str) -> int:
    value = _first_value(headers, name)
    if value is None or value == "":
        return 0
    try:
        return int(str(value).strip())
    except ValueError:
        logger.warning("Ignoring non-integer %s header: %r", name, value)
        return 0


@dataclass(frozen=True)
class RateLimitSnapshot:
    """
    Rate limit state from a single response.

    Attributes:
        limit: Request ceiling for the current window
        remaining: Requests left before the limit is hit
        reset: Unix timestamp of the next window reset (0 if unknown)
    """
    limit: int = 0
    remaining: int = 0
    reset: int = 0

    @classmethod
    def from_headers(cls, headers: Optional[Mapping[str, Any]]) -> "RateLimitSnapshot":
        """
        Build a snapshot from response headers.

        Accepts httpx.Headers or a mapping of header name to a value or a
        list of values. Missing or non-integer headers default to 0.
        """
        if not headers:
            return cls()
        return cls(
            limit=_as_int(headers, RATE_LIMIT_HEADER),
            remaining=_as_int(headers, RATE_LIMIT_REMAINING_HEADER),
            reset=_as_int(headers, RATE_LIMIT_RESET_HEADER),
        )

    def is_throttled(self) -> bool:
        """Determine if the client is currently rate limited."""
        return self.remaining == 0 and self.reset > 0

    def seconds_until_reset(self, now: Optional[float] = None) -> int:
        """Seconds remaining until the rate limit window resets."""
        if self.reset <= 0:
            return 0
        if now is None:
            now = time.time()
        return max(self.reset - int(now), 0)


class RateLimitTracker:
    """
    Thread-safe holder of the latest RateLimitSnapshot.

    Last write wins; no history is kept.
    """

    def __init__(self):
        self._snapshot = RateLimitSnapshot()
        self._lock = threading.RLock()

    def update(self, headers: Optional[Mapping[str, Any]]) -> RateLimitSnapshot:
        """
        Replace the stored snapshot with one parsed from headers.

        Returns:
            The new snapshot
        """
        snapshot = RateLimitSnapshot.from_headers(headers)
        with self._lock:
            self._snapshot = snapshot
        if snapshot.is_throttled():
            logger.warning(
                "Rate limit reached (limit=%d), resets in %ds",
                snapshot.limit, snapshot.seconds_until_reset(),
            )
        return snapshot

    @property
    def snapshot(self) -> RateLimitSnapshot:
        with self._lock:
            return self._snapshot

    def is_throttled(self) -> bool:
        return self.snapshot.is_throttled()

    def seconds_until_reset(self, now: Optional[float] = None) -> int:
        return self.snapshot.seconds_until_reset(now)
