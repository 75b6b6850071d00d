"""Per-identifier token bucket with LRU-bounded storage.

Each identifier owns a :class:`RateBucket` holding up to ``capacity``
tokens. Tokens refill continuously at ``capacity`` per refill interval,
but only whole tokens are credited on each check and the refill clock is
reset on every call, so callers polling faster than the refill interval
never earn a partial token.

Buckets are kept in an :class:`~collections.OrderedDict` used as an LRU
map; once ``max_identifiers`` is exceeded the least recently checked
identifier is dropped. A dropped identifier starts over with a full
bucket on its next request.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Optional

from spec2postman.models import RateLimitConfig

logger = logging.getLogger(__name__)


def _monotonic_ms() -> float:
    return time.monotonic() * 1000.0


@dataclass
class RateBucket:
    """Token bucket state for a single identifier."""

    identifier: str
    tokens: float
    capacity: int
    refill_rate_per_ms: float
    last_refill_at: float


class RateLimiter:
    """Thread-safe token-bucket limiter keyed by caller identifier.

    Args:
        config: Capacity, refill interval, and LRU bound. Defaults to 10
            tokens refilled at one per minute.
        clock: Callable returning the current time in milliseconds.
            Injected by tests; defaults to a monotonic clock.

    Example::

        limiter = RateLimiter()
        if not limiter.allow(client_id):
            raise RateLimitedError("Too many requests")
    """

    def __init__(
        self,
        config: Optional[RateLimitConfig] = None,
        clock: Callable[[], float] = _monotonic_ms,
    ) -> None:
        self._config = config or RateLimitConfig()
        self._clock = clock
        self._refill_rate = 1.0 / self._config.refill_interval_ms
        self._buckets: OrderedDict[str, RateBucket] = OrderedDict()
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._config.capacity

    def allow(self, identifier: str, cost: int = 1) -> bool:
        """Consume *cost* tokens from *identifier*'s bucket if available.

        Args:
            identifier: Caller identity. Untrusted; callers sharing an
                identifier share a bucket.
            cost: Tokens this request consumes.

        Returns:
            ``True`` if the tokens were consumed, ``False`` if the bucket
            holds fewer than *cost* tokens.
        """
        with self._lock:
            now = self._clock()
            bucket = self._get_bucket(identifier, now)

            elapsed = max(0.0, now - bucket.last_refill_at)
            earned = math.floor(elapsed * bucket.refill_rate_per_ms)
            bucket.tokens = min(float(bucket.capacity), bucket.tokens + earned)
            bucket.last_refill_at = now

            if bucket.tokens >= cost:
                bucket.tokens -= cost
                return True

        logger.debug("Rate limit exhausted for %s", identifier)
        return False

    def tokens(self, identifier: str) -> Optional[float]:
        """Return the tokens currently stored for *identifier*, if tracked.

        This does not refill or touch LRU order.
        """
        with self._lock:
            bucket = self._buckets.get(identifier)
            return bucket.tokens if bucket is not None else None

    def reset(self) -> None:
        """Forget every bucket."""
        with self._lock:
            self._buckets.clear()

    def __len__(self) -> int:
        return len(self._buckets)

    def _get_bucket(self, identifier: str, now: float) -> RateBucket:
        """Return the bucket for *identifier*, creating a full one if unknown.

        Must be called with ``self._lock`` held.
        """
        bucket = self._buckets.get(identifier)
        if bucket is not None:
            self._buckets.move_to_end(identifier)
            return bucket

        bucket = RateBucket(
            identifier=identifier,
            tokens=float(self._config.capacity),
            capacity=self._config.capacity,
            refill_rate_per_ms=self._refill_rate,
            last_refill_at=now,
        )
        self._buckets[identifier] = bucket
        while len(self._buckets) > self._config.max_identifiers:
            evicted, _ = self._buckets.popitem(last=False)
            logger.debug("Evicted rate-limit bucket for %s", evicted)
        return bucket
