"""Process-local rate limiting for pipeline entry points.

This package provides :class:`RateLimiter`, a per-identifier token bucket
with least-recently-used eviction so that memory stays bounded no matter
how many distinct callers are seen.
"""

from spec2postman.limiter.token_bucket import RateBucket, RateLimiter

__all__ = ["RateBucket", "RateLimiter"]
