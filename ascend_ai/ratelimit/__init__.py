"""Two-tier fixed-window rate limiting."""

from ascend_ai.ratelimit.limiter import (
    RateLimitEntry,
    RateLimiter,
    RateLimitStatus,
    UsageEntry,
)

__all__ = ["RateLimitEntry", "RateLimitStatus", "RateLimiter", "UsageEntry"]
