"""Rate limiting adapters.

A small abstraction layer: the service ships an in-memory limiter whose
state is local to the process. Several instances (e.g. one per edge
location) each enforce their own limit, so a key may be admitted up to
``limit * instances`` times per window across the fleet.
"""

from getip.adapters.rate_limit.base import AbstractRateLimiter, RateLimitDecision
from getip.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter

__all__ = ["AbstractRateLimiter", "InMemoryFixedWindowRateLimiter", "RateLimitDecision"]
