"""Rate limiter interfaces.

The API depends on this abstraction (not the concrete implementation) so the
storage backend can be swapped without touching the HTTP layer.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitDecision:
    """Result of a check-and-record operation.

    Attributes:
        allowed: Whether the request is allowed to proceed.
        limit: Max requests per window.
        remaining: Remaining requests in the current window (0 when blocked).
        reset_at: UNIX epoch seconds when the current window ends.
        retry_after_seconds: Seconds to wait before retrying; set only when blocked.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_at: int
    retry_after_seconds: int | None = None


class AbstractRateLimiter(ABC):
    """Interface for rate limiters."""

    @property
    @abstractmethod
    def limit(self) -> int:
        """Max requests admitted per key and window."""

    @property
    @abstractmethod
    def window_seconds(self) -> int:
        """Window length in seconds."""

    @abstractmethod
    def check_and_record(self, key: str, now: float | None = None) -> RateLimitDecision:
        """Count one request for ``key`` and decide whether to admit it.

        Args:
            key: Client identifier (e.g., IP address).
            now: UNIX time in seconds; the limiter's clock is used when omitted.

        Returns:
            RateLimitDecision describing whether it was allowed.

        Raises:
            InvalidKeyAppError: If the key is empty or oversized.
        """
        raise NotImplementedError

    def close(self) -> None:
        """Release any state held by the limiter."""
