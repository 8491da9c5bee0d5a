"""In-memory fixed-window rate limiter.

Notes:
- Per-process only: running multiple workers or edge instances multiplies the
  effective limit. There is no cross-instance coordination.
- Windows are aligned to the epoch (``now - now % window``), so every key's
  window ends on the same boundary.
- Thread-safe with per-key locks: calls for one key serialize, calls for
  different keys only share a short registry lookup.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from dataclasses import dataclass, field
from typing import Callable

from getip.adapters.rate_limit.base import AbstractRateLimiter, RateLimitDecision
from getip.core.errors import InvalidKeyAppError

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class _WindowState:
    window_start: int
    count: int = 0
    evicted: bool = False
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)


class InMemoryFixedWindowRateLimiter(AbstractRateLimiter):
    """Rate limiter using a fixed time window per key.

    Counts every call (allowed or not) against the key's current window, e.g.
    60 requests per 60 seconds. Keys older than the previous window are
    evicted opportunistically: at most once per ``sweep_interval_seconds``, or
    earlier when the number of tracked keys reaches ``max_tracked_keys`` and a
    window boundary has passed since the previous sweep. ``max_tracked_keys``
    is a soft bound; live keys are never dropped to make room.
    """

    def __init__(
        self,
        *,
        limit: int,
        window_seconds: int,
        clock: Callable[[], float] = time.time,
        max_key_bytes: int = 256,
        max_tracked_keys: int = 100_000,
        sweep_interval_seconds: int | None = None,
    ) -> None:
        """Initialize the in-memory rate limiter.

        Args:
            limit: Maximum number of allowed requests per window.
            window_seconds: Size of the fixed window in seconds.
            clock: Time source function returning UNIX time in seconds.
            max_key_bytes: Longest accepted key, in UTF-8 bytes.
            max_tracked_keys: Key count that triggers an early sweep.
            sweep_interval_seconds: Minimum time between periodic sweeps;
                defaults to ``window_seconds``.

        Raises:
            ValueError: If any size or interval is invalid.
        """
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if window_seconds < 1:
            raise ValueError("window_seconds must be >= 1")
        if max_key_bytes < 1:
            raise ValueError("max_key_bytes must be >= 1")
        if max_tracked_keys < 1:
            raise ValueError("max_tracked_keys must be >= 1")
        if sweep_interval_seconds is not None and sweep_interval_seconds < 1:
            raise ValueError("sweep_interval_seconds must be >= 1")

        self._limit = limit
        self._window_seconds = window_seconds
        self._clock = clock
        self._max_key_bytes = max_key_bytes
        self._max_tracked_keys = max_tracked_keys
        self._sweep_interval = sweep_interval_seconds or window_seconds
        self._last_sweep_at: float | None = None
        # Latest window start seen for any key; new state never opens an
        # older window, so a regressing clock cannot revive an evicted one.
        self._high_water_window = 0
        # Guards the key -> state mapping only; counts are guarded per key.
        self._registry_lock = threading.Lock()
        self._state_by_key: dict[str, _WindowState] = {}

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def window_seconds(self) -> int:
        return self._window_seconds

    @property
    def tracked_keys(self) -> int:
        """Number of keys currently holding window state."""
        with self._registry_lock:
            return len(self._state_by_key)

    def _get_window_bounds(self, now: float) -> tuple[int, int]:
        """Compute fixed-window boundaries for a given timestamp.

        Args:
            now: UNIX time in seconds.

        Returns:
            Tuple of (window_start_epoch_seconds, reset_at_epoch_seconds).
        """
        window_start = int(now // self._window_seconds) * self._window_seconds
        reset_at = window_start + self._window_seconds
        return window_start, reset_at

    def _validate_key(self, key: str) -> None:
        if not key:
            raise InvalidKeyAppError(
                code="invalid_rate_limit_key",
                message="Rate limit key must be a non-empty string",
            )
        key_bytes = len(key.encode("utf-8"))
        if key_bytes > self._max_key_bytes:
            raise InvalidKeyAppError(
                code="invalid_rate_limit_key",
                message="Rate limit key exceeds the maximum length",
                details={"key_bytes": key_bytes, "max_key_bytes": self._max_key_bytes},
            )

    def _get_state(self, key: str, window_start: int) -> _WindowState:
        with self._registry_lock:
            self._high_water_window = max(self._high_water_window, window_start)
            state = self._state_by_key.get(key)
            if state is None:
                state = _WindowState(window_start=self._high_water_window)
                self._state_by_key[key] = state
            return state

    def _record_locked(self, state: _WindowState, *, now: float, window_start: int) -> RateLimitDecision:
        """Reset the window if it elapsed, count this call and decide.

        Must be called with ``state.lock`` held.
        """
        if window_start > state.window_start:
            state.window_start = window_start
            state.count = 0

        # A clock that moved backwards keeps the stored window: elapsed time
        # is clamped to zero and the count is never reset.
        effective_now = max(now, state.window_start)
        reset_at = state.window_start + self._window_seconds

        state.count += 1
        remaining = max(0, self._limit - state.count)

        if state.count <= self._limit:
            return RateLimitDecision(
                allowed=True,
                limit=self._limit,
                remaining=remaining,
                reset_at=int(reset_at),
            )

        retry_after = max(1, int(math.ceil(reset_at - effective_now)))
        return RateLimitDecision(
            allowed=False,
            limit=self._limit,
            remaining=0,
            reset_at=int(reset_at),
            retry_after_seconds=retry_after,
        )

    def check_and_record(self, key: str, now: float | None = None) -> RateLimitDecision:
        """Count one request for ``key`` and decide whether to admit it.

        The read-increment-write runs under the key's own lock, so concurrent
        callers for the same key can never admit more than ``limit`` requests
        per window.

        Args:
            key: Unique identifier for rate limiting (e.g., client IP).
            now: UNIX time in seconds; defaults to the injected clock.

        Returns:
            RateLimitDecision with allowance decision and metadata.

        Raises:
            InvalidKeyAppError: If key is empty or longer than ``max_key_bytes``.
        """
        self._validate_key(key)

        if now is None:
            now = self._clock()
        window_start, _ = self._get_window_bounds(now)

        self._maybe_sweep(now)

        while True:
            state = self._get_state(key, window_start)
            with state.lock:
                if state.evicted:
                    # Lost a race with a sweep; look the key up again.
                    continue
                return self._record_locked(state, now=now, window_start=window_start)

    def sweep(self, now: float | None = None) -> int:
        """Evict every key whose window is over and no longer the previous one.

        Args:
            now: UNIX time in seconds; defaults to the injected clock.

        Returns:
            Number of evicted keys.
        """
        if now is None:
            now = self._clock()

        with self._registry_lock:
            self._last_sweep_at = now

        evicted = self._sweep_expired(now)
        if evicted:
            logger.debug("rate_limit.swept", extra={"evicted": evicted})
        return evicted

    def close(self) -> None:
        """Drop all window state (called at application shutdown)."""
        with self._registry_lock:
            for state in self._state_by_key.values():
                state.evicted = True
            self._state_by_key.clear()
            self._last_sweep_at = None

    def _maybe_sweep(self, now: float) -> None:
        with self._registry_lock:
            if self._last_sweep_at is None:
                self._last_sweep_at = now
                return

            due = now - self._last_sweep_at >= self._sweep_interval
            # Keys only become evictable on window boundaries; sweeping twice
            # inside one window cannot free anything.
            _, next_boundary = self._get_window_bounds(self._last_sweep_at)
            over_capacity = (
                len(self._state_by_key) >= self._max_tracked_keys
                and now >= next_boundary
            )
            if not (due or over_capacity):
                return

            # Claimed under the lock so concurrent callers don't sweep twice
            self._last_sweep_at = now

        evicted = self._sweep_expired(now)
        logger.debug(
            "rate_limit.swept",
            extra={
                "evicted": evicted,
                "tracked_keys": self.tracked_keys,
                "reason": "interval" if due else "capacity",
            },
        )

    def _sweep_expired(self, now: float) -> int:
        """Remove keys whose window ended before the previous window.

        The registry lock is only held for the snapshot and for each removal,
        so lookups for other keys keep flowing during a sweep. Keys whose lock
        is currently held are skipped; their owner resets them in place.

        State for the previous window is kept so that a clock jumping back by
        less than one window still finds the key's count.
        """
        with self._registry_lock:
            current_start, _ = self._get_window_bounds(now)
            evict_before = max(current_start, self._high_water_window) - self._window_seconds
            candidates = [
                (key, state)
                for key, state in self._state_by_key.items()
                if state.window_start < evict_before
            ]

        evicted = 0
        for key, state in candidates:
            if not state.lock.acquire(blocking=False):
                continue
            try:
                if state.evicted or state.window_start >= evict_before:
                    continue
                with self._registry_lock:
                    if self._state_by_key.get(key) is state:
                        del self._state_by_key[key]
                        state.evicted = True
                        evicted += 1
            finally:
                state.lock.release()

        return evicted
