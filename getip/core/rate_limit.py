"""Rate limiting dependency for FastAPI routes.

Wires the rate limiting adapter into the HTTP layer.

- The limiter instance is built once by the app factory and lives on
  ``app.state.rate_limiter``; routes never construct or cache their own.
- Key: the client IP. Requests with no resolvable IP are not limited.
- Limits are per process. Several instances each count independently.
"""

from __future__ import annotations

import hashlib
import logging
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from getip.adapters.rate_limit.base import AbstractRateLimiter
from getip.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from getip.core.config import AppSettings, settings
from getip.core.request_headers import resolve_client_ip
from getip.core.responses import rate_limit_message

logger = logging.getLogger(__name__)


def build_rate_limiter(app_settings: AppSettings | None = None) -> AbstractRateLimiter:
    """Create the limiter from startup configuration.

    Args:
        app_settings: Application settings; defaults to global settings.

    Returns:
        AbstractRateLimiter: Configured limiter instance.
    """

    cfg = app_settings or settings.app
    return InMemoryFixedWindowRateLimiter(
        limit=cfg.rate_limit_requests,
        window_seconds=cfg.rate_limit_window_seconds,
        max_key_bytes=cfg.rate_limit_max_key_bytes,
        max_tracked_keys=cfg.rate_limit_max_tracked_keys,
        sweep_interval_seconds=cfg.rate_limit_sweep_interval_seconds,
    )


def get_rate_limiter(request: Request) -> AbstractRateLimiter:
    """Return the limiter owned by the running application."""

    return request.app.state.rate_limiter


def _hash_limiter_key(key: str) -> str:
    """Hash the rate limit key for logging without exposing the client IP."""
    return hashlib.sha256(key.encode()).hexdigest()[:16]


async def enforce_rate_limit(
    client_ip: Annotated[str | None, Depends(resolve_client_ip)],
    limiter: Annotated[AbstractRateLimiter, Depends(get_rate_limiter)],
) -> None:
    """FastAPI dependency enforcing rate limits.

    Records one request for the caller. If the caller exceeded the configured
    rate, raises HTTP 429 with a Retry-After header.

    Args:
        client_ip: Client IP resolved from headers / socket.
        limiter: Application rate limiter.

    Raises:
        HTTPException: 429 Too Many Requests when rate limit is exceeded.
        InvalidKeyAppError: When the extracted IP is not a usable key.
    """

    if not settings.app.rate_limit_enabled:
        return

    if not client_ip:
        logger.warning("rate_limit.skipped", extra={"reason": "client_ip_unknown"})
        return

    result = limiter.check_and_record(client_ip)
    key_hash = _hash_limiter_key(client_ip)
    window_s = limiter.window_seconds

    if result.allowed:
        logger.debug(
            "rate_limit.allowed",
            extra={
                "key_hash": key_hash,
                "limit": result.limit,
                "remaining": result.remaining,
                "window_s": window_s,
            },
        )
        return

    retry_after = result.retry_after_seconds or 1
    logger.warning(
        "rate_limit.exceeded",
        extra={
            "key_hash": key_hash,
            "limit": result.limit,
            "remaining": result.remaining,
            "window_s": window_s,
            "retry_after_s": retry_after,
        },
    )

    headers = {"Retry-After": str(retry_after)}
    if settings.app.rate_limit_include_headers:
        headers["X-RateLimit-Limit"] = str(result.limit)
        headers["X-RateLimit-Remaining"] = str(result.remaining)
        headers["X-RateLimit-Reset"] = str(result.reset_at)

    raise HTTPException(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        detail=rate_limit_message(result.limit, window_s),
        headers=headers,
    )
