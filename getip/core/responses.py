"""Response builders.

Every response the service produces, including errors and preflights, goes
through these helpers so the CORS header and the error body shape cannot be
forgotten on any path.
"""

from __future__ import annotations

from typing import Mapping

from fastapi import Response
from fastapi.responses import JSONResponse

from getip.core.config import settings
from getip.core.logging import utc_now_iso
from getip.schemas.ip import ErrorResponse

PREFLIGHT_MAX_AGE_SECONDS = 86400


def cors_headers() -> dict[str, str]:
    return {"Access-Control-Allow-Origin": settings.app.cors_allow_origin}


def preflight_headers() -> dict[str, str]:
    return {
        **cors_headers(),
        "Access-Control-Allow-Methods": "GET, OPTIONS",
        "Access-Control-Allow-Headers": "Content-Type",
        "Access-Control-Max-Age": str(PREFLIGHT_MAX_AGE_SECONDS),
    }


def preflight_response() -> Response:
    """Answer a CORS preflight (OPTIONS) request."""

    return Response(status_code=204, headers=preflight_headers())


def error_response(
    status_code: int,
    message: str,
    headers: Mapping[str, str] | None = None,
) -> JSONResponse:
    """Build the JSON error response ``{"error": ..., "timestamp": ...}``.

    Args:
        status_code: HTTP status code.
        message: Human-readable error message.
        headers: Extra headers (e.g. Retry-After); CORS headers are always added.

    Returns:
        JSONResponse with the uniform error body.
    """

    body = ErrorResponse(error=message, timestamp=utc_now_iso())
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(),
        headers={**cors_headers(), **dict(headers or {})},
    )


def rate_limit_message(limit: int, window_seconds: int) -> str:
    """Describe the limit for a 429 body in minutes.

    e.g. "... 60 requests per minute." or "... 100 requests per 2 minutes."
    """

    if window_seconds == 60:
        period = "minute"
    else:
        period = f"{window_seconds / 60:g} minutes"
    return f"Rate limit exceeded. Maximum {limit} requests per {period}."
