from __future__ import annotations

from fastapi import APIRouter, Request

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check(request: Request) -> dict:
    """Liveness check for load balancers and uptime monitors.

    Not rate limited. Reports the active limiter policy so a deployment can
    confirm its configuration without reading the environment.
    """

    limiter = request.app.state.rate_limiter
    return {
        "status": "ok",
        "rate_limit": {
            "limit": limiter.limit,
            "window_seconds": limiter.window_seconds,
        },
    }
