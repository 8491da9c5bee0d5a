from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request

from getip.core.config import settings
from getip.core.logging import utc_now_iso
from getip.core.rate_limit import enforce_rate_limit
from getip.core.request_headers import get_all_headers, get_location, resolve_client_ip
from getip.schemas.ip import DebugResponse, ErrorResponse, IpResponse

router = APIRouter(tags=["IP"])


@router.get(
    "/",
    response_model=IpResponse,
    dependencies=[Depends(enforce_rate_limit)],
    responses={
        429: {
            "model": ErrorResponse,
            "description": "Rate limit exceeded. See the Retry-After header.",
        },
    },
)
async def lookup_ip(
    request: Request,
    client_ip: Annotated[str | None, Depends(resolve_client_ip)],
) -> IpResponse:
    """Return the caller's IP address and coarse location.

    Location fields come from upstream proxy headers and are null when the
    proxy does not send them.
    """
    location = get_location(request)
    return IpResponse(
        ip=client_ip,
        timestamp=utc_now_iso(),
        **location.model_dump(),
    )


@router.get("/debug", response_model=DebugResponse)
async def debug_request(request: Request) -> DebugResponse:
    """Echo request headers and the location data derived from them.

    Not rate limited. Disabled with APP_DEBUG_ENDPOINT_ENABLED=false.
    """
    if not settings.app.debug_endpoint_enabled:
        raise HTTPException(status_code=404)

    return DebugResponse(
        headers=get_all_headers(request),
        cf=get_location(request).model_dump(by_alias=True),
        timestamp=utc_now_iso(),
    )
