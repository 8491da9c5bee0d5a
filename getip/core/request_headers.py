"""Client IP and location extraction from request headers.

The service usually sits behind a proxy (Cloudflare, nginx, a load balancer)
that reports the real client address and, optionally, visitor location in
headers. Header names come from ``GeoSettings``.
"""

from __future__ import annotations

import logging

from fastapi import Request

from getip.core.config import GeoSettings, settings
from getip.schemas.ip import LocationData

logger = logging.getLogger(__name__)


def _header(request: Request, name: str) -> str | None:
    value = request.headers.get(name)
    if value is None:
        return None
    value = value.strip()
    return value or None


def get_client_ip(request: Request, geo: GeoSettings | None = None) -> str | None:
    """Return the caller's IP address.

    Headers from ``geo.client_ip_headers`` are checked in order; for
    X-Forwarded-For only the first (original client) entry is used. Falls back
    to the socket peer address.

    Args:
        request: Incoming request.
        geo: Header configuration; defaults to global settings.

    Returns:
        The IP as sent by the proxy (not validated), or None if unknown.
    """
    cfg = geo or settings.geo

    for name in cfg.client_ip_headers:
        value = _header(request, name)
        if value is None:
            continue
        if name.lower() == "x-forwarded-for":
            value = value.split(",")[0].strip()
            if not value:
                continue
        return value

    if request.client and request.client.host:
        return request.client.host

    return None


def _parse_asn(raw: str | None) -> int | None:
    if raw is None:
        return None
    # Some proxies send "AS13335"
    digits = raw[2:] if raw[:2].upper() == "AS" else raw
    try:
        return int(digits)
    except ValueError:
        logger.debug("request_headers.invalid_asn", extra={"asn_raw": raw[:32]})
        return None


def get_location(request: Request, geo: GeoSettings | None = None) -> LocationData:
    """Read coarse location metadata from proxy headers. Missing values are None."""
    cfg = geo or settings.geo

    return LocationData(
        country=_header(request, cfg.country_header),
        city=_header(request, cfg.city_header),
        region=_header(request, cfg.region_header),
        timezone=_header(request, cfg.timezone_header),
        asn=_parse_asn(_header(request, cfg.asn_header)),
        as_organization=_header(request, cfg.as_organization_header),
    )


def get_all_headers(request: Request) -> dict[str, str]:
    # Starlette lower-cases header names; repeated headers keep the last value
    return {name: value for name, value in request.headers.items()}


async def resolve_client_ip(request: Request) -> str | None:
    """FastAPI dependency returning the client IP (cached per request)."""
    return get_client_ip(request)
