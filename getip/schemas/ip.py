"""Pydantic schemas for IP lookup responses."""

from __future__ import annotations

from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field


class LocationData(BaseModel):
    """Coarse location metadata injected by the upstream proxy.

    Values are passed through as received; nothing here is computed.
    """

    model_config = ConfigDict(populate_by_name=True)

    country: str | None = Field(default=None, description="ISO 3166-1 alpha-2 country code.")
    city: str | None = Field(default=None, description="City name.")
    region: str | None = Field(default=None, description="Region or state name.")
    timezone: str | None = Field(default=None, description="IANA timezone, e.g. 'Asia/Jakarta'.")
    asn: int | None = Field(default=None, description="Autonomous system number.")
    as_organization: str | None = Field(
        default=None,
        alias="asOrganization",
        description="Organization owning the autonomous system.",
    )


class IpResponse(LocationData):
    """Successful IP lookup payload."""

    ip: str | None = Field(..., description="Caller IP address, null when it cannot be determined.")
    timestamp: str = Field(..., description="ISO-8601 UTC time the response was built.")


class ErrorResponse(BaseModel):
    """Uniform error payload for every non-2xx JSON response."""

    error: str = Field(..., description="Human-readable error message.")
    timestamp: str = Field(..., description="ISO-8601 UTC time the response was built.")


class DebugResponse(BaseModel):
    """Everything the service knows about the request."""

    headers: Dict[str, str] = Field(default_factory=dict, description="Request headers, lower-cased names.")
    cf: Dict[str, Any] = Field(default_factory=dict, description="Location metadata read from proxy headers.")
    timestamp: str
