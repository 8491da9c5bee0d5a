from __future__ import annotations

from getip.api.routes.health import router as health_router
from getip.api.routes.ip import router as ip_router

__all__ = ["health_router", "ip_router"]
