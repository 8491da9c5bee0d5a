"""HTTP middleware.

- ``request_id_middleware``: accept or generate X-Request-ID, store it in
  contextvars for log correlation, add request id and duration headers.
- ``edge_middleware``: answer CORS preflights, reject non-GET methods and make
  sure every response carries Access-Control-Allow-Origin.

Usage (last registered runs first):
    app.middleware("http")(edge_middleware)
    app.middleware("http")(request_id_middleware)
"""

from __future__ import annotations

import time
import uuid

from fastapi import Request, Response

from getip.core.config import settings
from getip.core.logging import clear_request_id, set_request_id
from getip.core.responses import cors_headers, error_response, preflight_response

ALLOWED_METHODS = frozenset({"GET", "OPTIONS"})


async def request_id_middleware(request: Request, call_next) -> Response:
    """HTTP middleware for request ID generation and propagation.

    If the client provides the request id header (``LOG_REQUEST_ID_HEADER``,
    X-Request-ID by default) that value is used, otherwise a UUID4 is
    generated. The id is cleared from context once the response is built.

    Args:
        request: The incoming HTTP request object.
        call_next: The next middleware/route handler in the stack.

    Returns:
        Response: The response with request id and duration headers added.
    """

    header_name = settings.log.request_id_header
    request_id = request.headers.get(header_name) or str(uuid.uuid4())
    set_request_id(request_id)
    start = time.perf_counter()
    try:
        response: Response = await call_next(request)
    finally:
        clear_request_id()

    duration_ms = (time.perf_counter() - start) * 1000
    response.headers[header_name] = request_id
    response.headers.setdefault("X-Request-Duration-ms", f"{duration_ms:.2f}")
    return response


async def edge_middleware(request: Request, call_next) -> Response:
    """Preflight, method guard and CORS for every route.

    OPTIONS is answered here for any path. Methods other than GET get a 405
    before routing, so unknown paths also answer 405 for POST/PUT/etc.
    """

    if request.method == "OPTIONS":
        return preflight_response()

    if request.method not in ALLOWED_METHODS:
        return error_response(405, "Method not allowed", headers={"Allow": "GET, OPTIONS"})

    response: Response = await call_next(request)
    for name, value in cors_headers().items():
        response.headers.setdefault(name, value)
    return response
