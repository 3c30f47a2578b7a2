"""Request correlation ID middleware for log tracing."""

import uuid
from collections.abc import Awaitable
from typing import Callable

from aiohttp import web

from ...utils.logging import request_id_var

REQUEST_ID_HEADER = "X-Request-ID"
CORRELATION_ID_HEADER = "X-Correlation-ID"


@web.middleware
async def correlation_id_middleware(
    request: web.Request, handler: Callable[[web.Request], Awaitable[web.StreamResponse]]
) -> web.StreamResponse:
    """Extract or generate correlation ID for request tracking.

    Priority for correlation ID extraction:
    1. X-Request-ID from client
    2. X-Correlation-ID from client
    3. Generate new UUID

    The ID is stored in a context variable for log records and echoed in
    the X-Request-ID response header.
    """
    correlation_id = (
        request.headers.get(REQUEST_ID_HEADER)
        or request.headers.get(CORRELATION_ID_HEADER)
        or str(uuid.uuid4())
    )

    token = request_id_var.set(correlation_id)
    request["correlation_id"] = correlation_id
    try:
        response = await handler(request)
    finally:
        request_id_var.reset(token)

    response.headers[REQUEST_ID_HEADER] = correlation_id
    return response
