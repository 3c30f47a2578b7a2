"""Translate uncaught application errors into JSON responses."""

import logging
from collections.abc import Awaitable
from typing import Callable

from aiohttp import web

from ...utils.exceptions import StorageError, TimetableError

logger = logging.getLogger(__name__)


@web.middleware
async def error_middleware(
    request: web.Request, handler: Callable[[web.Request], Awaitable[web.StreamResponse]]
) -> web.StreamResponse:
    try:
        return await handler(request)
    except StorageError:
        logger.exception("Storage failure handling %s %s", request.method, request.path)
        return web.json_response({"error": "Internal server error"}, status=500)
    except TimetableError as e:
        logger.exception("Unhandled application error for %s %s", request.method, request.path)
        return web.json_response({"error": e.message}, status=500)
