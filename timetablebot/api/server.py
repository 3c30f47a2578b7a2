"""aiohttp application factory and server entry point."""

import logging
from typing import Optional

from aiohttp import web

from ..config.settings import TimetableSettings, get_settings
from ..storage.database import DatabaseManager
from ..transit.client import TransitClient
from .middleware import correlation_id_middleware, error_middleware
from .routes import (
    register_auth_routes,
    register_events_routes,
    register_ics_routes,
    register_transit_routes,
)

logger = logging.getLogger(__name__)

# Room for multipart boundaries and headers on top of the file itself
MULTIPART_OVERHEAD_BYTES = 64 * 1024


def create_app(
    settings: Optional[TimetableSettings] = None,
    store: Optional[DatabaseManager] = None,
    transit_client: Optional[TransitClient] = None,
) -> web.Application:
    """Create the web application with all routes wired to their collaborators.

    Args:
        settings: Application settings (defaults to the global instance)
        store: Database manager (defaults to one at ``settings.database_file``)
        transit_client: Connections API client (defaults to ``settings.transit_api_url``)

    Returns:
        Configured aiohttp application
    """
    settings = settings or get_settings()
    store = store or DatabaseManager(settings.database_file, settings.default_event_color)
    transit_client = transit_client or TransitClient(
        settings.transit_api_url, timeout=settings.transit_timeout, app_name=settings.app_name
    )

    app = web.Application(
        middlewares=[correlation_id_middleware, error_middleware],
        client_max_size=settings.max_upload_bytes + MULTIPART_OVERHEAD_BYTES,
    )

    async def health_check(_request: web.Request) -> web.Response:
        """Liveness probe."""
        return web.json_response({"status": "ok"})

    app.router.add_get("/api/health", health_check)
    register_auth_routes(app, store)
    register_events_routes(app, store, settings.timezone)
    register_ics_routes(app, store, settings.timezone, settings.max_upload_bytes)
    register_transit_routes(app, store, transit_client)

    async def on_startup(_app: web.Application) -> None:
        await store.initialize()
        logger.info("%s API ready (database: %s)", settings.app_name, store.database_path)

    async def on_cleanup(_app: web.Application) -> None:
        await transit_client.close()
        logger.debug("Transit client closed")

    app.on_startup.append(on_startup)
    app.on_cleanup.append(on_cleanup)
    return app


def run_server(settings: TimetableSettings) -> None:
    """Serve the API until interrupted."""
    app = create_app(settings)
    logger.info("Starting %s on %s:%d", settings.app_name, settings.web_host, settings.web_port)
    web.run_app(app, host=settings.web_host, port=settings.web_port, print=None)
