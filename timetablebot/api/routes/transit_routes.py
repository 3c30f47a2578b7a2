"""Public transport connection routes."""

import logging
from typing import Any, Optional

from aiohttp import web

from ...storage.database import DatabaseManager
from ...transit.client import TransitClient, format_user_address, summarize_connections
from ...utils.exceptions import TransitError
from ..auth import login_required

logger = logging.getLogger(__name__)

TRUE_VALUES = ("1", "true", "yes")


def _flag(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in TRUE_VALUES


def register_transit_routes(
    app: web.Application, store: DatabaseManager, transit_client: TransitClient
) -> None:
    """Register the connection search proxy.

    Args:
        app: aiohttp web application
        store: Database manager used to fill in the user's address and event locations
        transit_client: Client for the upstream connections API
    """

    @login_required(store)
    async def connections(request: web.Request, user_id: str) -> web.Response:
        """Search connections, defaulting ``from`` and ``to`` from stored data."""
        query = request.query
        origin = (query.get("from") or "").strip()
        destination = (query.get("to") or "").strip()

        if not origin:
            user = await store.get_user(user_id)
            origin = (format_user_address(user) if user else None) or ""

        event_id = query.get("eventId")
        if not destination and event_id:
            event = await store.get_event(user_id, event_id)
            if event is None:
                return web.json_response({"error": "Event not found"}, status=404)
            destination = event.resolved_address or event.location_code or ""

        if not origin or not destination:
            return web.json_response(
                {"error": "Both an origin and a destination are required"}, status=400
            )

        try:
            result = await transit_client.search_connections(
                origin,
                destination,
                date=query.get("date"),
                time=query.get("time"),
                is_arrival_time=_flag(query.get("isArrivalTime")),
            )
        except TransitError as e:
            logger.exception("Transit lookup failed for user %s", user_id)
            return web.json_response({"error": e.message}, status=502)

        payload: Any = result.payload
        if _flag(query.get("summary")) and isinstance(payload, dict):
            payload = {**payload, "summary": summarize_connections(payload)}

        return web.json_response(payload, status=200 if result.ok else result.status_code)

    app.router.add_get("/api/transit/connections", connections)
