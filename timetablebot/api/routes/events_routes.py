"""Event listing and management routes."""

import logging
from datetime import date
from typing import Optional

from aiohttp import web

from ...agenda import get_daily_agenda, get_weekly_agenda
from ...storage.database import DatabaseManager
from ..auth import login_required

logger = logging.getLogger(__name__)


def _parse_day(value: str) -> Optional[date]:
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def register_events_routes(app: web.Application, store: DatabaseManager, timezone: str) -> None:
    """Register event listing routes.

    Args:
        app: aiohttp web application
        store: Database manager holding events
        timezone: Application timezone used for day and week boundaries
    """

    @login_required(store)
    async def list_events(request: web.Request, user_id: str) -> web.Response:
        """List all events, one day (``date``) or one week (``week``)."""
        day_param = request.query.get("date")
        week_param = request.query.get("week")

        if week_param:
            day = _parse_day(week_param)
            if day is None:
                return web.json_response({"error": "Invalid week date"}, status=400)
            weekly = await get_weekly_agenda(store, user_id, day, timezone)
            return web.json_response(weekly.to_api_dict())

        if day_param:
            day = _parse_day(day_param)
            if day is None:
                return web.json_response({"error": "Invalid date"}, status=400)
            events = await get_daily_agenda(store, user_id, day, timezone)
            return web.json_response(
                {
                    "date": day.isoformat(),
                    "events": [event.to_api_dict() for event in events],
                    "count": len(events),
                }
            )

        events = await store.find_all_by_owner(user_id)
        return web.json_response(
            {"events": [event.to_api_dict() for event in events], "count": len(events)}
        )

    @login_required(store)
    async def manage_events(request: web.Request, user_id: str) -> web.Response:
        """Clear all events or report storage info for the current user."""
        action = request.query.get("action")

        if action == "clear":
            deleted = await store.delete_all_by_owner(user_id)
            logger.info("User %s cleared %d events", user_id, deleted)
            return web.json_response({"message": "All events deleted", "count": deleted})

        events = await store.find_all_by_owner(user_id)

        if action == "info":
            return web.json_response(
                {
                    "totalEvents": len(events),
                    "events": [
                        {
                            "id": event.id,
                            "title": event.title,
                            "startTime": event.start_time.isoformat(),
                            "createdAt": event.created_at.isoformat(),
                        }
                        for event in events
                    ],
                }
            )

        return web.json_response(
            {"events": [event.to_api_dict() for event in events], "count": len(events)}
        )

    app.router.add_get("/api/events", list_events)
    app.router.add_get("/api/events/manage", manage_events)
