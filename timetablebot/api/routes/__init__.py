"""Route registration for the TimetableBot web API."""

from .auth_routes import register_auth_routes
from .events_routes import register_events_routes
from .ics_routes import register_ics_routes
from .transit_routes import register_transit_routes

__all__ = [
    "register_auth_routes",
    "register_events_routes",
    "register_ics_routes",
    "register_transit_routes",
]
