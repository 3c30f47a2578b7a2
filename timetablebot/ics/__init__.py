"""ICS timetable parsing and import module."""

from .dates import parse_ics_date
from .exceptions import ICSImportError, InvalidUploadError, MissingUploadError
from .importer import DUPLICATE_WINDOW_SECONDS, EventStore, ImportSummary, import_ics, reconcile
from .locations import resolve_location
from .models import CalendarEvent
from .parser import ParserState, extract_events, iter_events

__all__ = [
    "DUPLICATE_WINDOW_SECONDS",
    "CalendarEvent",
    "EventStore",
    "ICSImportError",
    "ImportSummary",
    "InvalidUploadError",
    "MissingUploadError",
    "ParserState",
    "extract_events",
    "import_ics",
    "iter_events",
    "parse_ics_date",
    "reconcile",
    "resolve_location",
]
