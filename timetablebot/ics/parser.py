"""Line-oriented extractor for the VEVENT subset written by timetable exports.

Only single-occurrence events are understood: no RRULE expansion, no line
unfolding and no text unescaping. Property values are taken verbatim after
their prefix.
"""

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from datetime import datetime, timedelta, tzinfo
from enum import Enum
from typing import Callable, Optional, Union

from .dates import parse_ics_date
from .locations import resolve_location
from .models import CalendarEvent

logger = logging.getLogger(__name__)

BEGIN_EVENT = "BEGIN:VEVENT"
END_EVENT = "END:VEVENT"

SUMMARY_PREFIX = "SUMMARY:"
DESCRIPTION_PREFIX = "DESCRIPTION:"
LOCATION_PREFIX = "LOCATION:"
DTSTART_PREFIX = "DTSTART:"
DTEND_PREFIX = "DTEND:"

DEFAULT_EVENT_DURATION = timedelta(hours=1)
BYTE_ORDER_MARK = "\ufeff"

LocationResolver = Callable[[str], Optional[str]]
DateParser = Callable[[str, Union[str, tzinfo, None]], Optional[datetime]]


class ParserState(str, Enum):
    """Scanner position relative to VEVENT blocks."""

    OUTSIDE_EVENT = "outside_event"
    INSIDE_EVENT = "inside_event"


@dataclass
class _PendingEvent:
    """Fields collected for the VEVENT currently being scanned."""

    owner_id: str
    title: Optional[str] = None
    description: Optional[str] = None
    location_code: Optional[str] = None
    resolved_address: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None

    def finalize(self) -> Optional[CalendarEvent]:
        """Build a candidate, or None if the title or start time is missing."""
        if not self.title or self.start_time is None:
            return None
        return CalendarEvent(
            owner_id=self.owner_id,
            title=self.title,
            description=self.description,
            location_code=self.location_code,
            resolved_address=self.resolved_address,
            start_time=self.start_time,
            end_time=self.end_time or self.start_time + DEFAULT_EVENT_DURATION,
        )


def _decode(content: Union[str, bytes]) -> str:
    if isinstance(content, bytes):
        return content.decode("utf-8-sig", errors="replace")
    return content.removeprefix(BYTE_ORDER_MARK)


def iter_events(
    content: Union[str, bytes],
    owner_id: str,
    tz: Union[str, tzinfo, None] = None,
    resolver: LocationResolver = resolve_location,
    date_parser: DateParser = parse_ics_date,
) -> Iterator[CalendarEvent]:
    """Scan ICS text and yield candidate events in source order.

    Args:
        content: Raw ICS text or bytes (decoded as UTF-8)
        owner_id: Identifier of the user the events belong to
        tz: Application timezone passed to the date parser
        resolver: Maps LOCATION values to street addresses
        date_parser: Parses DTSTART/DTEND values

    Yields:
        CalendarEvent for every VEVENT with a title and a start time
    """
    yield from _scan(_decode(content).split("\n"), owner_id, tz, resolver, date_parser)


def _scan(
    lines: Iterable[str],
    owner_id: str,
    tz: Union[str, tzinfo, None],
    resolver: LocationResolver,
    date_parser: DateParser,
) -> Iterator[CalendarEvent]:
    state = ParserState.OUTSIDE_EVENT
    pending = _PendingEvent(owner_id=owner_id)
    emitted = 0
    discarded = 0

    for raw_line in lines:
        line = raw_line.strip()

        if line == BEGIN_EVENT:
            state = ParserState.INSIDE_EVENT
            pending = _PendingEvent(owner_id=owner_id)
            continue

        if state is ParserState.OUTSIDE_EVENT:
            continue

        if line == END_EVENT:
            state = ParserState.OUTSIDE_EVENT
            event = pending.finalize()
            if event is None:
                discarded += 1
                logger.debug("Discarding VEVENT without title or start time")
            else:
                emitted += 1
                yield event
            continue

        if line.startswith(SUMMARY_PREFIX):
            pending.title = line[len(SUMMARY_PREFIX) :]
        elif line.startswith(DESCRIPTION_PREFIX):
            pending.description = line[len(DESCRIPTION_PREFIX) :]
        elif line.startswith(LOCATION_PREFIX):
            location = line[len(LOCATION_PREFIX) :]
            pending.location_code = location
            address = resolver(location)
            if address:
                pending.resolved_address = address
        elif line.startswith(DTSTART_PREFIX):
            pending.start_time = date_parser(line[len(DTSTART_PREFIX) :], tz)
        elif line.startswith(DTEND_PREFIX):
            pending.end_time = date_parser(line[len(DTEND_PREFIX) :], tz)

    if state is ParserState.INSIDE_EVENT:
        discarded += 1
        logger.debug("Discarding unterminated VEVENT at end of input")

    logger.debug("ICS scan finished: %d events emitted, %d discarded", emitted, discarded)


def extract_events(
    content: Union[str, bytes],
    owner_id: str,
    tz: Union[str, tzinfo, None] = None,
    resolver: LocationResolver = resolve_location,
    date_parser: DateParser = parse_ics_date,
) -> list[CalendarEvent]:
    """Extract all candidate events from ICS content.

    Args:
        content: Raw ICS text or bytes
        owner_id: Identifier of the user the events belong to
        tz: Application timezone for date-time tokens
        resolver: Maps LOCATION values to street addresses
        date_parser: Parses DTSTART/DTEND values

    Returns:
        Candidate events in source order
    """
    return list(iter_events(content, owner_id, tz, resolver, date_parser))
