"""Daily and weekly agenda views over a user's stored events."""

import logging
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Union

from pydantic import BaseModel, Field

from .ics.dates import get_zone
from .ics.importer import EventStore
from .storage.models import StoredEvent

logger = logging.getLogger(__name__)

DAYS_PER_WEEK = 7


class DayAgenda(BaseModel):
    """Events starting on one local calendar day."""

    date: date
    events: list[StoredEvent] = Field(default_factory=list)

    def to_api_dict(self) -> dict:
        return {
            "date": self.date.isoformat(),
            "events": [event.to_api_dict() for event in self.events],
        }


class WeeklyAgenda(BaseModel):
    """Monday-to-Sunday view of a user's events."""

    week_start: date
    days: list[DayAgenda]

    @property
    def total_events(self) -> int:
        return sum(len(day.events) for day in self.days)

    def to_api_dict(self) -> dict:
        return {
            "weekStart": self.week_start.isoformat(),
            "totalEvents": self.total_events,
            "days": [day.to_api_dict() for day in self.days],
        }


def _local_midnight(day: date, zone: tzinfo) -> datetime:
    return datetime.combine(day, time.min, tzinfo=zone)


def day_bounds(day: date, tz: Union[str, tzinfo, None] = None) -> tuple[datetime, datetime]:
    """Return local midnight of ``day`` and of the following day."""
    zone = get_zone(tz)
    return _local_midnight(day, zone), _local_midnight(day + timedelta(days=1), zone)


def week_start(day: date) -> date:
    """Return the Monday of the week containing ``day``."""
    return day - timedelta(days=day.weekday())


def week_bounds(day: date, tz: Union[str, tzinfo, None] = None) -> tuple[datetime, datetime]:
    """Return Monday 00:00 of the week containing ``day`` and of the next week."""
    zone = get_zone(tz)
    monday = week_start(day)
    return (
        _local_midnight(monday, zone),
        _local_midnight(monday + timedelta(days=DAYS_PER_WEEK), zone),
    )


async def get_daily_agenda(
    store: EventStore,
    owner_id: str,
    day: date,
    tz: Union[str, tzinfo, None] = None,
) -> list[StoredEvent]:
    """Get a user's events starting on ``day`` in the given timezone."""
    start, end = day_bounds(day, tz)
    events = await store.find_all_by_owner(owner_id, start, end)
    logger.debug("Daily agenda for %s on %s: %d events", owner_id, day.isoformat(), len(events))
    return events


async def get_weekly_agenda(
    store: EventStore,
    owner_id: str,
    day: date,
    tz: Union[str, tzinfo, None] = None,
) -> WeeklyAgenda:
    """Get a user's events for the Monday-based week containing ``day``.

    Events are grouped by the local date of their start time.
    """
    zone = get_zone(tz)
    start, end = week_bounds(day, zone)
    events = await store.find_all_by_owner(owner_id, start, end)

    monday = week_start(day)
    days = [DayAgenda(date=monday + timedelta(days=offset)) for offset in range(DAYS_PER_WEEK)]
    for event in events:
        offset = (event.start_time.astimezone(zone).date() - monday).days
        if 0 <= offset < DAYS_PER_WEEK:
            days[offset].events.append(event)

    logger.debug(
        "Weekly agenda for %s starting %s: %d events", owner_id, monday.isoformat(), len(events)
    )
    return WeeklyAgenda(week_start=monday, days=days)
