"""Parse compact iCalendar date and date-time tokens into aware datetimes.

The exporting timetable tool writes wall-clock times two hours behind the
local school time, with or without a trailing ``Z``. Every date-time token
therefore gets a fixed +2 hour correction before it is placed in the
application timezone. Date-only tokens are left at local midnight.

A corrected time that falls into the spring-forward gap is kept as the
nonexistent wall-clock time. zoneinfo resolves it with the pre-transition
offset, so once stored as UTC it reads back an hour later (02:00 becomes
03:00 on the last Sunday of March in Europe/Zurich).
"""

import logging
from datetime import date, datetime, timedelta, tzinfo
from typing import Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = "Europe/Zurich"
SOURCE_OFFSET_CORRECTION_HOURS = 2

DATE_TOKEN_LENGTH = 8
DATETIME_TOKEN_LENGTH = 15
DATETIME_SEPARATOR = "T"


def get_zone(tz: Union[str, tzinfo, None] = None) -> tzinfo:
    """Return a tzinfo for a timezone name, passing tzinfo objects through.

    Args:
        tz: IANA timezone name, tzinfo instance, or None for the default zone

    Returns:
        tzinfo instance

    Raises:
        ZoneInfoNotFoundError: If the timezone name is unknown
    """
    if tz is None:
        return ZoneInfo(DEFAULT_TIMEZONE)
    if isinstance(tz, tzinfo):
        return tz
    return ZoneInfo(tz)


def _digits(token: str, start: int, end: int) -> Optional[int]:
    part = token[start:end]
    if len(part) != end - start or not part.isdecimal():
        return None
    return int(part)


def _parse_date_part(token: str) -> Optional[date]:
    year = _digits(token, 0, 4)
    month = _digits(token, 4, 6)
    day = _digits(token, 6, 8)
    if year is None or month is None or day is None:
        return None
    try:
        return date(year, month, day)
    except ValueError:
        return None


def parse_ics_date(token: str, tz: Union[str, tzinfo, None] = None) -> Optional[datetime]:
    """Parse a ``YYYYMMDD`` or ``YYYYMMDDTHHMMSS[Z]`` token.

    Date-time tokens are read by fixed character offsets, shifted by
    SOURCE_OFFSET_CORRECTION_HOURS (rolling over to the next day when the
    hour reaches 24) and localized in ``tz``. Characters after the seconds,
    such as a UTC ``Z`` marker, are ignored.

    Args:
        token: Value of a DTSTART or DTEND line
        tz: Application timezone (name or tzinfo); defaults to DEFAULT_TIMEZONE

    Returns:
        Timezone-aware datetime, or None if the token is malformed
    """
    token = token.strip()

    try:
        zone = get_zone(tz)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown timezone %r; cannot parse %r", tz, token)
        return None

    if DATETIME_SEPARATOR not in token:
        if len(token) < DATE_TOKEN_LENGTH:
            logger.debug("Date token too short: %r", token)
            return None
        day = _parse_date_part(token)
        if day is None:
            logger.debug("Invalid date token: %r", token)
            return None
        return datetime(day.year, day.month, day.day, tzinfo=zone)

    if len(token) < DATETIME_TOKEN_LENGTH or token[8] != DATETIME_SEPARATOR:
        logger.debug("Malformed date-time token: %r", token)
        return None

    day = _parse_date_part(token)
    hour = _digits(token, 9, 11)
    minute = _digits(token, 11, 13)
    second = _digits(token, 13, 15)
    if day is None or hour is None or minute is None or second is None:
        logger.debug("Invalid date-time token: %r", token)
        return None
    if hour > 23 or minute > 59 or second > 59:
        logger.debug("Time out of range in token: %r", token)
        return None

    hour += SOURCE_OFFSET_CORRECTION_HOURS
    if hour >= 24:
        hour -= 24
        day += timedelta(days=1)

    return datetime(day.year, day.month, day.day, hour, minute, second, tzinfo=zone)
