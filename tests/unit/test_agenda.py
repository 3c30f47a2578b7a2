"""Unit tests for daily and weekly agenda views."""

from datetime import date, datetime, timedelta, timezone
from typing import Callable
from zoneinfo import ZoneInfo

import pytest

from timetablebot.agenda import (
    day_bounds,
    get_daily_agenda,
    get_weekly_agenda,
    week_bounds,
    week_start,
)
from timetablebot.ics.models import CalendarEvent
from timetablebot.storage.database import DatabaseManager

pytestmark = pytest.mark.unit

ZURICH = ZoneInfo("Europe/Zurich")


class TestBounds:
    """Tests for day and week boundaries."""

    def test_day_bounds_when_regular_day_then_local_midnights(self) -> None:
        start, end = day_bounds(date(2024, 1, 15), "Europe/Zurich")

        assert start == datetime(2024, 1, 15, tzinfo=ZURICH)
        assert end == datetime(2024, 1, 16, tzinfo=ZURICH)

    def test_day_bounds_when_dst_starts_then_day_is_23_hours(self) -> None:
        start, end = day_bounds(date(2024, 3, 31), ZURICH)

        assert end.astimezone(timezone.utc) - start.astimezone(timezone.utc) == timedelta(hours=23)

    @pytest.mark.parametrize(
        "day",
        [date(2024, 1, 15), date(2024, 1, 17), date(2024, 1, 21)],
    )
    def test_week_bounds_when_any_weekday_then_monday_to_next_monday(self, day: date) -> None:
        start, end = week_bounds(day, ZURICH)

        assert start == datetime(2024, 1, 15, tzinfo=ZURICH)
        assert end == datetime(2024, 1, 22, tzinfo=ZURICH)
        assert week_start(day) == date(2024, 1, 15)


class TestAgendaQueries:
    """Tests for agenda queries against the store."""

    @pytest.mark.asyncio
    async def test_get_daily_agenda_when_events_on_several_days_then_only_that_day(
        self, store: DatabaseManager, make_event: Callable[..., CalendarEvent]
    ) -> None:
        await store.insert(make_event(title="Monday", start_time=datetime(2024, 1, 15, 8, tzinfo=ZURICH)))
        await store.insert(
            make_event(title="Monday late", start_time=datetime(2024, 1, 15, 23, 30, tzinfo=ZURICH))
        )
        await store.insert(make_event(title="Tuesday", start_time=datetime(2024, 1, 16, 0, tzinfo=ZURICH)))

        events = await get_daily_agenda(store, "user-1", date(2024, 1, 15), ZURICH)

        assert [event.title for event in events] == ["Monday", "Monday late"]

    @pytest.mark.asyncio
    async def test_get_weekly_agenda_when_events_in_week_then_grouped_by_local_day(
        self, store: DatabaseManager, make_event: Callable[..., CalendarEvent]
    ) -> None:
        await store.insert(make_event(title="Mon", start_time=datetime(2024, 1, 15, 8, tzinfo=ZURICH)))
        await store.insert(make_event(title="Wed", start_time=datetime(2024, 1, 17, 10, tzinfo=ZURICH)))
        await store.insert(make_event(title="Sun", start_time=datetime(2024, 1, 21, 23, tzinfo=ZURICH)))
        await store.insert(make_event(title="Next", start_time=datetime(2024, 1, 22, 0, tzinfo=ZURICH)))

        weekly = await get_weekly_agenda(store, "user-1", date(2024, 1, 18), ZURICH)

        assert weekly.week_start == date(2024, 1, 15)
        assert [day.date for day in weekly.days] == [
            date(2024, 1, 15) + timedelta(days=offset) for offset in range(7)
        ]
        assert [[event.title for event in day.events] for day in weekly.days] == [
            ["Mon"],
            [],
            ["Wed"],
            [],
            [],
            [],
            ["Sun"],
        ]
        assert weekly.total_events == 3

    @pytest.mark.asyncio
    async def test_weekly_agenda_to_api_dict_when_serialized_then_camel_case_keys(
        self, store: DatabaseManager, make_event: Callable[..., CalendarEvent]
    ) -> None:
        await store.insert(make_event())

        payload = (await get_weekly_agenda(store, "user-1", date(2024, 1, 15), ZURICH)).to_api_dict()

        assert payload["weekStart"] == "2024-01-15"
        assert payload["totalEvents"] == 1
        first_event = payload["days"][0]["events"][0]
        assert set(first_event) >= {"id", "ownerId", "startTime", "resolvedAddress", "createdAt"}
