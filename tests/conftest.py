"""Shared fixtures for TimetableBot tests."""

import os
from collections.abc import Iterator
from datetime import datetime
from pathlib import Path
from typing import Any, Callable
from zoneinfo import ZoneInfo

import pytest

from timetablebot.config.settings import TimetableSettings, reset_settings
from timetablebot.ics.models import CalendarEvent
from timetablebot.storage.database import DatabaseManager

ZURICH = ZoneInfo("Europe/Zurich")

SAMPLE_ICS = "\r\n".join(
    [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        "PRODID:-//School//Timetable//DE",
        "BEGIN:VEVENT",
        "SUMMARY:Mathematik",
        "DESCRIPTION:Analysis I",
        "LOCATION:NMR",
        "DTSTART:20240115T080000Z",
        "DTEND:20240115T093000Z",
        "END:VEVENT",
        "BEGIN:VEVENT",
        "SUMMARY:Deutsch",
        "LOCATION:q1",
        "DTSTART:20240116T100000",
        "DTEND:20240116T110000",
        "END:VEVENT",
        "END:VCALENDAR",
        "",
    ]
)


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Isolate tests from global settings and TIMETABLEBOT_* variables."""
    for key in list(os.environ):
        if key.upper().startswith("TIMETABLEBOT_"):
            monkeypatch.delenv(key, raising=False)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def sample_ics() -> str:
    """ICS content with one resolvable and one unresolvable location."""
    return SAMPLE_ICS


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    """Temporary SQLite database path."""
    return tmp_path / "timetable_test.db"


@pytest.fixture
def store(db_path: Path) -> DatabaseManager:
    """Database manager backed by a temporary file."""
    return DatabaseManager(db_path)


@pytest.fixture
def test_settings(tmp_path: Path) -> TimetableSettings:
    """Settings pointing all paths at a temporary directory."""
    return TimetableSettings(
        data_dir=tmp_path / "data",
        config_dir=tmp_path / "config",
        database_path=tmp_path / "data" / "timetable.db",
        log_level="ERROR",
    )


@pytest.fixture
def make_event() -> Callable[..., CalendarEvent]:
    """Factory for candidate events with sensible defaults."""

    def _make(**overrides: Any) -> CalendarEvent:
        data: dict[str, Any] = {
            "owner_id": "user-1",
            "title": "Mathematik",
            "description": None,
            "location_code": "NMR",
            "resolved_address": "Minervastrasse 14, 8090 Zürich",
            "start_time": datetime(2024, 1, 15, 10, 0, tzinfo=ZURICH),
            "end_time": datetime(2024, 1, 15, 11, 0, tzinfo=ZURICH),
        }
        data.update(overrides)
        return CalendarEvent(**data)

    return _make
