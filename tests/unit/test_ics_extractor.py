"""Unit tests for the VEVENT line scanner."""

from datetime import datetime, timedelta
from unittest.mock import Mock
from zoneinfo import ZoneInfo

import pytest

from timetablebot.ics.parser import DEFAULT_EVENT_DURATION, extract_events, iter_events

pytestmark = pytest.mark.unit

ZURICH = ZoneInfo("Europe/Zurich")


def _vevent(*lines: str) -> str:
    return "\n".join(["BEGIN:VEVENT", *lines, "END:VEVENT"])


class TestExtractEvents:
    """Tests for extract_events and iter_events."""

    def test_extract_events_when_two_events_then_resolves_known_location_only(
        self, sample_ics: str
    ) -> None:
        events = extract_events(sample_ics, "user-1")

        assert [event.title for event in events] == ["Mathematik", "Deutsch"]
        assert events[0].location_code == "NMR"
        assert events[0].resolved_address == "Minervastrasse 14, 8090 Zürich"
        assert events[0].description == "Analysis I"
        assert events[1].location_code == "q1"
        assert events[1].resolved_address is None
        assert all(event.owner_id == "user-1" for event in events)
        assert all(event.color is None for event in events)

    def test_extract_events_when_crlf_line_endings_then_values_have_no_carriage_return(
        self, sample_ics: str
    ) -> None:
        events = extract_events(sample_ics, "user-1")

        assert events[0].start_time == datetime(2024, 1, 15, 10, 0, tzinfo=ZURICH)
        assert events[0].end_time == datetime(2024, 1, 15, 11, 30, tzinfo=ZURICH)
        assert not events[0].title.endswith("\r")

    def test_extract_events_when_bytes_then_decodes_utf8(self) -> None:
        content = _vevent("SUMMARY:Französisch", "DTSTART:20240115T080000").encode("utf-8")

        events = extract_events(content, "user-1")

        assert events[0].title == "Französisch"

    def test_extract_events_when_bytes_start_with_bom_then_first_event_kept(self) -> None:
        content = _vevent("SUMMARY:Mathematik", "DTSTART:20240115T080000").encode("utf-8-sig")

        events = extract_events(content, "user-1")

        assert [event.title for event in events] == ["Mathematik"]

    def test_extract_events_when_text_starts_with_bom_then_first_event_kept(self) -> None:
        content = "\ufeff" + _vevent("SUMMARY:Mathematik", "DTSTART:20240115T080000")

        events = extract_events(content, "user-1")

        assert [event.title for event in events] == ["Mathematik"]

    def test_extract_events_when_no_dtend_then_end_is_one_hour_after_start(self) -> None:
        events = extract_events(_vevent("SUMMARY:Physik", "DTSTART:20240115T080000"), "u")

        assert len(events) == 1
        assert events[0].end_time == events[0].start_time + timedelta(hours=1)
        assert DEFAULT_EVENT_DURATION == timedelta(hours=1)

    @pytest.mark.parametrize(
        "lines",
        [
            ("LOCATION:NMR", "DESCRIPTION:no title", "DTSTART:20240115T080000"),
            ("SUMMARY:No start", "LOCATION:NMR", "DESCRIPTION:text"),
            ("SUMMARY:Bad start", "DTSTART:garbage"),
            ("SUMMARY:", "DTSTART:20240115T080000"),
        ],
    )
    def test_extract_events_when_title_or_start_missing_then_event_dropped(
        self, lines: tuple[str, ...]
    ) -> None:
        content = "\n".join([_vevent(*lines), _vevent("SUMMARY:Kept", "DTSTART:20240115T090000")])

        events = extract_events(content, "u")

        assert [event.title for event in events] == ["Kept"]

    def test_extract_events_when_lines_outside_event_then_ignored(self) -> None:
        content = "\n".join(
            [
                "SUMMARY:Calendar name",
                "DTSTART:20240101T000000",
                _vevent("SUMMARY:Inside", "DTSTART:20240115T080000"),
                "SUMMARY:Trailing",
            ]
        )

        assert [event.title for event in extract_events(content, "u")] == ["Inside"]

    def test_extract_events_when_unterminated_event_then_discarded(self) -> None:
        content = "\n".join(
            [
                _vevent("SUMMARY:Complete", "DTSTART:20240115T080000"),
                "BEGIN:VEVENT",
                "SUMMARY:Cut off",
                "DTSTART:20240116T080000",
            ]
        )

        assert [event.title for event in extract_events(content, "u")] == ["Complete"]

    def test_extract_events_when_begin_repeated_then_accumulator_resets(self) -> None:
        content = "\n".join(
            [
                "BEGIN:VEVENT",
                "SUMMARY:Abandoned",
                "LOCATION:NMR",
                "BEGIN:VEVENT",
                "DTSTART:20240115T080000",
                "END:VEVENT",
            ]
        )

        assert extract_events(content, "u") == []

    def test_extract_events_when_values_contain_escapes_then_kept_verbatim(self) -> None:
        content = _vevent(
            "SUMMARY:Bio\\, Chemie",
            "DESCRIPTION:Line\\nbreak",
            "DTSTART:20240115T080000",
            "UID:ignored-123",
            "RRULE:FREQ=WEEKLY",
        )

        event = extract_events(content, "u")[0]

        assert event.title == "Bio\\, Chemie"
        assert event.description == "Line\\nbreak"

    def test_extract_events_when_empty_input_then_returns_empty_list(self) -> None:
        assert extract_events("", "u") == []

    def test_iter_events_when_consumed_lazily_then_yields_in_source_order(self) -> None:
        content = "\n".join(
            _vevent(f"SUMMARY:Lesson {n}", f"DTSTART:2024011{n}T080000") for n in range(1, 4)
        )

        iterator = iter_events(content, "u")

        assert next(iterator).title == "Lesson 1"
        assert [event.title for event in iterator] == ["Lesson 2", "Lesson 3"]

    def test_extract_events_when_resolver_injected_then_called_with_raw_code(self) -> None:
        resolver = Mock(return_value="Somewhere 1")
        content = _vevent("SUMMARY:Sport", "LOCATION:Halle", "DTSTART:20240115T080000")

        events = extract_events(content, "u", resolver=resolver)

        resolver.assert_called_once_with("Halle")
        assert events[0].resolved_address == "Somewhere 1"

    def test_extract_events_when_timezone_given_then_passed_to_date_parser(self) -> None:
        content = _vevent("SUMMARY:Sport", "DTSTART:20240115T080000")

        event = extract_events(content, "u", tz="UTC")[0]

        assert event.start_time.utcoffset() == timedelta(0)
        assert event.start_time.hour == 10
