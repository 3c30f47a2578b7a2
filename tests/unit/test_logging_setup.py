"""Unit tests for logging configuration."""

import logging
from collections.abc import Iterator

import pytest
from colorlog import ColoredFormatter

from timetablebot.utils.logging import (
    CorrelationIdFilter,
    configure_logging,
    get_request_id,
    request_id_var,
)

pytestmark = pytest.mark.unit


def _our_handlers() -> list[logging.Handler]:
    return [h for h in logging.getLogger().handlers if getattr(h, "_timetablebot_handler", False)]


@pytest.fixture(autouse=True)
def restore_root_logger() -> Iterator[None]:
    """Remove handlers installed by configure_logging after each test."""
    root = logging.getLogger()
    original_level = root.level
    yield
    for handler in _our_handlers():
        root.removeHandler(handler)
    root.setLevel(original_level)


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_configure_logging_when_called_then_installs_colored_handler(self) -> None:
        configure_logging("INFO")

        [handler] = _our_handlers()
        assert isinstance(handler.formatter, ColoredFormatter)
        assert any(isinstance(f, CorrelationIdFilter) for f in handler.filters)
        assert logging.getLogger().level == logging.INFO

    def test_configure_logging_when_called_twice_then_single_handler(self) -> None:
        configure_logging("INFO")
        configure_logging("WARNING")

        assert len(_our_handlers()) == 1
        assert logging.getLogger().level == logging.WARNING

    def test_configure_logging_when_debug_flag_then_debug_level(self) -> None:
        configure_logging("ERROR", debug=True)

        assert logging.getLogger().level == logging.DEBUG

    def test_configure_logging_when_env_debug_set_then_debug_level(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("TIMETABLEBOT_DEBUG", "yes")

        configure_logging("INFO")

        assert logging.getLogger("timetablebot").level == logging.DEBUG

    def test_configure_logging_when_unknown_level_then_info(self) -> None:
        configure_logging("LOUD")

        assert logging.getLogger().level == logging.INFO

    def test_configure_logging_when_called_then_noisy_loggers_quieted(self) -> None:
        configure_logging("DEBUG")

        for name in ("aiohttp.access", "httpx", "asyncio", "aiosqlite"):
            assert logging.getLogger(name).level == logging.WARNING


class TestCorrelationIdFilter:
    """Tests for CorrelationIdFilter."""

    def test_filter_when_no_request_then_placeholder(self) -> None:
        record = logging.LogRecord("t", logging.INFO, __file__, 1, "msg", None, None)

        assert CorrelationIdFilter().filter(record) is True
        assert record.request_id == "no-request-id"  # type: ignore[attr-defined]

    def test_filter_when_request_id_set_then_copied_to_record(self) -> None:
        token = request_id_var.set("req-42")
        try:
            record = logging.LogRecord("t", logging.INFO, __file__, 1, "msg", None, None)
            CorrelationIdFilter().filter(record)

            assert record.request_id == "req-42"  # type: ignore[attr-defined]
            assert get_request_id() == "req-42"
        finally:
            request_id_var.reset(token)
