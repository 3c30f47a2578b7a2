"""Unit tests for the command-line entry point."""

from pathlib import Path
from unittest.mock import patch

import pytest

from timetablebot.__main__ import build_settings, create_parser, main

pytestmark = pytest.mark.unit


class TestCli:
    """Tests for argument parsing and startup."""

    def test_build_settings_when_flags_given_then_override_defaults(self, tmp_path: Path) -> None:
        args = create_parser().parse_args(
            [
                "--host",
                "0.0.0.0",
                "--port",
                "3000",
                "--database",
                str(tmp_path / "cli.db"),
                "--debug",
            ]
        )

        settings = build_settings(args)

        assert settings.web_host == "0.0.0.0"
        assert settings.web_port == 3000
        assert settings.database_file == tmp_path / "cli.db"
        assert settings.debug is True

    def test_build_settings_when_config_flag_then_yaml_loaded(self, tmp_path: Path) -> None:
        config_file = tmp_path / "config.yaml"
        config_file.write_text("web_port: 7000\n", encoding="utf-8")

        settings = build_settings(create_parser().parse_args(["--config", str(config_file)]))

        assert settings.web_port == 7000

    def test_main_when_run_then_starts_server_with_settings(self, tmp_path: Path) -> None:
        with patch("timetablebot.__main__.run_server") as mock_run, patch(
            "timetablebot.__main__.configure_logging"
        ) as mock_logging:
            exit_code = main(["--port", "8123", "--database", str(tmp_path / "t.db")])

        assert exit_code == 0
        mock_logging.assert_called_once_with("INFO")
        settings = mock_run.call_args.args[0]
        assert settings.web_port == 8123

    def test_main_when_interrupted_then_exits_cleanly(self, tmp_path: Path) -> None:
        with patch("timetablebot.__main__.run_server", side_effect=KeyboardInterrupt), patch(
            "timetablebot.__main__.configure_logging"
        ):
            assert main(["--database", str(tmp_path / "t.db")]) == 0

    def test_main_when_invalid_port_then_argparse_exits(self) -> None:
        with pytest.raises(SystemExit):
            main(["--port", "not-a-port"])
