"""Command-line entry for TimetableBot: ``python -m timetablebot``."""

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from .api.server import run_server
from .config.settings import TimetableSettings
from .utils.logging import configure_logging

logger = logging.getLogger(__name__)


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for the TimetableBot CLI.

    Returns:
        Configured argument parser
    """
    parser = argparse.ArgumentParser(
        prog="timetablebot",
        description="TimetableBot - class timetable API with ICS import and transit lookup",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m timetablebot                          # Serve on 127.0.0.1:8080
  python -m timetablebot --host 0.0.0.0 --port 3000
  python -m timetablebot --database ./timetable.db --debug
        """,
    )
    parser.add_argument("--host", metavar="HOST", help="Bind address (default: 127.0.0.1)")
    parser.add_argument("--port", type=int, metavar="PORT", help="Port number (default: 8080)")
    parser.add_argument("--database", type=Path, metavar="PATH", help="SQLite database file")
    parser.add_argument("--config", type=Path, metavar="FILE", help="YAML configuration file")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser


def build_settings(args: argparse.Namespace) -> TimetableSettings:
    """Build settings, letting command-line flags override env vars and YAML."""
    overrides: dict[str, Any] = {}
    if args.host:
        overrides["web_host"] = args.host
    if args.port:
        overrides["web_port"] = args.port
    if args.database:
        overrides["database_path"] = args.database
    if args.config:
        overrides["config_file"] = args.config
    if args.debug:
        overrides["debug"] = True
    return TimetableSettings(**overrides)


def main(argv: Optional[list[str]] = None) -> int:
    """Run the TimetableBot server."""
    args = create_parser().parse_args(argv)

    try:
        settings = build_settings(args)
    except ValidationError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 2

    configure_logging(settings.effective_log_level)
    try:
        run_server(settings)
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
    return 0


if __name__ == "__main__":
    sys.exit(main())
