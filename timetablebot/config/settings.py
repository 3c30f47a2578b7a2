"""Settings management using Pydantic for type validation and configuration."""

import logging
import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import Field, PrivateAttr
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

ENV_PREFIX = "TIMETABLEBOT_"


class TimetableSettings(BaseSettings):
    """Application settings with environment variable and YAML support."""

    # Private attributes
    _explicit_args: set = PrivateAttr(default_factory=set)
    _env_vars_set: set = PrivateAttr(default_factory=set)

    # Application Configuration
    app_name: str = Field(default="TimetableBot", description="Application name")
    timezone: str = Field(
        default="Europe/Zurich", description="Timezone used for ICS dates and agendas"
    )
    default_event_color: str = Field(
        default="#3b82f6", description="Display color assigned to imported events"
    )
    max_upload_bytes: int = Field(
        default=5 * 1024 * 1024, description="Maximum accepted ICS upload size in bytes"
    )

    # File Paths
    config_dir: Path = Field(default_factory=lambda: Path.home() / ".config" / "timetablebot")
    data_dir: Path = Field(
        default_factory=lambda: Path.home() / ".local" / "share" / "timetablebot"
    )
    database_path: Optional[Path] = Field(
        default=None, description="SQLite database file (defaults to data_dir/timetable.db)"
    )
    config_file: Optional[Path] = Field(
        default=None, description="YAML configuration file (defaults to config_dir/config.yaml)"
    )

    # Web Server
    web_host: str = Field(default="127.0.0.1", description="Web server host")
    web_port: int = Field(default=8080, description="Web server port")

    # Transit API
    transit_api_url: str = Field(
        default="https://transport.opendata.ch/v1", description="Transit connections API base URL"
    )
    transit_timeout: float = Field(default=15.0, description="Transit API timeout in seconds")

    # Logging
    log_level: str = Field(default="INFO", description="Log level: DEBUG, INFO, WARNING, ERROR")
    debug: bool = Field(default=False, description="Enable debug mode")

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        validate_assignment=True,
    )

    def __init__(self, **kwargs: Any) -> None:
        # Track which environment variables are set before calling parent
        env_vars_set = {
            key[len(ENV_PREFIX) :].lower()
            for key in os.environ
            if key.upper().startswith(ENV_PREFIX)
        }

        super().__init__(**kwargs)

        # Explicit arguments and environment variables win over the YAML file
        self._explicit_args = set(kwargs.keys())
        self._env_vars_set = env_vars_set

        self._load_yaml_config()

    def _find_config_file(self) -> Optional[Path]:
        """Find the YAML config file, preferring an explicitly configured path."""
        candidate = self.config_file or self.config_dir / "config.yaml"
        if candidate.exists():
            return candidate
        return None

    def _load_yaml_config(self) -> None:
        """Load configuration from YAML file if it exists."""
        config_file = self._find_config_file()
        if not config_file:
            return

        try:
            with config_file.open(encoding="utf-8") as f:
                config_data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            # Don't fail if YAML loading fails, just continue with defaults/env vars
            logger.warning("Could not load YAML config from %s: %s", config_file, e)
            return

        if not config_data:
            return
        if not isinstance(config_data, dict):
            logger.warning("Ignoring YAML config %s: top level is not a mapping", config_file)
            return

        for key, value in config_data.items():
            if key not in type(self).model_fields or key == "config_file":
                logger.debug("Ignoring unknown config key %r in %s", key, config_file)
                continue
            if key in self._explicit_args or key in self._env_vars_set:
                continue
            try:
                setattr(self, key, value)
            except ValueError as e:
                logger.warning("Invalid value for %r in %s: %s", key, config_file, e)

        logger.debug("Loaded YAML configuration from %s", config_file)

    @property
    def database_file(self) -> Path:
        """Path to SQLite database file."""
        if self.database_path is not None:
            return self.database_path
        return self.data_dir / "timetable.db"

    @property
    def effective_log_level(self) -> str:
        """Log level after applying the debug flag."""
        return "DEBUG" if self.debug else self.log_level.upper()


# Global settings management
_settings_instance: Optional[TimetableSettings] = None


def get_settings() -> TimetableSettings:
    """Get the global settings instance, creating it lazily if needed.

    Returns:
        TimetableSettings: The global settings instance
    """
    if globals()["_settings_instance"] is None:
        globals()["_settings_instance"] = TimetableSettings()
    return globals()["_settings_instance"]


def reset_settings() -> None:
    """Reset the global settings instance (primarily for testing)."""
    globals()["_settings_instance"] = None
