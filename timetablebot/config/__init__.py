"""Configuration management for TimetableBot."""

from .settings import TimetableSettings, get_settings, reset_settings

__all__ = ["TimetableSettings", "get_settings", "reset_settings"]
