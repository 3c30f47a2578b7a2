"""Persistent storage for users, sessions and timetable events."""

from .database import DatabaseManager
from .models import DEFAULT_EVENT_COLOR, StoredEvent, User

__all__ = ["DEFAULT_EVENT_COLOR", "DatabaseManager", "StoredEvent", "User"]
