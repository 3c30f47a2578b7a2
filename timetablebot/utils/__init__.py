"""Shared utilities for logging and error handling."""

from .exceptions import (
    AuthenticationError,
    DuplicateUserError,
    StorageError,
    TimetableError,
    TransitError,
)
from .logging import CorrelationIdFilter, configure_logging, get_request_id

__all__ = [
    "AuthenticationError",
    "CorrelationIdFilter",
    "DuplicateUserError",
    "StorageError",
    "TimetableError",
    "TransitError",
    "configure_logging",
    "get_request_id",
]
