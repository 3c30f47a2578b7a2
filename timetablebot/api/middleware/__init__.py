"""Middleware for the TimetableBot web API."""

from .correlation_id import correlation_id_middleware
from .errors import error_middleware

__all__ = ["correlation_id_middleware", "error_middleware"]
