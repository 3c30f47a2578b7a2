"""Application-wide exception hierarchy."""

from typing import Optional


class TimetableError(Exception):
    """Base exception for all timetablebot errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class StorageError(TimetableError):
    """Raised when the record store cannot complete an operation."""


class DuplicateUserError(StorageError):
    """Raised when registering an email address that already exists."""


class TransitError(TimetableError):
    """Raised when the transit connections API cannot be reached or parsed."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        """Initialize TransitError.

        Args:
            message: Error message
            status_code: Upstream HTTP status, if a response was received
        """
        super().__init__(message)
        self.status_code = status_code


class AuthenticationError(TimetableError):
    """Raised when a request carries no valid session."""
