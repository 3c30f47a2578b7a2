"""ICS import exceptions for error handling."""

from ..utils.exceptions import TimetableError


class ICSImportError(TimetableError):
    """Base exception for ICS import precondition failures."""


class MissingUploadError(ICSImportError):
    """Raised when no file was supplied for import."""


class InvalidUploadError(ICSImportError):
    """Raised when the uploaded file is not an acceptable ICS file."""
