"""Public transport connection lookup."""

from .client import TransitClient, TransitResponse, format_user_address, summarize_connections

__all__ = ["TransitClient", "TransitResponse", "format_user_address", "summarize_connections"]
