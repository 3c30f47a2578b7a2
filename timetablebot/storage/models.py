"""Database models for stored events, users and sessions."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer
from pydantic.alias_generators import to_camel

from ..ics.models import CalendarEvent

DEFAULT_EVENT_COLOR = "#3b82f6"


class StoredEvent(CalendarEvent):
    """Calendar event persisted for one user."""

    id: str = Field(..., description="System-assigned event identifier")
    color: str = Field(default=DEFAULT_EVENT_COLOR, description="Display color")
    created_at: datetime = Field(..., description="When the event was stored")

    @field_serializer("created_at", when_used="json")
    def serialize_created_at(self, dt: datetime) -> str:
        """Serialize creation time to ISO format."""
        return dt.isoformat()

    def to_api_dict(self) -> dict:
        """Serialize with camelCase keys for JSON responses."""
        return self.model_dump(mode="json", by_alias=True)


class User(BaseModel):
    """Registered user with an optional home address."""

    id: str
    email: str
    name: Optional[str] = None

    # Address
    street: Optional[str] = None
    house_number: Optional[str] = None
    postal_code: Optional[str] = None
    city: Optional[str] = None

    created_at: datetime

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    @field_serializer("created_at", when_used="json")
    def serialize_datetime(self, dt: datetime) -> str:
        """Serialize creation time to ISO format."""
        return dt.isoformat()

    @property
    def has_address(self) -> bool:
        """Check if any address field is set."""
        return any((self.street, self.house_number, self.postal_code, self.city))

    def to_api_dict(self) -> dict:
        """Serialize with camelCase keys for JSON responses."""
        return self.model_dump(mode="json", by_alias=True)
