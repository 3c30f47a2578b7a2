"""Data models for ICS timetable import."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer
from pydantic.alias_generators import to_camel


class CalendarEvent(BaseModel):
    """Candidate event extracted from an ICS file, not yet persisted."""

    owner_id: str = Field(..., description="Identifier of the owning user")
    title: str = Field(..., min_length=1, description="Event title from SUMMARY")
    description: Optional[str] = Field(default=None, description="Event description")

    # Location
    location_code: Optional[str] = Field(default=None, description="Room code from LOCATION")
    resolved_address: Optional[str] = Field(
        default=None, description="Street address resolved from the room code"
    )

    # Time information
    start_time: datetime = Field(..., description="Event start time")
    end_time: datetime = Field(..., description="Event end time")

    # Display color is assigned when the event is stored
    color: Optional[str] = Field(default=None, description="Display color")

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    @field_serializer("start_time", "end_time", when_used="json")
    def serialize_datetime(self, dt: datetime) -> str:
        """Serialize datetime fields to ISO format."""
        return dt.isoformat()

    @property
    def duration_minutes(self) -> int:
        """Get event duration in minutes."""
        delta = self.end_time - self.start_time
        return int(delta.total_seconds() / 60)

