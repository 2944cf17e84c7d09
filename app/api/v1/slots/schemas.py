from datetime import time

from pydantic import BaseModel, ConfigDict, field_serializer


class SlotResponse(BaseModel):
    """One timetable period for a weekday, with isBooked for the requested room/date."""

    model_config = ConfigDict(extra="forbid")

    id: int
    number: int
    day: str
    startTime: time
    endTime: time
    isBooked: bool = False

    @field_serializer("startTime", "endTime")
    def serialize_time_24(self, t: time) -> str:
        """Output as 24-hour string HH:MM (e.g. 09:00, 09:45)."""
        return t.strftime("%H:%M")
