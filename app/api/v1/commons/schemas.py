from pydantic import BaseModel, ConfigDict, Field


class RoomAvailability(BaseModel):
    """Bookable room in a common, with isBooked for the requested date/slot."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., description="Room name")
    isBooked: bool = Field(False, description="True if a booking exists for this room, date and slot")
