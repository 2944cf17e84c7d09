from datetime import date, datetime, time
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_serializer


class BookingCreate(BaseModel):
    """Booking form submission. Presence of subject/room/date/slot is checked by the service (400)."""

    model_config = ConfigDict(populate_by_name=True)

    subject: Optional[int] = Field(None, description="Subject id")
    line: Optional[int] = Field(None, description="Timetable line the subject is taught on")
    common: Optional[str] = Field(None, description="Common name")
    room: Optional[str] = Field(None, description="Room name within the common")
    booking_date: Optional[str] = Field(None, alias="date", description="yyyy-mm-dd or ISO timestamp")
    slot: Optional[int] = Field(None, description="Period number")
    justification: Optional[str] = None


class BookingRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True, extra="forbid", populate_by_name=True)

    id: int
    teacher_id: UUID
    room_id: int
    subject_id: int
    booking_date: date = Field(..., alias="date")
    period: int
    justification: Optional[str] = None
    created_at: datetime


class BookingCreateResponse(BaseModel):
    message: str
    booking: BookingRecord


class BookingViewItem(BaseModel):
    """Booking joined with teacher, room, common and subject display fields (camelCase for frontend)."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    id: int
    teacherName: str = ""
    teacherEmail: str = ""
    booking_date: date = Field(..., alias="date")
    period: int
    notes: Optional[str] = None
    room: str = ""
    commons: str = ""
    subject: str = ""
    subjectCode: str = ""
    startTime: Optional[time] = None
    endTime: Optional[time] = None

    @field_serializer("startTime", "endTime")
    def serialize_time_24(self, t: Optional[time]) -> Optional[str]:
        return t.strftime("%H:%M") if t else None


class BookingViewPage(BaseModel):
    items: List[BookingViewItem]
    total: int
    page: int
    page_size: int
    total_pages: int
