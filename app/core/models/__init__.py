from app.core.models.user import User
from app.core.models.subject import Subject, SubjectTeacher
from app.core.models.common import Common, Room
from app.core.models.slot_time import LineSlot, SlotTime
from app.core.models.booking import BOOKING_SLOT_CONSTRAINT, Booking

__all__ = [
    "User",
    "Subject",
    "SubjectTeacher",
    "Common",
    "Room",
    "SlotTime",
    "LineSlot",
    "Booking",
    "BOOKING_SLOT_CONSTRAINT",
]
