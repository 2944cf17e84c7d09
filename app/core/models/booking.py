"""Room booking. At most one booking per (room, date, period); never edited once created."""

from datetime import datetime, timezone

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from app.db.session import Base

BOOKING_SLOT_CONSTRAINT = "uq_bookings_room_date_period"


class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (UniqueConstraint("room_id", "date", "period", name=BOOKING_SLOT_CONSTRAINT),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    teacher_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="RESTRICT"), nullable=False)
    room_id = Column(Integer, ForeignKey("rooms.id", ondelete="RESTRICT"), nullable=False)
    subject_id = Column(Integer, ForeignKey("subjects.id", ondelete="RESTRICT"), nullable=False)
    date = Column(Date, nullable=False)
    period = Column(Integer, nullable=False)
    justification = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)

    teacher = relationship("User")
    room = relationship("Room")
    subject = relationship("Subject")
