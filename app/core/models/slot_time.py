"""Timetable periods (slot_times) and the periods each timetable line occupies (line_slots)."""

from sqlalchemy import Column, Integer, String, Time, UniqueConstraint

from app.db.session import Base


class SlotTime(Base):
    __tablename__ = "slot_times"
    __table_args__ = (UniqueConstraint("weekday", "slot_number", name="uq_slot_time_weekday_number"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    slot_number = Column(Integer, nullable=False)
    weekday = Column(String(20), nullable=False)  # Monday .. Friday
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)


class LineSlot(Base):
    __tablename__ = "line_slots"
    __table_args__ = (
        UniqueConstraint("line_number", "weekday", "slot_number", name="uq_line_slot"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    line_number = Column(Integer, nullable=False)
    weekday = Column(String(20), nullable=False)
    slot_number = Column(Integer, nullable=False)
