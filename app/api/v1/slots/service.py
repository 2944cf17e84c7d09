"""Slot catalogue and per-slot availability.

Read paths here soft-fail: a failed booking or line lookup is logged with its
parameters, reported to Sentry, and treated as "nothing booked" / "no line
restriction" so the booking form can still be shown. Only the slot catalogue
itself is required.
"""

import logging
from datetime import date
from typing import Collection, List, Optional, Set

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dates import weekday_name
from app.core.exceptions import UpstreamFailure
from app.core.models import Booking, Common, LineSlot, Room, SlotTime
from app.monitoring import sentry

from .schemas import SlotResponse

logger = logging.getLogger(__name__)


def _to_response(s: SlotTime, booked: Collection[int] = ()) -> SlotResponse:
    return SlotResponse(
        id=s.id,
        number=s.slot_number,
        day=s.weekday,
        startTime=s.start_time,
        endTime=s.end_time,
        isBooked=s.slot_number in booked,
    )


async def slots_for(
    db: AsyncSession,
    weekday: Optional[str] = None,
    slot_numbers: Optional[Collection[int]] = None,
) -> List[SlotTime]:
    """Periods for a weekday ordered by number. An empty `slot_numbers` means no eligible periods."""
    if slot_numbers is not None and len(slot_numbers) == 0:
        return []
    stmt = select(SlotTime)
    if weekday:
        stmt = stmt.where(SlotTime.weekday == weekday)
    if slot_numbers is not None:
        stmt = stmt.where(SlotTime.slot_number.in_(list(slot_numbers)))
    stmt = stmt.order_by(SlotTime.slot_number)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def line_slot_numbers(db: AsyncSession, line: int, weekday: str) -> Set[int]:
    result = await db.execute(
        select(LineSlot.slot_number).where(LineSlot.line_number == line, LineSlot.weekday == weekday)
    )
    return set(result.scalars().all())


async def booked_periods(db: AsyncSession, on_date: date, room_id: Optional[int] = None) -> Set[int]:
    """Booked period numbers on a date, for one room or (room_id=None) across all rooms."""
    stmt = select(Booking.period).where(Booking.date == on_date)
    if room_id is not None:
        stmt = stmt.where(Booking.room_id == room_id)
    try:
        result = await db.execute(stmt)
    except SQLAlchemyError as e:
        await db.rollback()
        logger.warning("bookings.select failed (date=%s, room_id=%s): %s", on_date, room_id, e)
        sentry.capture_exception(
            e,
            extra={"operation": "bookings.select", "date": str(on_date), "room_id": room_id},
        )
        return set()
    return set(result.scalars().all())


async def _find_room_id(db: AsyncSession, room: str, common: Optional[str]) -> Optional[int]:
    stmt = select(Room.id).where(Room.name == room)
    if common:
        stmt = stmt.join(Common, Common.id == Room.common_id).where(Common.name == common)
    try:
        result = await db.execute(stmt.order_by(Room.id).limit(1))
    except SQLAlchemyError as e:
        await db.rollback()
        logger.warning("rooms.select failed (room=%r, common=%r): %s", room, common, e)
        sentry.capture_exception(e, extra={"operation": "rooms.select", "room": room, "common": common})
        return None
    room_id = result.scalar_one_or_none()
    if room_id is None:
        logger.info("Room %r (common=%r) not found; slots shown as unbooked", room, common)
    return room_id


async def list_slots(
    db: AsyncSession,
    day: Optional[str] = None,
    room: Optional[str] = None,
    common: Optional[str] = None,
    on_date: Optional[date] = None,
    line: Optional[int] = None,
) -> List[SlotResponse]:
    """
    Periods for `day` (or the weekday of `on_date`), limited to the periods `line` occupies.

    Booked periods are flagged with isBooked, never removed. With a date and no room a period
    counts as booked when any room is booked in it.
    """
    weekday = day or (weekday_name(on_date) if on_date else None)

    restrict: Optional[Set[int]] = None
    if line is not None and weekday:
        try:
            restrict = await line_slot_numbers(db, line, weekday)
        except SQLAlchemyError as e:
            await db.rollback()
            logger.warning("line_slots.select failed (line=%s, weekday=%s): %s", line, weekday, e)
            sentry.capture_exception(
                e, extra={"operation": "line_slots.select", "line": line, "weekday": weekday}
            )

    try:
        slots = await slots_for(db, weekday, restrict)
    except SQLAlchemyError as e:
        logger.error("slot_times.select failed (weekday=%s): %s", weekday, e)
        sentry.capture_exception(e, extra={"context": "Fetching slots from database", "day": weekday})
        raise UpstreamFailure("Failed to fetch slots")

    booked: Set[int] = set()
    if on_date is not None:
        if room:
            room_id = await _find_room_id(db, room, common)
            if room_id is not None:
                booked = await booked_periods(db, on_date, room_id)
        else:
            booked = await booked_periods(db, on_date)

    return [_to_response(s, booked) for s in slots]
