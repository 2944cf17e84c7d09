import logging
from datetime import date
from typing import List, Optional, Set

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import CommonNotFound, RoomNotFound, UpstreamFailure
from app.core.models import Booking, Common, Room
from app.core.sorting import natural_key, natural_sorted
from app.monitoring import sentry

from .schemas import RoomAvailability

logger = logging.getLogger(__name__)


async def list_common_names(db: AsyncSession) -> List[str]:
    try:
        result = await db.execute(select(Common.name))
    except SQLAlchemyError as e:
        logger.error("commons.select failed: %s", e)
        sentry.capture_exception(e, extra={"operation": "commons.select"})
        raise UpstreamFailure("Failed to fetch commons")
    return natural_sorted(result.scalars().all())


async def get_common_id(db: AsyncSession, common_name: str) -> int:
    result = await db.execute(select(Common.id).where(Common.name == common_name))
    common_id = result.scalar_one_or_none()
    if common_id is None:
        raise CommonNotFound()
    return common_id


async def get_room_id(db: AsyncSession, common_id: int, room_name: str) -> int:
    """Room by name, only within the given common."""
    result = await db.execute(
        select(Room.id).where(Room.common_id == common_id, Room.name == room_name)
    )
    room_id = result.scalar_one_or_none()
    if room_id is None:
        raise RoomNotFound()
    return room_id


async def booked_room_ids(db: AsyncSession, on_date: date, slot: int) -> Set[int]:
    """Rooms booked on (date, slot). A failed query is logged and treated as nothing booked."""
    try:
        result = await db.execute(
            select(Booking.room_id).where(Booking.date == on_date, Booking.period == slot)
        )
    except SQLAlchemyError as e:
        await db.rollback()
        logger.warning(
            "bookings.select for room availability failed (date=%s, period=%s): %s",
            on_date, slot, e,
        )
        sentry.capture_exception(
            e,
            extra={"context": "Checking room availability", "date": str(on_date), "slot": slot},
            tags={"operation": "bookings.select"},
        )
        return set()
    return set(result.scalars().all())


async def list_rooms_with_availability(
    db: AsyncSession,
    common_name: str,
    on_date: Optional[date] = None,
    slot: Optional[int] = None,
) -> List[RoomAvailability]:
    try:
        common_id = await get_common_id(db, common_name)
        result = await db.execute(
            select(Room.id, Room.name).where(Room.common_id == common_id, Room.is_bookable.is_(True))
        )
        rooms = result.all()
    except SQLAlchemyError as e:
        logger.error("rooms.select failed for common %r: %s", common_name, e)
        sentry.capture_exception(e, extra={"operation": "rooms.select", "common": common_name})
        raise UpstreamFailure("Failed to fetch rooms")

    booked: Set[int] = set()
    if on_date is not None and slot is not None:
        booked = await booked_room_ids(db, on_date, slot)

    items = [RoomAvailability(name=name, isBooked=room_id in booked) for room_id, name in rooms]
    items.sort(key=lambda r: natural_key(r.name))
    return items
