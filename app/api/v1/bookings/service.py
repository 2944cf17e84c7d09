import logging
from typing import Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.commons import service as commons_service
from app.api.v1.subjects import service as subjects_service
from app.auth.schemas import CurrentIdentity
from app.auth.services import resolve_teacher
from app.core.dates import parse_query_date, weekday_name
from app.core.exceptions import (
    BookingValidationError,
    SlotConflict,
    SubjectNotFound,
    UpstreamFailure,
)
from app.core.models import BOOKING_SLOT_CONSTRAINT, Booking, Common, Room, SlotTime, Subject, User
from app.monitoring import sentry

from .schemas import BookingCreate, BookingCreateResponse, BookingRecord, BookingViewItem, BookingViewPage

logger = logging.getLogger(__name__)

# SQLite reports the columns rather than the constraint name
_SQLITE_SLOT_UNIQUE = "bookings.room_id, bookings.date, bookings.period"
_PG_UNIQUE_VIOLATION = "23505"

SlotTimes = Dict[Tuple[str, int], SlotTime]


def _to_record(b: Booking) -> BookingRecord:
    return BookingRecord(
        id=b.id,
        teacher_id=b.teacher_id,
        room_id=b.room_id,
        subject_id=b.subject_id,
        booking_date=b.date,
        period=b.period,
        justification=b.justification,
        created_at=b.created_at,
    )


def is_slot_conflict(exc: IntegrityError) -> bool:
    """True if the violation is the (room, date, period) unique constraint, not some other integrity error."""
    message = str(exc.orig)
    if BOOKING_SLOT_CONSTRAINT in message or _SQLITE_SLOT_UNIQUE in message:
        return True
    sqlstate = getattr(exc.orig, "sqlstate", None) or getattr(exc.orig, "pgcode", None)
    return sqlstate == _PG_UNIQUE_VIOLATION and "bookings" in message


async def create_booking(
    db: AsyncSession,
    identity: Optional[CurrentIdentity],
    payload: BookingCreate,
) -> BookingCreateResponse:
    teacher = await resolve_teacher(db, identity)

    if not payload.subject or not payload.room or not payload.booking_date or not payload.slot:
        raise BookingValidationError("Missing required fields")
    if payload.slot < 1:
        raise BookingValidationError("slot must be a positive period number")
    booking_date = parse_query_date(payload.booking_date)

    try:
        common_id = await commons_service.get_common_id(db, payload.common or "")
        room_id = await commons_service.get_room_id(db, common_id, payload.room)
        if not await subjects_service.subject_exists(db, payload.subject):
            raise SubjectNotFound()
    except SQLAlchemyError as e:
        logger.error("Lookup for booking failed (common=%r, room=%r): %s", payload.common, payload.room, e)
        sentry.capture_exception(e, extra={"operation": "booking.lookup", "payload": payload.model_dump()})
        raise UpstreamFailure("Failed to create booking")

    obj = Booking(
        teacher_id=teacher.id,
        room_id=room_id,
        subject_id=payload.subject,
        date=booking_date,
        period=payload.slot,
        justification=payload.justification or None,
    )
    try:
        db.add(obj)
        await db.commit()
        await db.refresh(obj)
    except IntegrityError as e:
        await db.rollback()
        if is_slot_conflict(e):
            logger.info(
                "Slot conflict: room_id=%s date=%s period=%s already booked", room_id, booking_date, payload.slot
            )
            raise SlotConflict()
        logger.error("bookings.insert integrity error: %s", e)
        sentry.capture_exception(e, extra={"operation": "bookings.insert", "payload": payload.model_dump()})
        raise UpstreamFailure("Failed to create booking")
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("bookings.insert failed: %s", e)
        sentry.capture_exception(e, extra={"operation": "bookings.insert", "payload": payload.model_dump()})
        raise UpstreamFailure("Failed to create booking")

    logger.info(
        "Booking %s created by %s: room_id=%s date=%s period=%s",
        obj.id, teacher.user_id, room_id, booking_date, payload.slot,
    )
    return BookingCreateResponse(message="Booking created successfully", booking=_to_record(obj))


def _view_stmt():
    return (
        select(Booking, User.name, User.email, Room.name, Common.name, Subject.name, Subject.code)
        .outerjoin(User, User.id == Booking.teacher_id)
        .outerjoin(Room, Room.id == Booking.room_id)
        .outerjoin(Common, Common.id == Room.common_id)
        .outerjoin(Subject, Subject.id == Booking.subject_id)
    )


async def _slot_times(db: AsyncSession) -> SlotTimes:
    """(weekday, number) -> SlotTime. Display only; a failed query leaves times blank."""
    try:
        result = await db.execute(select(SlotTime))
    except SQLAlchemyError as e:
        await db.rollback()
        logger.warning("slot_times.select for booking view failed: %s", e)
        sentry.capture_exception(e, extra={"operation": "slot_times.select"})
        return {}
    return {(s.weekday, s.slot_number): s for s in result.scalars().all()}


def _to_view_item(row, slot_times: SlotTimes) -> BookingViewItem:
    b, teacher_name, teacher_email, room_name, common_name, subject_name, subject_code = row
    slot = slot_times.get((weekday_name(b.date), b.period))
    return BookingViewItem(
        id=b.id,
        teacherName=teacher_name or "",
        teacherEmail=teacher_email or "",
        booking_date=b.date,
        period=b.period,
        notes=b.justification,
        room=room_name or "",
        commons=common_name or "",
        subject=subject_name or "",
        subjectCode=subject_code or "",
        startTime=slot.start_time if slot else None,
        endTime=slot.end_time if slot else None,
    )


async def list_bookings(db: AsyncSession, user_id: Optional[str] = None) -> List[BookingViewItem]:
    """Bookings, newest date first. `user_id` is either the users.id UUID or the external identity id."""
    stmt = _view_stmt()
    if user_id:
        try:
            stmt = stmt.where(Booking.teacher_id == UUID(user_id))
        except ValueError:
            stmt = stmt.where(User.user_id == user_id)
    stmt = stmt.order_by(Booking.date.desc(), Booking.period, Booking.id.desc())
    try:
        result = await db.execute(stmt)
        rows = result.all()
    except SQLAlchemyError as e:
        logger.error("bookings.select failed (user_id=%r): %s", user_id, e)
        sentry.capture_exception(
            e, extra={"context": "Database fetch operation", "operation": "bookings.select", "user_id": user_id}
        )
        raise UpstreamFailure("Failed to fetch bookings")
    slot_times = await _slot_times(db)
    return [_to_view_item(row, slot_times) for row in rows]


async def list_booking_view(
    db: AsyncSession,
    search: Optional[str] = None,
    page: int = 1,
    page_size: int = 10,
) -> BookingViewPage:
    """
    All bookings in insertion order with pagination.
    When search is set it is matched (case-insensitive ilike %term%) on teacher name and email,
    room, common, subject name and subject code.
    """
    stmt = _view_stmt()
    term = (search or "").strip()
    if term:
        pattern = f"%{term}%"
        stmt = stmt.where(
            or_(
                User.name.ilike(pattern),
                User.email.ilike(pattern),
                Room.name.ilike(pattern),
                Common.name.ilike(pattern),
                Subject.name.ilike(pattern),
                Subject.code.ilike(pattern),
            )
        )
    stmt = stmt.order_by(Booking.id)

    try:
        count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
        total = (await db.execute(count_stmt)).scalar() or 0
        offset = (page - 1) * page_size
        result = await db.execute(stmt.offset(offset).limit(page_size))
        rows = result.all()
    except SQLAlchemyError as e:
        logger.error("bookings view select failed (search=%r, page=%s): %s", term, page, e)
        sentry.capture_exception(
            e, extra={"context": "bookings.select with joins", "search": term, "page": page}
        )
        raise UpstreamFailure("Database query failed")

    slot_times = await _slot_times(db)
    total_pages = (total + page_size - 1) // page_size if page_size else 0
    return BookingViewPage(
        items=[_to_view_item(row, slot_times) for row in rows],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=total_pages,
    )

