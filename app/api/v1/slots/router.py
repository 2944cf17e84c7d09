from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import require_institution_identity
from app.core.dates import parse_query_date
from app.core.exceptions import ServiceError
from app.db.session import get_db

from .schemas import SlotResponse
from . import service

router = APIRouter(
    prefix="/api/v1/bookings",
    tags=["slots"],
    dependencies=[Depends(require_institution_identity)],
)


@router.get("/slots", response_model=List[SlotResponse])
async def list_slots(
    day: Optional[str] = Query(None, description="Weekday name, e.g. Monday"),
    room: Optional[str] = Query(None),
    common: Optional[str] = Query(None, description="Disambiguates room names shared across commons"),
    date: Optional[str] = Query(None, description="yyyy-mm-dd"),
    subject: Optional[int] = Query(None, description="Accepted for the booking form; the line decides eligible periods"),
    line: Optional[int] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """
    Periods for a weekday ordered by number.
    - **line**: only periods that timetable line occupies on that day (none if it occupies none).
    - **room + date**: isBooked per period for that room.
    - **date only**: isBooked if any room is booked in that period.
    """
    try:
        on_date = parse_query_date(date)
        return await service.list_slots(db, day=day, room=room, common=common, on_date=on_date, line=line)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
