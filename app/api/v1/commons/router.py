from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import require_institution_identity
from app.core.dates import parse_query_date
from app.core.exceptions import ServiceError
from app.db.session import get_db

from .schemas import RoomAvailability
from . import service

router = APIRouter(
    prefix="/api/v1/bookings",
    tags=["commons"],
    dependencies=[Depends(require_institution_identity)],
)


@router.get("/commons", response_model=List[str])
async def list_commons(
    subject: Optional[int] = Query(None, description="Accepted for the booking form; commons are not subject-scoped"),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await service.list_common_names(db)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/rooms", response_model=List[RoomAvailability])
async def list_rooms(
    common: Optional[str] = Query(None),
    date: Optional[str] = Query(None, description="yyyy-mm-dd"),
    slot: Optional[int] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """Bookable rooms in a common, naturally sorted; isBooked when date and slot are given."""
    if not common:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing common")
    try:
        on_date = parse_query_date(date)
        return await service.list_rooms_with_availability(db, common, on_date=on_date, slot=slot)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
