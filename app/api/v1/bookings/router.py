from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import require_institution_identity
from app.auth.schemas import CurrentIdentity
from app.core.exceptions import ServiceError
from app.db.session import get_db

from .schemas import BookingCreate, BookingCreateResponse, BookingViewItem, BookingViewPage
from . import service

router = APIRouter(prefix="/api/v1/bookings", tags=["bookings"])


@router.post(
    "",
    response_model=BookingCreateResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_booking(
    payload: BookingCreate,
    db: AsyncSession = Depends(get_db),
    identity: CurrentIdentity = Depends(require_institution_identity),
):
    try:
        return await service.create_booking(db, identity, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get(
    "",
    response_model=List[BookingViewItem],
    dependencies=[Depends(require_institution_identity)],
)
async def list_bookings(
    user_id: Optional[str] = Query(None, alias="userId"),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await service.list_bookings(db, user_id=user_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get(
    "/view",
    response_model=BookingViewPage,
    dependencies=[Depends(require_institution_identity)],
)
async def view_bookings(
    search: Optional[str] = Query(None, description="Matches teacher, email, room, common, subject or code"),
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await service.list_booking_view(db, search=search, page=page, page_size=page_size)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
