from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import require_institution_identity
from app.auth.schemas import CurrentIdentity
from app.auth.services import resolve_teacher
from app.core.exceptions import ServiceError
from app.db.session import get_db

from .schemas import TeacherSubjectItem
from . import service

router = APIRouter(prefix="/api/v1/bookings", tags=["subjects"])


@router.get("/subjects", response_model=List[TeacherSubjectItem])
async def list_my_subjects(
    db: AsyncSession = Depends(get_db),
    identity: CurrentIdentity = Depends(require_institution_identity),
):
    try:
        teacher = await resolve_teacher(db, identity)
        return await service.list_teacher_subjects(db, teacher.id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
