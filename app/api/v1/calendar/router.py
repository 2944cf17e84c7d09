from datetime import date as date_type
from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from app.core.academic_calendar import term_and_week
from app.core.dates import parse_query_date
from app.core.exceptions import ServiceError

from .schemas import TermWeekResponse

router = APIRouter(prefix="/api/v1/calendar", tags=["calendar"])


@router.get("/term-week", response_model=TermWeekResponse)
async def get_term_week(
    date: Optional[str] = Query(None, description="yyyy-mm-dd; defaults to today"),
):
    try:
        day = parse_query_date(date) or date_type.today()
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    tw = term_and_week(day)
    return TermWeekResponse(day=day, term=tw.term, weekInTerm=tw.week_in_term)
