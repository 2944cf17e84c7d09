from datetime import date
from typing import Union

from pydantic import BaseModel, Field


class TermWeekResponse(BaseModel):
    """Term 1-4 and week-in-term, or "N/A" / "?" when no calendar is configured."""

    day: date = Field(..., description="The date that was looked up")
    term: Union[int, str]
    weekInTerm: Union[int, str]
