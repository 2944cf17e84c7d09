from datetime import date
from typing import Optional

from app.core.exceptions import BookingValidationError


def parse_query_date(raw: Optional[str]) -> Optional[date]:
    """yyyy-mm-dd, or a longer ISO timestamp truncated to its date part."""
    if not raw:
        return None
    raw = raw.strip()
    if len(raw) > 10:
        raw = raw[:10]
    try:
        return date.fromisoformat(raw)
    except ValueError:
        raise BookingValidationError(f"Invalid date: {raw}")


def weekday_name(d: date) -> str:
    """English weekday name as stored in slot_times.weekday ("Monday")."""
    return ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")[d.weekday()]
