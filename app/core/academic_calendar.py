"""Academic calendar: map a date to its school term and week-in-term.

Every input date is moved onto REFERENCE_YEAR by month/day before lookup, so the
single 2025 calendar answers for all years. Dates in other years therefore get
2025's term boundaries; supply a per-year table in TERM_START_DATES_BY_YEAR and
change REFERENCE_YEAR once real dates for another year are known.
"""

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Dict, List, Optional, Union

REFERENCE_YEAR = 2025

TERM_START_DATES_BY_YEAR: Dict[int, List[date]] = {
    2025: [
        date(2025, 1, 27),
        date(2025, 4, 28),
        date(2025, 7, 14),
        date(2025, 10, 13),
    ],
}

TERM_WEEKS: List[int] = [11, 9, 10, 10]

UNKNOWN_TERM = "N/A"
UNKNOWN_WEEK = "?"


@dataclass(frozen=True)
class TermWeek:
    term: Union[int, str]
    week_in_term: Union[int, str]


def normalize_to_reference_year(d: date, year: int = REFERENCE_YEAR) -> date:
    """Same month/day in `year`; Feb 29 rolls over to Mar 1 when `year` is not a leap year."""
    try:
        return d.replace(year=year)
    except ValueError:
        return date(year, 2, 28) + timedelta(days=1)


def term_and_week(
    d: date,
    year: int = REFERENCE_YEAR,
    starts_by_year: Optional[Dict[int, List[date]]] = None,
    term_weeks: Optional[List[int]] = None,
) -> TermWeek:
    starts_by_year = TERM_START_DATES_BY_YEAR if starts_by_year is None else starts_by_year
    term_weeks = TERM_WEEKS if term_weeks is None else term_weeks

    starts = starts_by_year.get(year)
    if not starts:
        return TermWeek(UNKNOWN_TERM, UNKNOWN_WEEK)

    target = normalize_to_reference_year(d, year)
    for i, start in enumerate(starts):
        if i < len(starts) - 1:
            end = starts[i + 1]
        else:
            end = start + timedelta(weeks=term_weeks[i])
        if start <= target < end:
            return TermWeek(i + 1, (target - start).days // 7 + 1)

    if target < starts[0]:
        return TermWeek(1, 1)
    # Clamped to the last term's final week
    return TermWeek(len(starts), term_weeks[len(starts) - 1])
