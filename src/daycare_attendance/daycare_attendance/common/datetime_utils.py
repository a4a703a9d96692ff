from __future__ import annotations

from datetime import date, datetime

from ..core.constants import SCHOOL_YEAR_START_MONTH, WEEKDAY_NAMES


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def weekday_name(day: date) -> str:
    """Lowercase English weekday name, as stored in ``allowed_days``."""
    return WEEKDAY_NAMES[day.weekday()]


def school_year_for(day: date) -> str:
    """School years run August to July, e.g. ``2024-2025``."""
    if day.month >= SCHOOL_YEAR_START_MONTH:
        return f"{day.year}-{day.year + 1}"
    return f"{day.year - 1}-{day.year}"


def hours_between(start: datetime, end: datetime) -> float:
    """Elapsed hours rounded to 2 decimals."""
    return round((end - start).total_seconds() / 3600, 2)
