from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Optional

from ..core.constants import REPORT_RANGE_DAYS
from ..core.exceptions import ValidationError


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except (TypeError, ValueError):
        raise ValidationError("Invalid date (YYYY-MM-DD)")


def parse_optional_date(value: Optional[str]) -> Optional[date]:
    v = (value or "").strip()
    if not v:
        return None
    return parse_iso_date(v)


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def calculate_age(date_of_birth: date, *, today: Optional[date] = None) -> int:
    today = today or now_local().date()
    age = today.year - date_of_birth.year
    if (today.month, today.day) < (date_of_birth.month, date_of_birth.day):
        age -= 1
    return age


def range_start(date_range: str, *, now: Optional[datetime] = None) -> Optional[datetime]:
    """Start of a report window ('week' / 'month' / 'year'); None for 'all'."""

    if not date_range or date_range == "all":
        return None
    days = REPORT_RANGE_DAYS.get(date_range)
    if days is None:
        raise ValidationError("Invalid date range")
    return (now or now_local()) - timedelta(days=days)


def fmt_dt(value: Optional[datetime]) -> Optional[str]:
    return value.strftime("%Y-%m-%d %H:%M:%S") if value else None


def fmt_date(value: Optional[date]) -> Optional[str]:
    return value.strftime("%Y-%m-%d") if value else None
